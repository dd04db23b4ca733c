"""Shared fixtures: in-memory control plane and Redis doubles."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from targetgroup.schemas.target_group import (
    ConnectionPoolConfiguration,
    DesiredState,
    ProxySnapshot,
    TargetGroupSnapshot,
    TargetSnapshot,
)
from targetgroup.services.provisioning.base import (
    ControlPlaneClient,
    ProvisionerConfig,
    ProvisionerException,
    ProxyProbe,
)
from targetgroup.services.provisioning.target_group import StepSettings

TARGET_GROUP_ARN = 'arn:aws:rds:us-east-1:123456789012:target-group:prx-tg-abc'


class InMemoryControlPlane(ControlPlaneClient):
    """Control plane double that replays proxy statuses and records calls.

    ``proxy_statuses`` is consumed one entry per probe; ``None`` means the
    proxy is not found. The last entry repeats once the list is exhausted.
    """

    def __init__(
        self,
        *,
        proxy_statuses: Optional[List[Optional[str]]] = None,
        modify_fails: bool = False,
        register_fails: bool = False,
    ) -> None:
        super().__init__(ProvisionerConfig(provider_type='memory'))
        self.proxy_statuses = list(proxy_statuses or ['available'])
        self.modify_fails = modify_fails
        self.register_fails = register_fails
        self.calls: List[tuple] = []

    async def describe_proxy(self, proxy_name: str) -> ProxyProbe:
        self.calls.append(('describe_proxy', proxy_name))
        status = self.proxy_statuses.pop(0) if len(self.proxy_statuses) > 1 else self.proxy_statuses[0]
        if status is None:
            return ProxyProbe.not_found()
        return ProxyProbe.found(ProxySnapshot(db_proxy_name=proxy_name, status=status))

    async def describe_or_modify_target_group(
        self,
        proxy_name: str,
        target_group_name: str,
        pool_config: Optional[ConnectionPoolConfiguration] = None,
    ) -> TargetGroupSnapshot:
        operation = 'modify_target_group' if pool_config else 'describe_target_group'
        self.calls.append((operation, proxy_name, target_group_name))
        if self.modify_fails:
            raise ProvisionerException('modify failed', provider='memory', resource_id=target_group_name)
        return TargetGroupSnapshot(
            db_proxy_name=proxy_name,
            target_group_name=target_group_name,
            target_group_arn=TARGET_GROUP_ARN,
            is_default=True,
            status='available',
            connection_pool_config=pool_config,
        )

    async def register_targets(
        self,
        proxy_name: str,
        target_group_name: str,
        cluster_ids: List[str],
        instance_ids: List[str],
    ) -> List[TargetSnapshot]:
        self.calls.append(('register_targets', tuple(cluster_ids), tuple(instance_ids)))
        if self.register_fails:
            raise ProvisionerException('register failed', provider='memory', resource_id=target_group_name)
        targets = [
            TargetSnapshot(tracked_cluster_id=cid, type='TRACKED_CLUSTER')
            for cid in cluster_ids
        ]
        targets.extend(
            TargetSnapshot(rds_resource_id=iid, type='RDS_INSTANCE', port=5432)
            for iid in instance_ids
        )
        return targets


class InMemoryRedis:
    """The subset of the Redis client the resume-state store uses.

    Writes to keys starting with ``failing_prefix`` raise a connection error.
    """

    def __init__(self, failing_prefix: Optional[str] = None) -> None:
        self.data: Dict[str, bytes] = {}
        self.ttls: Dict[str, int] = {}
        self.failing_prefix = failing_prefix

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.failing_prefix and key.startswith(self.failing_prefix):
            raise RedisConnectionError(f"cannot write {key}")
        self.data[key] = value.encode('utf-8')
        self.ttls[key] = ttl
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


def make_desired(**overrides) -> DesiredState:
    fields = {
        'DBProxyName': 'orders-proxy',
        'TargetGroupName': 'default',
        'ConnectionPoolConfigurationInfo': {
            'MaxConnectionsPercent': 90,
            'MaxIdleConnectionsPercent': 10,
            'ConnectionBorrowTimeout': 120,
        },
    }
    fields.update(overrides)
    return DesiredState.model_validate(fields)


@pytest.fixture
def settings() -> StepSettings:
    return StepSettings(poll_delay_seconds=0, retry_budget=3, deleting_status='deleting')


@pytest.fixture
def control_plane() -> InMemoryControlPlane:
    return InMemoryControlPlane()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()
