"""
AWS control-plane client for database proxy target groups.

Implements the target group operations using the RDS API via boto3:
- DescribeDBProxies for proxy stabilization probes
- ModifyDBProxyTargetGroup / DescribeDBProxyTargetGroups for pool settings
- RegisterDBProxyTargets for default backend targets

Copyright (c) 2025 Penguin Tech Inc
Licensed under Limited AGPL3
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from targetgroup.schemas.target_group import (
    ConnectionPoolConfiguration,
    ProxySnapshot,
    TargetGroupSnapshot,
    TargetSnapshot,
)
from targetgroup.utils.async_utils import run_in_executor

from .base import ControlPlaneClient, ProvisionerConfig, ProvisionerException, ProxyProbe

logger = logging.getLogger(__name__)

PROXY_NOT_FOUND_CODE = 'DBProxyNotFoundFault'


class AWSControlPlaneClient(ControlPlaneClient):
    """RDS Proxy control-plane client using boto3."""

    def __init__(self, config: ProvisionerConfig, session: Optional[boto3.Session] = None):
        """
        Initialize AWS client.

        Args:
            config: Provisioner configuration. ``credentials`` may contain
                aws_access_key_id / aws_secret_access_key; when absent the
                default boto3 credential chain is used.
            session: Pre-built boto3 session, mainly for tests
        """
        super().__init__(config)

        self.region = config.region or 'us-east-1'
        if session is None:
            session = boto3.Session(
                aws_access_key_id=config.credentials.get('aws_access_key_id'),
                aws_secret_access_key=config.credentials.get('aws_secret_access_key'),
                region_name=self.region
            )
        self.session = session

        # Lazy loaded
        self._rds_client = None

    @property
    def rds_client(self):
        """Lazy-load RDS client."""
        if self._rds_client is None:
            self._rds_client = self.session.client('rds')
        return self._rds_client

    async def describe_proxy(self, proxy_name: str) -> ProxyProbe:
        try:
            response = await run_in_executor(
                self.rds_client.describe_db_proxies,
                DBProxyName=proxy_name
            )
        except ClientError as e:
            if e.response['Error']['Code'] == PROXY_NOT_FOUND_CODE:
                # Proxy may still be mid-creation
                logger.info(f"DB proxy {proxy_name} not found yet")
                return ProxyProbe.not_found()
            logger.error(f"AWS API error describing proxy {proxy_name}: {e}")
            raise ProvisionerException(
                "Failed to describe DB proxy",
                provider='aws',
                resource_id=proxy_name,
                original_error=e
            )
        except BotoCoreError as e:
            logger.error(f"AWS API error describing proxy {proxy_name}: {e}")
            raise ProvisionerException(
                "Failed to describe DB proxy",
                provider='aws',
                resource_id=proxy_name,
                original_error=e
            )

        proxies = response.get('DBProxies', [])
        if not proxies:
            return ProxyProbe.not_found()
        return ProxyProbe.found(ProxySnapshot.model_validate(proxies[0]))

    async def describe_or_modify_target_group(
        self,
        proxy_name: str,
        target_group_name: str,
        pool_config: Optional[ConnectionPoolConfiguration] = None
    ) -> TargetGroupSnapshot:
        resource_id = f"{proxy_name}/{target_group_name}"

        if pool_config is None:
            response = await self._invoke(
                self.rds_client.describe_db_proxy_target_groups,
                resource_id,
                DBProxyName=proxy_name,
                TargetGroupName=target_group_name
            )
            target_groups = response.get('TargetGroups', [])
            if not target_groups:
                raise ProvisionerException(
                    "Target group not found",
                    provider='aws',
                    resource_id=resource_id
                )
            return TargetGroupSnapshot.model_validate(target_groups[0])

        response = await self._invoke(
            self.rds_client.modify_db_proxy_target_group,
            resource_id,
            DBProxyName=proxy_name,
            TargetGroupName=target_group_name,
            ConnectionPoolConfig=pool_config.to_request()
        )
        target_group = response.get('DBProxyTargetGroup')
        if not target_group:
            raise ProvisionerException(
                "Modify returned no target group",
                provider='aws',
                resource_id=resource_id
            )
        logger.info(f"Applied connection pool settings to {resource_id}")
        return TargetGroupSnapshot.model_validate(target_group)

    async def register_targets(
        self,
        proxy_name: str,
        target_group_name: str,
        cluster_ids: List[str],
        instance_ids: List[str]
    ) -> List[TargetSnapshot]:
        resource_id = f"{proxy_name}/{target_group_name}"
        response = await self._invoke(
            self.rds_client.register_db_proxy_targets,
            resource_id,
            DBProxyName=proxy_name,
            TargetGroupName=target_group_name,
            DBClusterIdentifiers=list(cluster_ids),
            DBInstanceIdentifiers=list(instance_ids)
        )
        targets = [
            TargetSnapshot.model_validate(target)
            for target in response.get('DBProxyTargets', [])
        ]
        logger.info(f"Registered {len(targets)} target(s) with {resource_id}")
        return targets

    async def _invoke(
        self,
        operation: Callable[..., Dict[str, Any]],
        resource_id: str,
        **params: Any
    ) -> Dict[str, Any]:
        """Run a blocking RDS call off the event loop, wrapping AWS errors."""
        try:
            return await run_in_executor(operation, **params)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"AWS API error on {resource_id}: {e}")
            raise ProvisionerException(
                f"AWS target group operation failed: {str(e)}",
                provider='aws',
                resource_id=resource_id,
                original_error=e
            )
