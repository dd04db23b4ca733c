"""Reference scheduler and Redis resume-state store tests."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import InMemoryControlPlane, InMemoryRedis, make_desired
from targetgroup.models.enums import HandlerErrorCode, OperationStatus, ProvisioningPhase
from targetgroup.schemas.target_group import ProgressRecord, ProxySnapshot, ResumeState
from targetgroup.services.provisioning.scheduler import ProvisioningScheduler
from targetgroup.services.provisioning.target_group import TIMED_OUT_MESSAGE, StepSettings
from targetgroup.services.state_store import (
    PROGRESS_KEY_PREFIX,
    RESUME_KEY_PREFIX,
    ResumeStateStore,
    StateStoreError,
)

TOKEN = 'req-0001'


class TestResumeStateStore:
    def test_save_and_load(self, fake_redis):
        store = ResumeStateStore(fake_redis, ttl_seconds=60)
        state = ResumeState(observed_proxy=ProxySnapshot(status='creating'), retries_remaining=2)

        store.save(TOKEN, state)

        assert store.load(TOKEN) == state
        assert fake_redis.ttls[RESUME_KEY_PREFIX + TOKEN] == 60

    def test_load_missing(self, fake_redis):
        assert ResumeStateStore(fake_redis).load(TOKEN) is None

    def test_delete(self, fake_redis):
        store = ResumeStateStore(fake_redis)
        store.save(TOKEN, ResumeState.initial(3))

        store.delete(TOKEN)

        assert store.load(TOKEN) is None

    def test_progress_round_trip(self, fake_redis):
        store = ResumeStateStore(fake_redis)
        record = ProgressRecord(
            client_request_token=TOKEN,
            status=OperationStatus.IN_PROGRESS,
            phase=ProvisioningPhase.REGISTERING_TARGETS,
            retries_remaining=3,
        )

        store.save_progress(record)

        assert PROGRESS_KEY_PREFIX + TOKEN in fake_redis.data
        assert store.load_progress(TOKEN) == record

    def test_redis_errors_are_wrapped(self):
        redis_client = MagicMock()
        redis_client.get.side_effect = RedisConnectionError('connection refused')

        with pytest.raises(StateStoreError, match='connection refused'):
            ResumeStateStore(redis_client).load(TOKEN)


def _scheduler(client, fake_redis, budget=3):
    settings = StepSettings(poll_delay_seconds=0, retry_budget=budget)
    return ProvisioningScheduler(client, settings, ResumeStateStore(fake_redis))


class TestProvisioningScheduler:
    @pytest.mark.asyncio
    async def test_runs_to_success_and_drops_state(self, fake_redis):
        client = InMemoryControlPlane(proxy_statuses=['available'])
        scheduler = _scheduler(client, fake_redis)

        outcome = await scheduler.run(TOKEN, make_desired(DBInstanceIdentifiers=['orders-1']))

        assert outcome.status is OperationStatus.SUCCESS
        assert [c[0] for c in client.calls] == [
            'describe_proxy',
            'modify_target_group',
            'register_targets',
        ]
        assert scheduler.store.load(TOKEN) is None
        progress = scheduler.store.load_progress(TOKEN)
        assert progress.status is OperationStatus.SUCCESS
        assert progress.resource_model.target_group_arn is not None

    @pytest.mark.asyncio
    async def test_run_once_persists_resume_state(self, fake_redis):
        client = InMemoryControlPlane(proxy_statuses=['creating'])
        scheduler = _scheduler(client, fake_redis)

        outcome = await scheduler.run_once(TOKEN, make_desired())

        assert outcome.status is OperationStatus.IN_PROGRESS
        assert scheduler.store.load(TOKEN) == outcome.resume_state
        progress = scheduler.store.load_progress(TOKEN)
        assert progress.phase is ProvisioningPhase.CONFIGURING_TARGET_GROUP
        assert progress.retries_remaining == 2

    @pytest.mark.asyncio
    async def test_resumes_from_persisted_state(self, fake_redis):
        client = InMemoryControlPlane()
        scheduler = _scheduler(client, fake_redis)
        scheduler.store.save(
            TOKEN,
            ResumeState(observed_proxy=ProxySnapshot(status='available'), retries_remaining=1),
        )

        await scheduler.run_once(TOKEN, make_desired())

        assert client.calls[0][0] == 'modify_target_group'

    @pytest.mark.asyncio
    async def test_timeout_is_recorded(self, fake_redis):
        client = InMemoryControlPlane(proxy_statuses=[None])
        scheduler = _scheduler(client, fake_redis, budget=2)

        outcome = await scheduler.run(TOKEN, make_desired())

        assert outcome.status is OperationStatus.FAILED
        assert outcome.message == TIMED_OUT_MESSAGE
        assert len(client.calls) == 2
        progress = scheduler.store.load_progress(TOKEN)
        assert progress.error_code is HandlerErrorCode.NOT_STABILIZED
        assert scheduler.store.load(TOKEN) is None

    @pytest.mark.asyncio
    async def test_remote_failure_becomes_failed_outcome(self, fake_redis):
        client = InMemoryControlPlane(modify_fails=True)
        scheduler = _scheduler(client, fake_redis)

        outcome = await scheduler.run(TOKEN, make_desired())

        assert outcome.status is OperationStatus.FAILED
        assert outcome.error_code is HandlerErrorCode.GENERAL_SERVICE_EXCEPTION
        assert 'modify failed' in outcome.message
        assert scheduler.store.load(TOKEN) is None

    def test_begin_records_in_progress(self, fake_redis):
        scheduler = _scheduler(InMemoryControlPlane(), fake_redis)

        record = scheduler.begin(TOKEN, make_desired())

        assert record.status is OperationStatus.IN_PROGRESS
        assert record.retries_remaining == 3
        assert scheduler.store.load_progress(TOKEN) == record

    @pytest.mark.asyncio
    async def test_store_failure_becomes_failed_outcome(self):
        redis_client = InMemoryRedis(failing_prefix=RESUME_KEY_PREFIX)
        scheduler = _scheduler(InMemoryControlPlane(), redis_client)

        outcome = await scheduler.run(TOKEN, make_desired())

        assert outcome.status is OperationStatus.FAILED
        assert outcome.error_code is HandlerErrorCode.GENERAL_SERVICE_EXCEPTION
        assert 'cannot write' in outcome.message
        progress = scheduler.store.load_progress(TOKEN)
        assert progress.status is OperationStatus.FAILED
        assert progress.error_code is HandlerErrorCode.GENERAL_SERVICE_EXCEPTION

    @pytest.mark.asyncio
    async def test_corrupt_resume_state_becomes_failed_outcome(self, fake_redis):
        client = InMemoryControlPlane()
        scheduler = _scheduler(client, fake_redis)
        fake_redis.data[RESUME_KEY_PREFIX + TOKEN] = b'{"stabilizationRetriesRemaining": -1}'

        outcome = await scheduler.run_once(TOKEN, make_desired())

        assert outcome.status is OperationStatus.FAILED
        assert outcome.error_code is HandlerErrorCode.GENERAL_SERVICE_EXCEPTION
        assert client.calls == []
        assert scheduler.store.load(TOKEN) is None
        assert scheduler.store.load_progress(TOKEN).status is OperationStatus.FAILED

    @pytest.mark.asyncio
    async def test_concurrent_steps_for_one_token_run_in_turn(self, fake_redis):
        client = InMemoryControlPlane()
        settings = StepSettings(poll_delay_seconds=0.05, retry_budget=3)
        scheduler = ProvisioningScheduler(client, settings, ResumeStateStore(fake_redis))
        desired = make_desired()

        first, second = await asyncio.wait_for(
            asyncio.gather(scheduler.run_once(TOKEN, desired), scheduler.run_once(TOKEN, desired)),
            timeout=2,
        )

        assert first.status is OperationStatus.IN_PROGRESS
        assert second.status is OperationStatus.IN_PROGRESS
        assert [c[0] for c in client.calls] == ['describe_proxy', 'modify_target_group']

    @pytest.mark.asyncio
    async def test_lock_is_released_after_terminal_outcome(self, fake_redis):
        scheduler = _scheduler(InMemoryControlPlane(), fake_redis)

        await scheduler.run(TOKEN, make_desired())

        assert TOKEN not in scheduler._locks
