"""Schema tests: desired state normalisation and resume-state invariants."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import TARGET_GROUP_ARN, make_desired
from targetgroup.models.enums import HandlerErrorCode, OperationStatus
from targetgroup.schemas.target_group import (
    DesiredState,
    ProxySnapshot,
    ResumeState,
    StepOutcome,
    TargetGroupSnapshot,
)


class TestDesiredState:
    def test_null_identifier_lists_become_empty(self):
        desired = DesiredState.model_validate(
            {
                'DBProxyName': 'orders-proxy',
                'TargetGroupName': 'default',
                'DBClusterIdentifiers': None,
            }
        )

        assert desired.db_cluster_identifiers == []
        assert desired.db_instance_identifiers == []
        assert desired.connection_pool_configuration_info is None

    def test_is_immutable(self):
        desired = make_desired()

        with pytest.raises(ValidationError):
            desired.db_proxy_name = 'other'

    def test_with_target_group_arn_returns_copy(self):
        desired = make_desired()

        updated = desired.with_target_group_arn(TARGET_GROUP_ARN)

        assert updated.target_group_arn == TARGET_GROUP_ARN
        assert desired.target_group_arn is None

    def test_rejects_out_of_range_pool_settings(self):
        with pytest.raises(ValidationError):
            make_desired(ConnectionPoolConfigurationInfo={'MaxConnectionsPercent': 150})

    def test_requires_proxy_name(self):
        with pytest.raises(ValidationError):
            DesiredState.model_validate({'TargetGroupName': 'default'})


class TestResumeState:
    def test_initial(self):
        state = ResumeState.initial(5)

        assert state.retries_remaining == 5
        assert state.observed_proxy is None
        assert state.target_group_result is None
        assert state.registered_targets is None

    def test_rejects_target_group_before_proxy(self):
        with pytest.raises(ValidationError, match='before proxy was observed'):
            ResumeState(target_group_result=TargetGroupSnapshot(), retries_remaining=1)

    def test_rejects_targets_before_target_group(self):
        with pytest.raises(ValidationError, match='before targetGroupStatus'):
            ResumeState(
                observed_proxy=ProxySnapshot(status='available'),
                registered_targets=[],
                retries_remaining=1,
            )

    def test_rejects_negative_retries(self):
        with pytest.raises(ValidationError):
            ResumeState(retries_remaining=-1)

    def test_context_keeps_empty_targets_distinct_from_missing(self):
        state = ResumeState(
            observed_proxy=ProxySnapshot(status='available'),
            target_group_result=TargetGroupSnapshot(target_group_arn=TARGET_GROUP_ARN),
            registered_targets=[],
            retries_remaining=3,
        )

        context = state.to_context()
        restored = ResumeState.model_validate(context)

        assert context['targets'] == []
        assert context['stabilizationRetriesRemaining'] == 3
        assert restored.registered_targets == []
        assert ResumeState.model_validate({'stabilizationRetriesRemaining': 3}).registered_targets is None


class TestStepOutcome:
    def test_failed_progress_event(self):
        outcome = StepOutcome.failed(
            make_desired(), 'boom', HandlerErrorCode.NOT_STABILIZED
        )

        event = outcome.to_progress_event()

        assert event['status'] == 'FAILED'
        assert event['errorCode'] == 'NotStabilized'
        assert event['message'] == 'boom'
        assert event['callbackContext'] is None
        assert event['resourceModel']['DBProxyName'] == 'orders-proxy'

    def test_in_progress_is_not_terminal(self):
        outcome = StepOutcome.in_progress(make_desired(), ResumeState.initial(3))

        assert outcome.status is OperationStatus.IN_PROGRESS
        assert not outcome.is_terminal
        assert outcome.to_progress_event()['callbackContext']['stabilizationRetriesRemaining'] == 3
