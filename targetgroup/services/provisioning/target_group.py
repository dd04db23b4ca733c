"""Resumable create handler for a DB proxy target group.

Each call performs at most one remote operation and returns a StepOutcome;
the caller persists ``outcome.resume_state`` and re-invokes until the
outcome is terminal:

  awaiting_proxy / proxy_deleting  (poll, consumes one retry)
  -> configuring_target_group      (modify or describe pool settings)
  -> registering_targets           (register default clusters/instances)
  -> complete

The retry budget bounds consecutive stalls only: every step that makes
progress resets it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from targetgroup.models.enums import HandlerErrorCode, ProvisioningPhase
from targetgroup.schemas.target_group import DesiredState, ResumeState, StepOutcome

from .base import ControlPlaneClient

logger = logging.getLogger(__name__)

TIMED_OUT_MESSAGE = 'Timed out waiting for target group to become available.'


@dataclass(frozen=True)
class StepSettings:
    """Externally supplied constants of the create handler."""

    poll_delay_seconds: float = 30.0
    retry_budget: int = 20
    deleting_status: str = 'deleting'

    @classmethod
    def from_config(cls, config) -> StepSettings:
        """Build from a config class or a Flask ``app.config`` mapping."""
        get = config.get if hasattr(config, 'get') else lambda key: getattr(config, key)
        return cls(
            poll_delay_seconds=float(get('POLL_RETRY_DELAY_SECONDS')),
            retry_budget=int(get('STATE_POLL_RETRIES')),
            deleting_status=get('DELETING_PROXY_STATE'),
        )


def derive_phase(
    resume: ResumeState, deleting_status: str = 'deleting'
) -> ProvisioningPhase:
    """Map which resume-state fields are filled onto the current phase."""
    proxy = resume.observed_proxy
    if proxy is None:
        return ProvisioningPhase.AWAITING_PROXY
    if proxy.status == deleting_status:
        return ProvisioningPhase.PROXY_DELETING
    if resume.target_group_result is None:
        return ProvisioningPhase.CONFIGURING_TARGET_GROUP
    if resume.registered_targets is None:
        return ProvisioningPhase.REGISTERING_TARGETS
    return ProvisioningPhase.COMPLETE


async def step(
    desired: DesiredState,
    resume: Optional[ResumeState],
    client: ControlPlaneClient,
    settings: StepSettings,
) -> StepOutcome:
    """Advance target group creation by one idempotent step.

    Args:
        desired: Desired target group resource
        resume: State returned by the previous call, None on the first call
        client: Remote control-plane client
        settings: Poll delay, retry budget and deleting sentinel

    Returns:
        IN_PROGRESS with the next resume-state, SUCCESS, or FAILED on timeout

    Raises:
        ProvisionerException: If configuring the target group or registering
            targets fails. These are not retried here.
    """
    if resume is None:
        resume = ResumeState.initial(settings.retry_budget)

    if resume.retries_remaining == 0:
        logger.error(
            f"Target group {desired.target_group_name} on proxy "
            f"{desired.db_proxy_name} did not stabilize"
        )
        return StepOutcome.failed(
            desired, TIMED_OUT_MESSAGE, HandlerErrorCode.NOT_STABILIZED
        )

    phase = derive_phase(resume, settings.deleting_status)
    logger.info(
        f"Target group {desired.target_group_name}: phase={phase.value} "
        f"retries_remaining={resume.retries_remaining}"
    )

    if phase in (ProvisioningPhase.AWAITING_PROXY, ProvisioningPhase.PROXY_DELETING):
        return await _await_proxy(desired, resume, client, settings)
    if phase is ProvisioningPhase.CONFIGURING_TARGET_GROUP:
        return await _configure_target_group(desired, resume, client, settings)

    model = desired.with_target_group_arn(resume.target_group_result.target_group_arn)
    if phase is ProvisioningPhase.REGISTERING_TARGETS:
        return await _register_targets(model, resume, client, settings)
    return StepOutcome.success(model)


async def _await_proxy(
    desired: DesiredState,
    resume: ResumeState,
    client: ControlPlaneClient,
    settings: StepSettings,
) -> StepOutcome:
    await asyncio.sleep(settings.poll_delay_seconds)
    probe = await client.describe_proxy(desired.db_proxy_name)
    retries_remaining = resume.retries_remaining - 1
    if not probe.is_found:
        # Later snapshots cannot outlive the proxy they were taken on
        return StepOutcome.in_progress(
            desired, ResumeState(retries_remaining=retries_remaining)
        )

    logger.info(f"Proxy {desired.db_proxy_name} status: {probe.snapshot.status}")
    next_state = resume.model_copy(
        update={
            'observed_proxy': probe.snapshot,
            'retries_remaining': retries_remaining,
        }
    )
    return StepOutcome.in_progress(desired, next_state)


async def _configure_target_group(
    desired: DesiredState,
    resume: ResumeState,
    client: ControlPlaneClient,
    settings: StepSettings,
) -> StepOutcome:
    result = await client.describe_or_modify_target_group(
        desired.db_proxy_name,
        desired.target_group_name,
        desired.connection_pool_configuration_info,
    )
    next_state = ResumeState(
        observed_proxy=resume.observed_proxy,
        target_group_result=result,
        retries_remaining=settings.retry_budget,
    )
    model = desired.with_target_group_arn(result.target_group_arn)
    return StepOutcome.in_progress(model, next_state)


async def _register_targets(
    model: DesiredState,
    resume: ResumeState,
    client: ControlPlaneClient,
    settings: StepSettings,
) -> StepOutcome:
    clusters = model.db_cluster_identifiers
    instances = model.db_instance_identifiers
    if not clusters and not instances:
        targets = []
    else:
        targets = await client.register_targets(
            model.db_proxy_name, model.target_group_name, clusters, instances
        )
    next_state = ResumeState(
        observed_proxy=resume.observed_proxy,
        target_group_result=resume.target_group_result,
        registered_targets=targets,
        retries_remaining=settings.retry_budget,
    )
    return StepOutcome.in_progress(model, next_state)
