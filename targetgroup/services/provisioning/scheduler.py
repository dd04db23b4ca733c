"""Reference invocation scheduler for the target group create handler.

Drives ``step`` until a terminal outcome:
  1. Loads the persisted resume-state for the request token.
  2. Runs one step.
  3. Persists the new resume-state (IN_PROGRESS) or drops it (terminal).
  4. Writes a progress record for inspection.

Steps for the same token never run concurrently. Waiting for the per-token
lock yields to the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Dict

from targetgroup.models.enums import HandlerErrorCode, OperationStatus
from targetgroup.schemas.target_group import DesiredState, ProgressRecord, StepOutcome
from targetgroup.services.state_store import ResumeStateStore

from .base import ControlPlaneClient, ProvisionerException
from .target_group import StepSettings, derive_phase, step

logger = logging.getLogger(__name__)

LOCK_POLL_SECONDS = 0.05


class ProvisioningScheduler:
    """Re-invokes the create handler, threading resume-state through a store."""

    def __init__(
        self,
        client: ControlPlaneClient,
        settings: StepSettings,
        store: ResumeStateStore,
    ) -> None:
        self.client = client
        self.settings = settings
        self.store = store
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, token: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(token, threading.Lock())

    def _forget_lock(self, token: str) -> None:
        with self._locks_guard:
            self._locks.pop(token, None)

    async def _acquire(self, token: str) -> threading.Lock:
        lock = self._lock_for(token)
        while not lock.acquire(blocking=False):
            await asyncio.sleep(LOCK_POLL_SECONDS)
        return lock

    def begin(self, token: str, desired: DesiredState) -> ProgressRecord:
        """Record a new attempt as IN_PROGRESS before the first step runs."""
        record = ProgressRecord(
            client_request_token=token,
            status=OperationStatus.IN_PROGRESS,
            retries_remaining=self.settings.retry_budget,
            resource_model=desired,
        )
        self.store.save_progress(record)
        return record

    async def run_once(self, token: str, desired: DesiredState) -> StepOutcome:
        """Perform a single persisted step for ``token``.

        Any failure, whether remote, in the store, or in a stored state that no
        longer validates, ends the attempt with a FAILED outcome.
        """
        lock = await self._acquire(token)
        try:
            outcome = await self._advance(token, desired)
        finally:
            lock.release()
        if outcome.is_terminal:
            self._forget_lock(token)
        return outcome

    async def run(self, token: str, desired: DesiredState) -> StepOutcome:
        """Step until SUCCESS or FAILED and return the terminal outcome."""
        while True:
            outcome = await self.run_once(token, desired)
            if outcome.is_terminal:
                logger.info(f"Provisioning {token} finished: {outcome.status.value}")
                return outcome

    async def _advance(self, token: str, desired: DesiredState) -> StepOutcome:
        try:
            resume = self.store.load(token)
            outcome = await step(desired, resume, self.client, self.settings)
        except ProvisionerException as e:
            logger.error(f"Provisioning {token} failed: {e}")
            return self._fail(token, desired, str(e))
        except Exception as e:
            logger.exception(f"Provisioning {token} failed unexpectedly")
            return self._fail(token, desired, str(e) or type(e).__name__)

        try:
            if outcome.is_terminal:
                self.store.delete(token)
            else:
                self.store.save(token, outcome.resume_state)
            self.store.save_progress(self._progress(token, outcome))
        except Exception as e:
            logger.exception(f"Could not persist progress of {token}")
            return self._fail(token, desired, str(e) or type(e).__name__)
        return outcome

    def _fail(self, token: str, desired: DesiredState, message: str) -> StepOutcome:
        """Record a FAILED outcome and drop the resume-state, as far as the store allows."""
        outcome = StepOutcome.failed(
            desired, message, HandlerErrorCode.GENERAL_SERVICE_EXCEPTION
        )
        try:
            self.store.save_progress(self._progress(token, outcome))
        except Exception as e:
            logger.error(f"Could not record failure of {token}: {e}")
        try:
            self.store.delete(token)
        except Exception as e:
            logger.error(f"Could not drop resume-state of {token}: {e}")
        return outcome

    def _progress(self, token: str, outcome: StepOutcome) -> ProgressRecord:
        state = outcome.resume_state
        return ProgressRecord(
            client_request_token=token,
            status=outcome.status,
            phase=derive_phase(state, self.settings.deleting_status) if state else None,
            retries_remaining=state.retries_remaining if state else None,
            message=outcome.message,
            error_code=outcome.error_code,
            resource_model=outcome.resource_model,
        )
