"""
Flask Blueprint for DB proxy target group provisioning endpoints.

Provides:
- A re-invocable create handler (one step per call, caller keeps the context)
- Scheduled provisioning runs driven in the background
- Progress inspection of scheduled runs
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request

from targetgroup.api.errors import NotFoundError, ValidationError
from targetgroup.models.enums import HandlerErrorCode
from targetgroup.schemas.target_group import (
    DesiredState,
    HandlerRequest,
    ProvisionRequest,
    StepOutcome,
)
from targetgroup.services.provisioning.base import ProvisionerException
from targetgroup.services.provisioning.target_group import StepSettings, step
from targetgroup.utils.api_responses import accepted_response, success_response
from targetgroup.utils.async_utils import run_sync

logger = logging.getLogger(__name__)

target_groups_bp = Blueprint(
    "target_groups",
    __name__,
    url_prefix="/target-groups",
)


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@target_groups_bp.route("/handler", methods=["POST"])
def invoke_create_handler() -> Tuple[Any, int]:
    """
    Run one step of the target group create handler.

    Request Body:
        desiredResourceState (object): Desired target group
        callbackContext (object|null): Context returned by the previous call

    Returns:
        Progress event with status, resourceModel, callbackContext,
        message and errorCode
    """
    handler_request = HandlerRequest.model_validate(_json_body())
    desired = handler_request.desired_resource_state
    client = current_app.extensions["targetgroup.client"]
    settings = StepSettings.from_config(current_app.config)

    try:
        outcome = run_sync(
            step(desired, handler_request.callback_context, client, settings)
        )
    except ProvisionerException as e:
        logger.error(f"Create handler failed for {desired.target_group_name}: {e}")
        outcome = StepOutcome.failed(
            desired, str(e), HandlerErrorCode.GENERAL_SERVICE_EXCEPTION
        )

    return jsonify(outcome.to_progress_event()), 200


@target_groups_bp.route("", methods=["POST"])
def start_provisioning() -> Tuple[Dict[str, Any], int]:
    """
    Schedule a provisioning run that steps until completion in the background.

    Request Body:
        clientRequestToken (str): Idempotency token identifying the attempt
        desiredResourceState (object): Desired target group

    Returns:
        202 with the current progress record
    """
    provision_request = ProvisionRequest.model_validate(_json_body())
    token = provision_request.client_request_token
    scheduler = current_app.extensions["targetgroup.scheduler"]

    existing = scheduler.store.load_progress(token)
    if existing is not None:
        logger.info(f"Provisioning request {token} already known")
        return accepted_response(
            data=existing.model_dump(mode="json", by_alias=True),
            message="Provisioning already requested",
        )

    record = scheduler.begin(token, provision_request.desired_resource_state)
    _launch(token, provision_request.desired_resource_state)

    return accepted_response(
        data=record.model_dump(mode="json", by_alias=True),
        message="Provisioning started",
    )


@target_groups_bp.route("/<token>", methods=["GET"])
def get_provisioning_progress(token: str) -> Tuple[Dict[str, Any], int]:
    """
    Return the progress record of a scheduled provisioning run.

    Args:
        token: Client request token of the run

    Returns:
        JSON progress record
    """
    scheduler = current_app.extensions["targetgroup.scheduler"]
    record = scheduler.store.load_progress(token)
    if record is None:
        raise NotFoundError("Provisioning request", token)
    return success_response(data=record.model_dump(mode="json", by_alias=True))


def _launch(token: str, desired: DesiredState) -> None:
    """Hand the run to the background scheduler, or run inline when disabled."""
    scheduler = current_app.extensions["targetgroup.scheduler"]
    background = current_app.extensions.get("apscheduler")

    if background is None:
        run_sync(scheduler.run(token, desired))
        return

    background.add_job(
        _run_job,
        args=[scheduler, token, desired],
        id=f"targetgroup-{token}",
        replace_existing=True,
    )
    logger.info(f"Scheduled provisioning run {token}")


def _run_job(scheduler, token: str, desired: DesiredState) -> None:
    outcome = run_sync(scheduler.run(token, desired))
    logger.info(f"Background provisioning {token} ended with {outcome.status.value}")
