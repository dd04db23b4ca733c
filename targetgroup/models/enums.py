"""Target Group Provisioner Enumeration Types"""

from enum import Enum


class OperationStatus(Enum):
    """Outcome of a single provisioning step"""
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ProvisioningPhase(Enum):
    """Legal phases of a target group create, derived from resume-state"""
    AWAITING_PROXY = "awaiting_proxy"
    PROXY_DELETING = "proxy_deleting"
    CONFIGURING_TARGET_GROUP = "configuring_target_group"
    REGISTERING_TARGETS = "registering_targets"
    COMPLETE = "complete"


class HandlerErrorCode(Enum):
    """Error codes reported on FAILED outcomes"""
    NOT_STABILIZED = "NotStabilized"
    GENERAL_SERVICE_EXCEPTION = "GeneralServiceException"
