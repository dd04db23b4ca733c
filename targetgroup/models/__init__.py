"""Target Group Provisioner Models Package"""

from targetgroup.models.enums import (
    HandlerErrorCode,
    OperationStatus,
    ProvisioningPhase,
)

__all__ = [
    "HandlerErrorCode",
    "OperationStatus",
    "ProvisioningPhase",
]
