"""Target Group Provisioner Schemas.

This package contains the Pydantic models for the desired resource state,
the resume-state threaded between invocations, and step outcomes.
"""

from targetgroup.schemas.target_group import (
    ConnectionPoolConfiguration,
    DesiredState,
    HandlerRequest,
    ProgressRecord,
    ProvisionRequest,
    ProxySnapshot,
    ResumeState,
    StepOutcome,
    TargetGroupSnapshot,
    TargetHealth,
    TargetSnapshot,
)

__all__ = [
    "ConnectionPoolConfiguration",
    "DesiredState",
    "HandlerRequest",
    "ProgressRecord",
    "ProvisionRequest",
    "ProxySnapshot",
    "ResumeState",
    "StepOutcome",
    "TargetGroupSnapshot",
    "TargetHealth",
    "TargetSnapshot",
]
