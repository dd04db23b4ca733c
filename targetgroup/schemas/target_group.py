"""Pydantic schemas for database proxy target group provisioning.

Field aliases follow the RDS API / resource model naming so that snapshots can
be validated straight from boto3 responses and resume-state round-trips
through the handler's JSON callback context unchanged.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from targetgroup.models.enums import (
    HandlerErrorCode,
    OperationStatus,
    ProvisioningPhase,
)


class ConnectionPoolConfiguration(BaseModel):
    """Connection pool settings applied to a target group.

    Attributes:
        max_connections_percent: Upper bound of connections, as a percent of max_connections
        max_idle_connections_percent: Idle connections kept open, as a percent of max_connections
        connection_borrow_timeout: Seconds to wait for a free connection
        session_pinning_filters: Session state kinds excluded from pinning
        init_query: SQL run when each new connection is opened
    """

    max_connections_percent: Optional[int] = Field(
        None, ge=1, le=100, alias="MaxConnectionsPercent", description="Max connections percent"
    )
    max_idle_connections_percent: Optional[int] = Field(
        None, ge=0, le=100, alias="MaxIdleConnectionsPercent", description="Max idle connections percent"
    )
    connection_borrow_timeout: Optional[int] = Field(
        None, ge=0, le=3600, alias="ConnectionBorrowTimeout", description="Borrow timeout in seconds"
    )
    session_pinning_filters: Optional[List[str]] = Field(
        None, alias="SessionPinningFilters", description="Session pinning filters"
    )
    init_query: Optional[str] = Field(None, alias="InitQuery", description="Connection init query")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "MaxConnectionsPercent": 100,
                    "MaxIdleConnectionsPercent": 50,
                    "ConnectionBorrowTimeout": 120,
                    "SessionPinningFilters": ["EXCLUDE_VARIABLE_SETS"],
                }
            ]
        },
    )

    def to_request(self) -> Dict[str, Any]:
        """Render as a ModifyDBProxyTargetGroup ConnectionPoolConfig payload."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DesiredState(BaseModel):
    """Desired target group resource, supplied by the caller and never mutated."""

    db_proxy_name: str = Field(..., min_length=1, max_length=64, alias="DBProxyName", description="Proxy name")
    target_group_name: str = Field(..., min_length=1, alias="TargetGroupName", description="Target group name")
    connection_pool_configuration_info: Optional[ConnectionPoolConfiguration] = Field(
        None, alias="ConnectionPoolConfigurationInfo", description="Optional pool settings"
    )
    db_cluster_identifiers: List[str] = Field(
        default_factory=list, alias="DBClusterIdentifiers", description="Backend clusters to register"
    )
    db_instance_identifiers: List[str] = Field(
        default_factory=list, alias="DBInstanceIdentifiers", description="Backend instances to register"
    )
    target_group_arn: Optional[str] = Field(
        None, alias="TargetGroupArn", description="Read-only target group ARN"
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("db_cluster_identifiers", "db_instance_identifiers", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def with_target_group_arn(self, arn: Optional[str]) -> "DesiredState":
        """Return a copy carrying the target group ARN read back from the service."""
        return self.model_copy(update={"target_group_arn": arn})


class ProxySnapshot(BaseModel):
    """Last observed state of a DB proxy (subset of DescribeDBProxies output)."""

    db_proxy_name: Optional[str] = Field(None, alias="DBProxyName")
    db_proxy_arn: Optional[str] = Field(None, alias="DBProxyArn")
    status: Optional[str] = Field(None, alias="Status")
    engine_family: Optional[str] = Field(None, alias="EngineFamily")
    endpoint: Optional[str] = Field(None, alias="Endpoint")
    vpc_id: Optional[str] = Field(None, alias="VpcId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TargetGroupSnapshot(BaseModel):
    """Target group as returned by a modify or describe call."""

    db_proxy_name: Optional[str] = Field(None, alias="DBProxyName")
    target_group_name: Optional[str] = Field(None, alias="TargetGroupName")
    target_group_arn: Optional[str] = Field(None, alias="TargetGroupArn")
    is_default: Optional[bool] = Field(None, alias="IsDefault")
    status: Optional[str] = Field(None, alias="Status")
    connection_pool_config: Optional[ConnectionPoolConfiguration] = Field(None, alias="ConnectionPoolConfig")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TargetHealth(BaseModel):
    """Registration health of a single proxy target."""

    state: Optional[str] = Field(None, alias="State")
    reason: Optional[str] = Field(None, alias="Reason")
    description: Optional[str] = Field(None, alias="Description")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TargetSnapshot(BaseModel):
    """A backend cluster or instance registered with a target group."""

    target_arn: Optional[str] = Field(None, alias="TargetArn")
    endpoint: Optional[str] = Field(None, alias="Endpoint")
    tracked_cluster_id: Optional[str] = Field(None, alias="TrackedClusterId")
    rds_resource_id: Optional[str] = Field(None, alias="RdsResourceId")
    port: Optional[int] = Field(None, alias="Port")
    type: Optional[str] = Field(None, alias="Type")
    role: Optional[str] = Field(None, alias="Role")
    target_health: Optional[TargetHealth] = Field(None, alias="TargetHealth")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ResumeState(BaseModel):
    """Progress threaded between handler invocations.

    The three snapshot fields fill strictly in order: ``observed_proxy``, then
    ``target_group_result``, then ``registered_targets``. An empty
    ``registered_targets`` list is a finished registration, ``None`` is not.
    """

    observed_proxy: Optional[ProxySnapshot] = Field(None, alias="proxy")
    target_group_result: Optional[TargetGroupSnapshot] = Field(None, alias="targetGroupStatus")
    registered_targets: Optional[List[TargetSnapshot]] = Field(None, alias="targets")
    retries_remaining: int = Field(..., ge=0, alias="stabilizationRetriesRemaining")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def _check_fill_order(self) -> "ResumeState":
        if self.target_group_result is not None and self.observed_proxy is None:
            raise ValueError("targetGroupStatus set before proxy was observed")
        if self.registered_targets is not None and self.target_group_result is None:
            raise ValueError("targets set before targetGroupStatus")
        return self

    @classmethod
    def initial(cls, retry_budget: int) -> "ResumeState":
        """Fresh state for the first invocation."""
        return cls(retries_remaining=retry_budget)

    def to_context(self) -> Dict[str, Any]:
        """Serialize to the JSON callback context handed back to the scheduler."""
        return self.model_dump(mode="json", by_alias=True)


class StepOutcome(BaseModel):
    """Result of one invocation of the provisioning step function."""

    status: OperationStatus
    resource_model: DesiredState
    resume_state: Optional[ResumeState] = None
    message: Optional[str] = None
    error_code: Optional[HandlerErrorCode] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def in_progress(cls, model: DesiredState, state: ResumeState) -> "StepOutcome":
        return cls(status=OperationStatus.IN_PROGRESS, resource_model=model, resume_state=state)

    @classmethod
    def success(cls, model: DesiredState) -> "StepOutcome":
        return cls(status=OperationStatus.SUCCESS, resource_model=model)

    @classmethod
    def failed(
        cls,
        model: DesiredState,
        message: str,
        error_code: HandlerErrorCode = HandlerErrorCode.GENERAL_SERVICE_EXCEPTION,
    ) -> "StepOutcome":
        return cls(
            status=OperationStatus.FAILED,
            resource_model=model,
            message=message,
            error_code=error_code,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status is not OperationStatus.IN_PROGRESS

    def to_progress_event(self) -> Dict[str, Any]:
        """Render in the handler's progress-event wire shape."""
        return {
            "status": self.status.value,
            "resourceModel": self.resource_model.model_dump(mode="json", by_alias=True),
            "callbackContext": self.resume_state.to_context() if self.resume_state else None,
            "message": self.message,
            "errorCode": self.error_code.value if self.error_code else None,
        }


class ProgressRecord(BaseModel):
    """Inspectable progress of a scheduled provisioning run."""

    client_request_token: str = Field(..., alias="clientRequestToken")
    status: OperationStatus
    phase: Optional[ProvisioningPhase] = None
    retries_remaining: Optional[int] = Field(None, alias="retriesRemaining")
    message: Optional[str] = None
    error_code: Optional[HandlerErrorCode] = Field(None, alias="errorCode")
    resource_model: Optional[DesiredState] = Field(None, alias="resourceModel")

    model_config = ConfigDict(populate_by_name=True)


class HandlerRequest(BaseModel):
    """Body of a single-step handler invocation."""

    desired_resource_state: DesiredState = Field(..., alias="desiredResourceState")
    callback_context: Optional[ResumeState] = Field(None, alias="callbackContext")

    model_config = ConfigDict(populate_by_name=True)


class ProvisionRequest(BaseModel):
    """Body of a scheduled provisioning request."""

    client_request_token: str = Field(
        ..., min_length=1, max_length=128, alias="clientRequestToken", description="Idempotency token"
    )
    desired_resource_state: DesiredState = Field(..., alias="desiredResourceState")

    model_config = ConfigDict(populate_by_name=True)
