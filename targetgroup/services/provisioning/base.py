"""
Control-plane client interface for database proxy target group provisioning.

This module defines the remote operations the provisioning step function
depends on, the typed result of a proxy status probe, and the exception
raised for every non-recoverable remote failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from targetgroup.schemas.target_group import (
    ConnectionPoolConfiguration,
    ProxySnapshot,
    TargetGroupSnapshot,
    TargetSnapshot,
)


@dataclass
class ProvisionerConfig:
    """
    Common configuration for control-plane clients.

    Attributes:
        provider_type: Type of provider (aws)
        credentials: Provider-specific credential dictionary
        region: Cloud region
    """
    provider_type: str
    credentials: Dict[str, Any] = field(default_factory=dict)
    region: Optional[str] = None


class ProvisionerException(Exception):
    """
    Base exception for control-plane errors.

    Attributes:
        message: Error message
        provider: Provider type where error occurred
        resource_id: Resource ID if applicable
        original_error: Original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.provider = provider
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"Provider: {self.provider}")
        if self.resource_id:
            parts.append(f"Resource: {self.resource_id}")
        if self.original_error:
            parts.append(f"Original error: {str(self.original_error)}")
        return " | ".join(parts)


@dataclass(frozen=True)
class ProxyProbe:
    """
    Outcome of a proxy status probe.

    A probe either finds the proxy and carries its snapshot, or reports that
    the proxy does not exist (yet). Any other failure is raised as
    ProvisionerException instead of being represented here.
    """
    snapshot: Optional[ProxySnapshot] = None

    @classmethod
    def found(cls, snapshot: ProxySnapshot) -> "ProxyProbe":
        return cls(snapshot=snapshot)

    @classmethod
    def not_found(cls) -> "ProxyProbe":
        return cls(snapshot=None)

    @property
    def is_found(self) -> bool:
        return self.snapshot is not None


class ControlPlaneClient(ABC):
    """
    Abstract base class for the remote proxy control plane.

    Every operation is idempotent, so a step that is re-run after a lost
    response converges on the same remote state.
    """

    def __init__(self, config: ProvisionerConfig):
        """
        Initialize client with configuration.

        Args:
            config: Provisioner configuration
        """
        self.config = config

    @abstractmethod
    async def describe_proxy(self, proxy_name: str) -> ProxyProbe:
        """
        Fetch the current status of a proxy.

        Args:
            proxy_name: Name of the DB proxy

        Returns:
            ProxyProbe, not found when the proxy does not exist

        Raises:
            ProvisionerException: For any failure other than not found
        """
        pass

    @abstractmethod
    async def describe_or_modify_target_group(
        self,
        proxy_name: str,
        target_group_name: str,
        pool_config: Optional[ConnectionPoolConfiguration] = None
    ) -> TargetGroupSnapshot:
        """
        Apply connection pool settings, or read them back when none are given.

        Args:
            proxy_name: Name of the DB proxy
            target_group_name: Name of the target group
            pool_config: Pool settings to apply, None to describe only

        Returns:
            Target group snapshot after the call

        Raises:
            ProvisionerException: If the remote call fails
        """
        pass

    @abstractmethod
    async def register_targets(
        self,
        proxy_name: str,
        target_group_name: str,
        cluster_ids: List[str],
        instance_ids: List[str]
    ) -> List[TargetSnapshot]:
        """
        Register backend clusters and instances with a target group.

        Args:
            proxy_name: Name of the DB proxy
            target_group_name: Name of the target group
            cluster_ids: DB cluster identifiers
            instance_ids: DB instance identifiers

        Returns:
            Registered targets

        Raises:
            ProvisionerException: If the remote call fails
        """
        pass


def get_control_plane_client(provider_type: str, config: Dict[str, Any]) -> ControlPlaneClient:
    """
    Factory function to instantiate the control-plane client for a provider.

    Args:
        provider_type: Type of provider (aws)
        config: Configuration dictionary for the client

    Returns:
        Instantiated client implementation

    Raises:
        ProvisionerException: If provider_type is unknown

    Examples:
        client = get_control_plane_client('aws', {'region': 'us-east-1'})
        probe = await client.describe_proxy('my-proxy')
    """
    provider_type = provider_type.lower()

    provisioner_config = ProvisionerConfig(
        provider_type=provider_type,
        **config
    )

    # Import providers lazily so boto3 is only needed when used
    if provider_type == 'aws':
        from .aws import AWSControlPlaneClient
        return AWSControlPlaneClient(provisioner_config)
    raise ProvisionerException(
        f"Unknown provider type: {provider_type}",
        provider=provider_type
    )
