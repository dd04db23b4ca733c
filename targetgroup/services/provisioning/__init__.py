"""
Provisioning services for DB proxy target groups.

This package provides the control-plane client interface, its AWS
implementation, the resumable create handler step function and a
reference scheduler that drives it to completion.
"""

from .base import (
    ControlPlaneClient,
    ProvisionerConfig,
    ProvisionerException,
    ProxyProbe,
    get_control_plane_client,
)
from .scheduler import ProvisioningScheduler
from .target_group import (
    TIMED_OUT_MESSAGE,
    StepSettings,
    derive_phase,
    step,
)

__all__ = [
    'ControlPlaneClient',
    'ProvisionerConfig',
    'ProvisionerException',
    'ProxyProbe',
    'get_control_plane_client',
    'ProvisioningScheduler',
    'TIMED_OUT_MESSAGE',
    'StepSettings',
    'derive_phase',
    'step',
]
