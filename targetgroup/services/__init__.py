"""
Services package for the target group provisioner.

This package contains:
- Provisioning: the resumable create handler and its control-plane clients
- State store: Redis persistence of resume-state between invocations
"""

__all__ = []
