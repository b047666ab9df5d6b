"""Built-in OpenStack request catalog."""

from ..registry import RequestRegistry
from . import compute_v2, identity_v2, identity_v3
from .base import PROVIDER, OpenStackRequest


def register_all(registry: RequestRegistry) -> RequestRegistry:
    """Register every built-in OpenStack request into ``registry``."""
    for module in (identity_v2, identity_v3, compute_v2):
        for request in module.REQUESTS:
            registry.register(request)

    # Bootstrap data without a version in its host URI talks Keystone v2.0
    registry.set_default_version(PROVIDER, "identity", "v2")
    return registry


__all__ = ["PROVIDER", "OpenStackRequest", "register_all"]
