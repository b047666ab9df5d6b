"""Request Definition Registry - versioned lookup of request definitions."""

import logging
from functools import lru_cache
from typing import Iterable, Optional, Union

from .exceptions import RequestNotFoundError
from .request import RequestDefinition
from .types import EndpointType, VersionPolicy, parse_version

logger = logging.getLogger(__name__)


def select_version(
    candidates: Iterable[str],
    hint: str,
    policy: VersionPolicy = VersionPolicy.MOST_SPECIFIC,
) -> Optional[str]:
    """
    Pick the registered version that best serves ``hint`` under ``policy``.

    Under MOST_SPECIFIC a candidate is compatible when one version is a prefix
    of the other. The longest shared prefix wins, then an exact match, then
    the newest version.
    """
    wanted = parse_version(hint)
    best: Optional[str] = None
    best_rank: tuple[int, bool, tuple[int, ...]] = (-1, False, ())

    for candidate in candidates:
        have = parse_version(candidate)
        if policy == VersionPolicy.EXACT:
            if have == wanted:
                return candidate
            continue

        shared = min(len(have), len(wanted))
        if have[:shared] != wanted[:shared]:
            continue
        rank = (shared, have == wanted, have)
        if rank > best_rank:
            best, best_rank = candidate, rank

    return best


class RequestRegistry:
    """
    Registry of request definitions keyed by
    (provider, service, api version, endpoint type, operation).

    Populated once at startup and read-only afterwards; safe to share
    between sessions.
    """

    def __init__(self, version_policy: Union[str, VersionPolicy] = VersionPolicy.MOST_SPECIFIC):
        self.version_policy = VersionPolicy(version_policy)
        self._definitions: dict[tuple[str, str, str, str, str], RequestDefinition] = {}
        self._defaults: dict[tuple[str, str], str] = {}

    def register(self, definition: Union[RequestDefinition, type[RequestDefinition]]) -> RequestDefinition:
        """Register a definition (instance or class). Returns the stored instance."""
        if isinstance(definition, type):
            definition = definition()
        key = definition.key
        if key in self._definitions:
            raise ValueError(f"Request already registered: {'/'.join(key)}")
        self._definitions[key] = definition
        logger.debug("Registered request %s", "/".join(key))
        return definition

    def set_default_version(self, provider: str, service: str, api_version: str) -> None:
        """Version used when session data carries no version hint."""
        self._defaults[(provider, service)] = api_version

    def default_version(self, provider: str, service: str) -> Optional[str]:
        if (provider, service) in self._defaults:
            return self._defaults[(provider, service)]
        versions = self.versions(provider, service)
        return versions[-1] if versions else None

    def versions(self, provider: str, service: str, name: Optional[str] = None) -> list[str]:
        """Registered API versions for a service, oldest first."""
        found = {
            key[2]
            for key in self._definitions
            if key[0] == provider and key[1] == service and (name is None or key[4] == name)
        }
        return sorted(found, key=parse_version)

    def get(
        self,
        provider: str,
        service: str,
        api_version: str,
        name: str,
        endpoint_type: Union[str, EndpointType] = EndpointType.PUBLIC,
    ) -> RequestDefinition:
        key = (provider, service, api_version, EndpointType(endpoint_type).value, name)
        try:
            return self._definitions[key]
        except KeyError:
            raise RequestNotFoundError(provider, service, name, api_version) from None

    def find(
        self,
        provider: str,
        service: str,
        name: str,
        version_hint: Optional[str] = None,
        endpoint_types: Optional[Iterable[Union[str, EndpointType]]] = None,
    ) -> RequestDefinition:
        """
        Resolve an operation across all registered versions of a service.

        Args:
            provider: Provider name, e.g. "openstack"
            service: Service name, e.g. "identity"
            name: Operation name, e.g. "create_token"
            version_hint: Version advertised by the session data; None falls
                back to the service's default version
            endpoint_types: Endpoint types to try, in order (default: public, admin)

        Returns:
            The matching request definition

        Raises:
            RequestNotFoundError: No definition matches
        """
        types = [EndpointType(t).value for t in (endpoint_types or (EndpointType.PUBLIC, EndpointType.ADMIN))]
        hint = version_hint or self.default_version(provider, service)
        if hint is None:
            raise RequestNotFoundError(provider, service, name)

        for endpoint_type in types:
            candidates = [
                key[2]
                for key in self._definitions
                if key[0] == provider and key[1] == service and key[3] == endpoint_type and key[4] == name
            ]
            version = select_version(candidates, hint, self.version_policy)
            if version is not None:
                return self._definitions[(provider, service, version, endpoint_type, name)]

        raise RequestNotFoundError(provider, service, name, hint)

    def __contains__(self, key: tuple[str, str, str, str, str]) -> bool:
        return key in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


@lru_cache(maxsize=1)
def default_registry() -> RequestRegistry:
    """Process-wide registry holding the built-in request catalog."""
    from .openstack import register_all

    registry = RequestRegistry()
    register_all(registry)
    return registry
