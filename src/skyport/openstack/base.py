"""Shared behaviour for OpenStack request definitions."""

from typing import Any, ClassVar
from urllib.parse import urlparse

from pydantic import BaseModel

from ..request import RequestDefinition
from ..session_data import auth_token, service_url

PROVIDER = "openstack"


def with_default_version(host_uri: str, version: str) -> str:
    """Append ``/<version>`` to a bare host URI (one without a path)."""
    host_uri = host_uri.rstrip("/")
    if urlparse(host_uri).path.strip("/"):
        return host_uri
    return f"{host_uri}/{version}"


class OpenStackRequest(RequestDefinition):
    """Adds catalog-based URLs and X-Auth-Token handling."""

    provider: ClassVar[str] = PROVIDER
    path: ClassVar[str] = ""

    def base_url(self, session_data: dict[str, Any]) -> str:
        return service_url(session_data, self.service, self.name, self.endpoint_type)

    def url(self, session_data: dict[str, Any], params: BaseModel) -> str:
        return f"{self.base_url(session_data)}{self.path}"

    def headers(self, session_data: dict[str, Any], params: BaseModel) -> dict[str, str]:
        if self.anonymous:
            return {}
        token = auth_token(session_data)
        return {"X-Auth-Token": token} if token else {}


def query_from(params: BaseModel) -> dict[str, Any]:
    """Query string built from the params that were actually set."""
    return params.model_dump(exclude_none=True)
