"""Keystone identity API v2.0 requests."""

from typing import Any, Optional

from pydantic import BaseModel

from ..request import RequestParams
from ..types import EndpointType, HttpMethod
from .base import OpenStackRequest, query_from, with_default_version


class CreateTokenParams(RequestParams):
    username: Optional[str] = None
    password: Optional[str] = None
    token_id: Optional[str] = None
    tenant_name: Optional[str] = None
    tenant_id: Optional[str] = None


class CreateToken(OpenStackRequest):
    service = "identity"
    api_version = "v2"
    name = "create_token"
    http_method = HttpMethod.POST
    anonymous = True
    Params = CreateTokenParams

    def url(self, session_data: dict[str, Any], params: BaseModel) -> str:
        host_uri = (session_data.get("auth_service") or {}).get("host_uri") or self.base_url(session_data)
        return f"{with_default_version(host_uri, 'v2.0')}/tokens"

    def body(self, params: CreateTokenParams) -> dict[str, Any]:
        if params.token_id:
            auth: dict[str, Any] = {"token": {"id": params.token_id}}
        else:
            auth = {"passwordCredentials": {"username": params.username, "password": params.password}}

        if params.tenant_name:
            auth["tenantName"] = params.tenant_name
        if params.tenant_id:
            auth["tenantId"] = params.tenant_id
        return {"auth": auth}


class ListTenantsParams(RequestParams):
    marker: Optional[str] = None
    limit: Optional[int] = None


class ListTenants(OpenStackRequest):
    service = "identity"
    api_version = "v2"
    name = "list_tenants"
    path = "/tenants"
    success_statuses = frozenset({200, 203})
    Params = ListTenantsParams

    def query(self, params: BaseModel) -> dict[str, Any]:
        return query_from(params)


class CreateTenantParams(RequestParams):
    name: str
    description: Optional[str] = None
    enabled: bool = True


class CreateTenant(OpenStackRequest):
    service = "identity"
    api_version = "v2"
    name = "create_tenant"
    endpoint_type = EndpointType.ADMIN
    http_method = HttpMethod.POST
    path = "/tenants"
    Params = CreateTenantParams

    def body(self, params: CreateTenantParams) -> dict[str, Any]:
        tenant = {"name": params.name, "enabled": params.enabled}
        if params.description is not None:
            tenant["description"] = params.description
        return {"tenant": tenant}


REQUESTS = (CreateToken, ListTenants, CreateTenant)
