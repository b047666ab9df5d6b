"""Keystone identity API v3 requests."""

from typing import Any, Optional

from pydantic import BaseModel

from ..request import RequestParams
from ..types import HttpMethod
from .base import OpenStackRequest, query_from, with_default_version


class CreateTokenParams(RequestParams):
    username: Optional[str] = None
    password: Optional[str] = None
    user_domain_name: str = "Default"
    token_id: Optional[str] = None
    project_name: Optional[str] = None
    project_domain_name: str = "Default"
    # v2-style alias so one credentials block works against either version
    tenant_name: Optional[str] = None


class CreateToken(OpenStackRequest):
    """Password or token authentication; the new token comes back in X-Subject-Token."""

    service = "identity"
    api_version = "v3"
    name = "create_token"
    http_method = HttpMethod.POST
    anonymous = True
    success_statuses = frozenset({201})
    Params = CreateTokenParams

    def url(self, session_data: dict[str, Any], params: BaseModel) -> str:
        host_uri = (session_data.get("auth_service") or {}).get("host_uri") or self.base_url(session_data)
        return f"{with_default_version(host_uri, 'v3')}/auth/tokens"

    def body(self, params: CreateTokenParams) -> dict[str, Any]:
        if params.token_id:
            identity = {"methods": ["token"], "token": {"id": params.token_id}}
        else:
            identity = {
                "methods": ["password"],
                "password": {
                    "user": {
                        "name": params.username,
                        "domain": {"name": params.user_domain_name},
                        "password": params.password,
                    }
                },
            }

        auth: dict[str, Any] = {"identity": identity}
        project_name = params.project_name or params.tenant_name
        if project_name:
            auth["scope"] = {
                "project": {"name": project_name, "domain": {"name": params.project_domain_name}}
            }
        return {"auth": auth}


class ListProjectsParams(RequestParams):
    name: Optional[str] = None
    domain_id: Optional[str] = None
    enabled: Optional[bool] = None


class ListProjects(OpenStackRequest):
    service = "identity"
    api_version = "v3"
    name = "list_projects"
    path = "/projects"
    Params = ListProjectsParams

    def query(self, params: BaseModel) -> dict[str, Any]:
        return query_from(params)


REQUESTS = (CreateToken, ListProjects)
