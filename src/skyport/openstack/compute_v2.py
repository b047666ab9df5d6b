"""Nova compute API v2 requests."""

from typing import Any, Optional

from pydantic import BaseModel

from ..request import RequestParams
from .base import OpenStackRequest, query_from


class ListServersParams(RequestParams):
    details: bool = False
    name: Optional[str] = None
    status: Optional[str] = None
    image: Optional[str] = None
    flavor: Optional[str] = None
    limit: Optional[int] = None
    marker: Optional[str] = None


class ListServers(OpenStackRequest):
    service = "compute"
    api_version = "v2"
    name = "list_servers"
    Params = ListServersParams

    def url(self, session_data: dict[str, Any], params: ListServersParams) -> str:
        suffix = "/servers/detail" if params.details else "/servers"
        return f"{self.base_url(session_data)}{suffix}"

    def query(self, params: BaseModel) -> dict[str, Any]:
        query = query_from(params)
        query.pop("details", None)
        return query

    def validate(self, status: int, headers: dict[str, str], body: Any) -> tuple[bool, Any]:
        # Nova answers 203 when the response passed through a translating proxy
        return status in (200, 203), body


REQUESTS = (ListServers,)
