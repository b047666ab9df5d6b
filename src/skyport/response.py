"""Response wrapper returned by service requests."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .request import RequestDefinition


class Response(BaseModel):
    """
    Outcome of one request execution.

    ``ok`` is the verdict of the request definition's validator. A rejected
    status is still returned as a Response; callers inspect ``status``.
    ``request`` is the definition that produced the response, so the
    resolved API version is observable as ``response.request.api_version``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    ok: bool = False
    request: RequestDefinition

    def to_session_data(self) -> dict[str, Any]:
        """The JSON-safe auth payload a session stores after a bootstrap request."""
        return {"headers": dict(self.headers), "body": self.body}
