"""Pydantic models for the skyport SDK."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import HttpMethod, parse_version


class AuthService(BaseModel):
    """Where and how a session bootstraps its authentication."""

    model_config = ConfigDict(extra="allow")

    name: str
    host_uri: str
    request: str  # Bootstrap request name, e.g. "create_token"
    validator: Optional[str] = None  # Request used by Session.validate()
    api_version: Optional[str] = None

    @field_validator("api_version")
    @classmethod
    def check_api_version(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_version(v)
        return v


class Environment(BaseModel):
    """A named deployment: provider, auth service and default credentials."""

    model_config = ConfigDict(extra="allow")

    provider: str
    auth_service: AuthService
    auth_credentials: dict[str, Any] = Field(default_factory=dict)


class RawRequest(BaseModel):
    """A fully built HTTP call, ready to hand to the transport."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    query: Optional[dict[str, Any]] = None
    body: Optional[Any] = None
