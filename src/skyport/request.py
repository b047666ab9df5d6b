"""
Request definitions and their parameter builders.

A RequestDefinition describes one operation of one service at one API
version: how to turn parameters and session data into an HTTP call, and how
to judge the raw HTTP outcome. Definitions are stateless; a registry holds a
single shared instance of each.
"""

from typing import Any, Callable, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import InvalidParamsError, UnknownParamError
from .models import RawRequest
from .types import EndpointType, HttpMethod


class RequestParams(BaseModel):
    """Base for per-operation parameter schemas."""

    model_config = ConfigDict(extra="forbid")


class ParamsBuilder:
    """
    Mutable carrier handed to a request's params callback.

    Accepts both ``params.name = value`` and ``params["name"] = value``.
    Only fields declared by the request's schema can be assigned; anything
    else raises UnknownParamError immediately.

    Example:
        service.request("create_tenant", params=lambda p: setattr(p, "name", "X"))
    """

    __slots__ = ("_schema", "_request_name", "_values")

    def __init__(self, schema: type[BaseModel], request_name: Optional[str] = None) -> None:
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_request_name", request_name)
        object.__setattr__(self, "_values", {})

    @property
    def field_names(self) -> list[str]:
        return list(self._schema.model_fields)

    def _check(self, name: str) -> None:
        if name not in self._schema.model_fields:
            raise UnknownParamError(name, self._request_name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._check(name)
        self._values[name] = value

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not slots or methods
        self._check(name)
        if name in self._values:
            return self._values[name]
        field = self._schema.model_fields[name]
        return None if field.is_required() else field.get_default(call_default_factory=True)

    def __setitem__(self, name: str, value: Any) -> None:
        setattr(self, name, value)

    def __getitem__(self, name: str) -> Any:
        return getattr(self, name)

    def build(self) -> BaseModel:
        """Validate the assigned values against the schema."""
        try:
            return self._schema.model_validate(self._values)
        except ValidationError as e:
            raise InvalidParamsError(f"Invalid params for request '{self._request_name}': {e}") from e


ParamsCallback = Callable[[ParamsBuilder], Any]


class RequestDefinition:
    """
    Base class for a versioned operation.

    Subclasses set the class attributes and implement ``url``; they override
    ``headers``, ``query``, ``body`` and ``validate`` as needed.
    """

    provider: ClassVar[str]
    service: ClassVar[str]
    api_version: ClassVar[str]
    name: ClassVar[str]
    endpoint_type: ClassVar[EndpointType] = EndpointType.PUBLIC
    http_method: ClassVar[HttpMethod] = HttpMethod.GET
    anonymous: ClassVar[bool] = False  # True for bootstrap requests that need no token
    success_statuses: ClassVar[frozenset[int]] = frozenset({200})
    Params: ClassVar[type[BaseModel]] = RequestParams

    __slots__ = ()

    @property
    def key(self) -> tuple[str, str, str, str, str]:
        return (
            self.provider,
            self.service,
            self.api_version,
            EndpointType(self.endpoint_type).value,
            self.name,
        )

    def new_params(self) -> ParamsBuilder:
        return ParamsBuilder(self.Params, self.name)

    def url(self, session_data: dict[str, Any], params: BaseModel) -> str:
        raise NotImplementedError

    def headers(self, session_data: dict[str, Any], params: BaseModel) -> dict[str, str]:
        return {}

    def query(self, params: BaseModel) -> Optional[dict[str, Any]]:
        return None

    def body(self, params: BaseModel) -> Optional[Any]:
        return None

    def build(self, session_data: dict[str, Any], params: BaseModel) -> RawRequest:
        """Produce the HTTP call for the given session data and params."""
        return RawRequest(
            method=self.http_method,
            url=self.url(session_data, params),
            headers=self.headers(session_data, params),
            query=self.query(params),
            body=self.body(params),
        )

    def validate(self, status: int, headers: dict[str, str], body: Any) -> tuple[bool, Any]:
        """Decide success from the raw outcome; may reshape the body."""
        return status in self.success_statuses, body

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {'/'.join(self.key)}>"
