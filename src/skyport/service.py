"""Service facade: resolves named operations to versioned requests and executes them."""

import logging
from typing import Any, Iterable, Optional, Union

import httpx

from .config import http_timeout
from .exceptions import ConnectionError, InitializationError, SessionDataNotProvidedError
from .log import http_event_hooks
from .registry import RequestRegistry, default_registry
from .request import ParamsCallback, RequestDefinition
from .response import Response
from .session_data import infer_version
from .types import EndpointType

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class Service:
    """
    Facade for one named service of one provider.

    Usage:
        def credentials(params):
            params.username = "admin"
            params.password = "secret"

        with Service(provider="openstack", service="identity") as identity:
            response = identity.request(
                "create_token",
                {"auth_service": {"name": "identity", "host_uri": "http://keystone:5000/v2.0"}},
                params=credentials,
            )

    ``default_session_data`` is a plain attribute. A session overwrites it
    in place whenever it re-authenticates, so holders of the facade always
    see the current token.
    """

    def __init__(
        self,
        provider: str,
        service: str,
        default_session_data: Optional[dict[str, Any]] = None,
        registry: Optional[RequestRegistry] = None,
        http_client: Optional[httpx.Client] = None,
        log_file: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize a service facade.

        Args:
            provider: Provider name, e.g. "openstack"
            service: Service name, e.g. "identity"
            default_session_data: Session data used when a request supplies none
            registry: Request registry (default: the built-in catalog)
            http_client: Shared HTTP client; when omitted the facade creates its own
            log_file: Optional file receiving HTTP activity
            timeout: Request timeout in seconds (default: SKYPORT_HTTP_TIMEOUT or 30.0)
        """
        if not provider:
            raise InitializationError("A service needs a provider name.")
        if not service:
            raise InitializationError("A service needs a service name.")

        self.provider = provider
        self.service = service
        self.default_session_data = default_session_data
        self.registry = registry if registry is not None else default_registry()
        self.log_file = log_file
        self.timeout = timeout if timeout is not None else http_timeout()
        self._client = http_client
        self._owns_client = http_client is None

    def __enter__(self) -> "Service":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def connect(self) -> None:
        """Initialize the HTTP client if none was injected."""
        if self._client is None:
            self._client = httpx.Client(
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
                event_hooks=http_event_hooks(self.log_file),
            )
            self._owns_client = True

    def close(self) -> None:
        """Close the HTTP client if this facade created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def bind_client(self, http_client: Optional[httpx.Client]) -> None:
        """
        Send future requests through ``http_client``, owned by the caller.

        A client this facade created itself is closed first. Passing None makes
        the facade open its own client on the next request.
        """
        if self._client is not http_client:
            self.close()
        self._client = http_client
        self._owns_client = False

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self.connect()
        return self._client

    def find_request(
        self,
        name: str,
        session_data: dict[str, Any],
        endpoint_type: Optional[Union[str, EndpointType]] = None,
    ) -> RequestDefinition:
        """
        Resolve ``name`` to the request definition the session data calls for.

        Raises:
            RequestNotFoundError: No registered version fits
            MissingServiceEndpointError: The catalog has no entry for this service
        """
        endpoint_types: Optional[Iterable[EndpointType]] = None
        if endpoint_type is not None:
            endpoint_types = [EndpointType(endpoint_type)]

        hint = infer_version(session_data, self.service, name)
        definition = self.registry.find(self.provider, self.service, name, hint, endpoint_types)
        logger.debug("Resolved %s.%s (hint=%s) to %r", self.service, name, hint, definition)
        return definition

    def request(
        self,
        name: str,
        session_data: Optional[dict[str, Any]] = None,
        params: Optional[ParamsCallback] = None,
        *,
        endpoint_type: Optional[Union[str, EndpointType]] = None,
        base_url: Optional[str] = None,
    ) -> Response:
        """
        Execute a named operation.

        Args:
            name: Operation name, e.g. "create_tenant"
            session_data: Session data for this call (default: default_session_data)
            params: Callback receiving a ParamsBuilder to fill in
            endpoint_type: Force an endpoint type instead of trying public, then admin
            base_url: Send the request to this base URL instead of the catalog's

        Returns:
            Response bound to the request definition used. Non-success statuses
            are returned, not raised.

        Raises:
            SessionDataNotProvidedError: No session data given or defaulted
            RequestNotFoundError: No registered request matches
            UnknownParamError: The callback assigned an undeclared param
            InvalidParamsError: The params failed validation
            ConnectionError: The backend could not be reached
        """
        session_data = session_data or self.default_session_data
        if not session_data:
            raise SessionDataNotProvidedError(self.service)

        if base_url:
            session_data = {**session_data, "base_url": base_url}

        definition = self.find_request(name, session_data, endpoint_type)

        builder = definition.new_params()
        if params is not None:
            params(builder)
        raw = definition.build(session_data, builder.build())

        client = self._ensure_client()
        try:
            http_response = client.request(
                raw.method.value,
                raw.url,
                headers=raw.headers,
                params=raw.query,
                json=raw.body,
            )
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Request timeout: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Could not reach {raw.url}: {e}") from e

        headers = dict(http_response.headers)
        ok, body = definition.validate(http_response.status_code, headers, _parse_body(http_response))
        if not ok:
            logger.info("%s.%s returned status %s", self.service, name, http_response.status_code)

        return Response(
            status=http_response.status_code,
            headers=headers,
            body=body,
            ok=ok,
            request=definition,
        )

    def __repr__(self) -> str:
        return f"<Service {self.provider}/{self.service}>"
