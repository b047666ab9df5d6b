"""
Authenticated session against a cloud control plane.

A Session owns the authentication lifecycle. It bootstraps a token through
the environment's auth service, keeps the resulting auth payload, and hands
it to one memoized Service facade per service name. Re-authenticating or
loading a dump refreshes those facades in place.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from .config import http_timeout, load_environment, parse_environment
from .config import log_file as default_log_file
from .exceptions import (
    AuthenticationError,
    ConnectionError,
    InitializationError,
    NotAuthenticatedError,
    SessionLoadError,
    ValidatorNotDefinedError,
    ValidatorRequestError,
)
from .log import http_event_hooks
from .models import Environment
from .registry import RequestRegistry, default_registry
from .request import ParamsBuilder
from .response import Response
from .service import Service
from .types import ValidationOutcome

logger = logging.getLogger(__name__)

# Validator statuses meaning "the token is no good", as opposed to a broken request
INVALID_TOKEN_STATUSES = frozenset({401, 403, 404})

Credentials = Union[Mapping[str, Any], Callable[[ParamsBuilder], Any]]


class Session:
    """
    Authenticated identity context for one logical connection to the backend.

    Usage:
        with Session(config_file="skyport.json", environment="openstack_admin") as session:
            session.authenticate()
            keystone = session.get_service("identity")
            response = keystone.request("list_tenants")

            cached = session.dump()

        restored = Session.from_dump(cached)
    """

    def __init__(
        self,
        config: Optional[Union[Environment, dict[str, Any]]] = None,
        config_file: Optional[Union[str, Path]] = None,
        environment: Optional[str] = None,
        session_dump: Optional[str] = None,
        log_file: Optional[Union[str, Path]] = None,
        default_session_data: Optional[dict[str, Any]] = None,
        registry: Optional[RequestRegistry] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize a session from exactly one environment source.

        Args:
            config: Inline environment description
            config_file: JSON file of named environments (requires ``environment``)
            environment: Environment name inside ``config_file``
            session_dump: Output of a previous ``dump()``
            log_file: File receiving HTTP activity (default: SKYPORT_LOG_FILE)
            default_session_data: Previously obtained auth payload; the session
                starts authenticated with it
            registry: Request registry (default: the built-in catalog)
            http_client: Shared HTTP client; when omitted the session creates its own
            timeout: Request timeout in seconds (default: SKYPORT_HTTP_TIMEOUT or 30.0)

        Raises:
            InitializationError: No environment source given, or it is incomplete
        """
        self._auth_response: Optional[dict[str, Any]] = None

        if session_dump is not None:
            self._environment, self._auth_response = self._parse_dump(session_dump)
        elif config_file is not None:
            self._environment = load_environment(config_file, environment)
        elif config is not None:
            self._environment = parse_environment(config)
        else:
            raise InitializationError()

        if default_session_data is not None and self._auth_response is None:
            if not isinstance(default_session_data, dict):
                raise InitializationError("default_session_data must be an auth payload mapping.")
            self._auth_response = copy.deepcopy(default_session_data)

        self.log_file = log_file or default_log_file()
        self.registry = registry if registry is not None else default_registry()
        self.timeout = timeout if timeout is not None else http_timeout()
        self._client = http_client
        self._owns_client = http_client is None
        self._services: dict[str, Service] = {}

    @classmethod
    def from_dump(cls, session_dump: str, **options: Any) -> "Session":
        """Create a session entirely from a ``dump()`` string."""
        return cls(session_dump=session_dump, **options)

    def __enter__(self) -> "Session":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this session created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
            for service in self._services.values():
                service.bind_client(None)

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
                event_hooks=http_event_hooks(self.log_file),
            )
            self._owns_client = True
            # Facades created before a close() still point at the old client
            for service in self._services.values():
                service.bind_client(self._client)
        return self._client

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def auth_response(self) -> Optional[dict[str, Any]]:
        """The stored auth payload, ``{"headers": ..., "body": ...}``, or None."""
        return self._auth_response

    @property
    def authenticated(self) -> bool:
        return self._auth_response is not None

    @property
    def services(self) -> dict[str, Service]:
        """Facades materialized so far, by service name."""
        return dict(self._services)

    @property
    def auth_service(self) -> Service:
        """A short-lived facade for the environment's auth service."""
        return Service(
            provider=self._environment.provider,
            service=self._environment.auth_service.name,
            registry=self.registry,
            http_client=self._ensure_client(),
            log_file=self.log_file,
            timeout=self.timeout,
        )

    def _bootstrap_data(self) -> dict[str, Any]:
        return {"auth_service": self._environment.auth_service.model_dump(mode="json", exclude_none=True)}

    def authenticate(self, credentials: Optional[Credentials] = None) -> "Session":
        """
        Authenticate against the environment's auth service.

        Args:
            credentials: Mapping used instead of the environment's
                auth_credentials, or a callback filling in the params builder

        Returns:
            This session

        Raises:
            AuthenticationError: The backend rejected the credentials; any
                previous auth payload is kept
            UnknownParamError: A credential is not a param of the bootstrap request
            ConnectionError: The auth service could not be reached
        """
        if credentials is None:
            credentials = self._environment.auth_credentials

        if callable(credentials):
            fill = credentials
        else:
            values = dict(credentials)

            def fill(params: ParamsBuilder) -> None:
                for key, value in values.items():
                    params[key] = value

        auth = self._environment.auth_service
        response: Response = self.auth_service.request(auth.request, self._bootstrap_data(), params=fill)

        if not response.ok:
            logger.warning("Authentication against %s failed with status %s", auth.host_uri, response.status)
            raise AuthenticationError(response.body, status_code=response.status)

        self._auth_response = response.to_session_data()
        self._refresh_services()
        logger.info("Authenticated against %s (%s)", auth.host_uri, response.request.api_version)
        return self

    def _run_validator(self) -> tuple[ValidationOutcome, Any]:
        if not self.authenticated:
            raise NotAuthenticatedError()

        validator = self._environment.auth_service.validator
        if not validator:
            raise ValidatorNotDefinedError()

        session_data = {**self._auth_response, **self._bootstrap_data()}
        try:
            response = self.auth_service.request(validator, session_data)
        except ConnectionError as e:
            return ValidationOutcome.ERROR, e

        if response.ok:
            return ValidationOutcome.VALID, response
        if response.status in INVALID_TOKEN_STATUSES:
            return ValidationOutcome.INVALID_TOKEN, response
        return ValidationOutcome.ERROR, response

    def check(self) -> ValidationOutcome:
        """
        Run the validator request and classify the result.

        Raises:
            NotAuthenticatedError: Called before authenticating
            ValidatorNotDefinedError: The environment names no validator request
        """
        outcome, _ = self._run_validator()
        return outcome

    def validate(self) -> bool:
        """
        Whether the stored token is still accepted by the backend.

        Returns:
            True if valid, False if the token is invalid or expired

        Raises:
            NotAuthenticatedError: Called before authenticating
            ValidatorNotDefinedError: The environment names no validator request
            ConnectionError: The auth service could not be reached
            ValidatorRequestError: The validator failed for another reason
        """
        outcome, detail = self._run_validator()
        if outcome == ValidationOutcome.VALID:
            return True
        if outcome == ValidationOutcome.INVALID_TOKEN:
            return False
        if isinstance(detail, ConnectionError):
            raise detail
        raise ValidatorRequestError(detail.status, detail.body)

    def get_service(self, name: str) -> Service:
        """
        The facade for ``name``, created on first use and reused afterwards.

        Raises:
            NotAuthenticatedError: Called before authenticating
        """
        if not self.authenticated:
            raise NotAuthenticatedError()

        if name not in self._services:
            logger.debug("Creating %s service facade", name)
            self._services[name] = Service(
                provider=self._environment.provider,
                service=name,
                default_session_data=copy.deepcopy(self._auth_response),
                registry=self.registry,
                http_client=self._ensure_client(),
                log_file=self.log_file,
                timeout=self.timeout,
            )
        return self._services[name]

    def _refresh_services(self) -> None:
        for service in self._services.values():
            service.default_session_data = copy.deepcopy(self._auth_response)

    def dump(self) -> str:
        """Serialize environment and auth payload as canonical JSON."""
        return json.dumps(
            {
                "environment": self._environment.model_dump(mode="json", exclude_none=True),
                "auth_response": self._auth_response,
            },
            sort_keys=True,
            separators=(",", ":"),
        )

    def load(self, session_dump: str) -> "Session":
        """
        Replace environment and auth payload with those of a dump.

        Existing facades are refreshed in place.

        Raises:
            SessionLoadError: The dump cannot be parsed
        """
        self._environment, self._auth_response = self._parse_dump(session_dump)
        self._refresh_services()
        return self

    @staticmethod
    def _parse_dump(session_dump: str) -> tuple[Environment, Optional[dict[str, Any]]]:
        try:
            data = json.loads(session_dump)
        except (TypeError, json.JSONDecodeError) as e:
            raise SessionLoadError(f"Session dump is not valid JSON: {e}") from e

        if not isinstance(data, dict) or "environment" not in data or "auth_response" not in data:
            raise SessionLoadError("Session dump must have 'environment' and 'auth_response' keys.")

        try:
            environment = parse_environment(data["environment"])
        except InitializationError as e:
            raise SessionLoadError(e.message) from e

        auth_response = data["auth_response"]
        if auth_response is not None and not isinstance(auth_response, dict):
            raise SessionLoadError("Session dump 'auth_response' must be an object or null.")

        return environment, auth_response

    def __repr__(self) -> str:
        state = "authenticated" if self.authenticated else "unauthenticated"
        return f"<Session {self._environment.provider}/{self._environment.auth_service.name} {state}>"
