"""Custom exceptions for the skyport SDK."""

from typing import Any, Optional


class SkyportError(Exception):
    """Base exception for all skyport errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InitializationError(SkyportError):
    """Raised when a session is constructed from incomplete or malformed input."""

    def __init__(
        self,
        message: str = (
            "The session could not find :session_dump, :config_file, or :config "
            "in the constructor arguments provided"
        ),
    ) -> None:
        super().__init__(message)


class InvalidConfigFilePathError(InitializationError):
    """Raised when the config file path does not point to a file."""

    def __init__(self, path: Any) -> None:
        super().__init__(f"The config file at {path} does not exist!")
        self.path = path


class EnvironmentNotDefinedError(InitializationError):
    """Raised when the config file has no entry for the requested environment."""

    def __init__(self, path: Any, environment: Optional[str]) -> None:
        super().__init__(f"The environment '{environment}' is not defined in {path}.")
        self.path = path
        self.environment = environment


class AuthenticationError(SkyportError):
    """Raised when the backend rejects the bootstrap authentication request."""

    def __init__(self, last_auth_body: Any = None, status_code: Optional[int] = None) -> None:
        super().__init__(
            f"Authentication failed. The server returned {last_auth_body}",
            status_code=status_code,
        )
        self.body = last_auth_body


class NotAuthenticatedError(SkyportError):
    """Raised when an operation needs an authenticated session."""

    def __init__(self, message: str = "Session is not authenticated. Please authenticate before proceeding.") -> None:
        super().__init__(message)


class ValidatorNotDefinedError(SkyportError):
    """Raised by validate() when the environment names no validator request."""

    def __init__(self) -> None:
        super().__init__("The validator request name is not defined for this session object.")


class ValidatorRequestError(SkyportError):
    """Raised when the validator request fails for reasons other than an invalid token."""

    def __init__(self, status_code: int, body: Any = None) -> None:
        super().__init__(
            f"The validator request failed with status {status_code}: {body}",
            status_code=status_code,
        )
        self.body = body


class SessionDataNotProvidedError(SkyportError):
    """Raised when a request has no session data to work with."""

    def __init__(self, service: Optional[str] = None) -> None:
        prefix = f"{service}: " if service else ""
        super().__init__(
            f"{prefix}default_session_data is not initialized and no session data "
            "was provided in the method call."
        )


class RequestNotFoundError(SkyportError):
    """Raised when no registered request definition matches a lookup."""

    def __init__(
        self,
        provider: str,
        service: str,
        name: str,
        api_version: Optional[str] = None,
    ) -> None:
        version = f" {api_version}" if api_version else ""
        super().__init__(f"No request '{name}' is registered for {provider} {service}{version}.")
        self.provider = provider
        self.service = service
        self.name = name
        self.api_version = api_version


class MissingServiceEndpointError(SkyportError):
    """Raised when the service catalog has no entry for the requested service."""

    def __init__(self, service: str, request_name: str) -> None:
        super().__init__(
            f"The session's service catalog does not have an entry for the {service} "
            f"service. Therefore, I don't know to which base URL the request "
            f"'{request_name}' should be sent. This may be because you are using a "
            "default or unscoped token."
        )
        self.service = service
        self.request_name = request_name


class UnknownParamError(SkyportError, AttributeError):
    """Raised when a parameter that the request does not declare is assigned."""

    def __init__(self, name: str, request_name: Optional[str] = None) -> None:
        where = f" for request '{request_name}'" if request_name else ""
        super().__init__(f"Unknown param name '{name}'{where}.")
        self.name = name


class InvalidParamsError(SkyportError):
    """Raised when request parameters fail schema validation."""


class ConnectionError(SkyportError):
    """Raised when the backend cannot be reached (connection errors, timeouts)."""


class SessionLoadError(SkyportError, ValueError):
    """Raised when a session dump cannot be parsed."""
