"""skyport - authenticated sessions and versioned service requests for OpenStack-style clouds."""

from .exceptions import (
    AuthenticationError,
    ConnectionError,
    EnvironmentNotDefinedError,
    InitializationError,
    InvalidConfigFilePathError,
    InvalidParamsError,
    MissingServiceEndpointError,
    NotAuthenticatedError,
    RequestNotFoundError,
    SessionDataNotProvidedError,
    SessionLoadError,
    SkyportError,
    UnknownParamError,
    ValidatorNotDefinedError,
    ValidatorRequestError,
)
from .models import AuthService, Environment, RawRequest
from .registry import RequestRegistry, default_registry
from .request import ParamsBuilder, RequestDefinition, RequestParams
from .response import Response
from .service import Service
from .session import Session
from .types import EndpointType, HttpMethod, ValidationOutcome, VersionPolicy

__version__ = "0.1.0"

__all__ = [
    # Main entry points
    "Session",
    "Service",
    "Response",
    # Request definitions
    "RequestDefinition",
    "RequestParams",
    "ParamsBuilder",
    "RequestRegistry",
    "default_registry",
    # Models
    "Environment",
    "AuthService",
    "RawRequest",
    # Types
    "EndpointType",
    "HttpMethod",
    "ValidationOutcome",
    "VersionPolicy",
    # Exceptions
    "SkyportError",
    "InitializationError",
    "InvalidConfigFilePathError",
    "EnvironmentNotDefinedError",
    "AuthenticationError",
    "NotAuthenticatedError",
    "ValidatorNotDefinedError",
    "ValidatorRequestError",
    "SessionDataNotProvidedError",
    "RequestNotFoundError",
    "MissingServiceEndpointError",
    "UnknownParamError",
    "InvalidParamsError",
    "ConnectionError",
    "SessionLoadError",
]
