"""
Helpers for reading session data.

Session data is one of two shapes:

* bootstrap data, ``{"auth_service": {...}}``, used before a token exists;
* an auth payload, ``{"headers": {...}, "body": {...}}``, as stored by a
  session after authenticating. Keystone v2 bodies carry ``access`` (token
  and ``serviceCatalog``); v3 bodies carry ``token`` (with ``catalog``) and
  the token id travels in the ``X-Subject-Token`` header.

Either shape may also carry a ``base_url`` override.
"""

import re
from typing import Any, Optional

from .exceptions import MissingServiceEndpointError
from .types import EndpointType

_URL_VERSION_RE = re.compile(r"/(v\d+(?:\.\d+)*)(?=/|$)", re.IGNORECASE)


def version_from_url(url: Optional[str]) -> Optional[str]:
    """Extract the API version embedded in a URL path, e.g. ".../v2.0" -> "v2.0"."""
    if not url:
        return None
    match = _URL_VERSION_RE.search(url)
    return match.group(1).lower() if match else None


def _header(headers: Optional[dict[str, str]], name: str) -> Optional[str]:
    if not headers:
        return None
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _body(session_data: dict[str, Any]) -> dict[str, Any]:
    body = session_data.get("body")
    return body if isinstance(body, dict) else {}


def auth_token(session_data: dict[str, Any]) -> Optional[str]:
    """Token id from an auth payload, or None for bootstrap data."""
    body = _body(session_data)
    if "access" in body:
        return body["access"].get("token", {}).get("id")
    return _header(session_data.get("headers"), "X-Subject-Token")


def find_catalog_entry(session_data: dict[str, Any], service: str) -> Optional[dict[str, Any]]:
    """The service catalog entry whose type matches ``service``."""
    body = _body(session_data)
    if "access" in body:
        catalog = body["access"].get("serviceCatalog") or []
    elif "token" in body:
        catalog = body["token"].get("catalog") or []
    else:
        return None
    return next((entry for entry in catalog if entry.get("type") == service), None)


def has_catalog(session_data: dict[str, Any]) -> bool:
    body = _body(session_data)
    return "access" in body or "token" in body


def catalog_url(entry: dict[str, Any], endpoint_type: EndpointType = EndpointType.PUBLIC) -> Optional[str]:
    """URL of the first endpoint of a catalog entry for the given interface."""
    interface = EndpointType(endpoint_type).value
    endpoints = entry.get("endpoints") or []
    if not endpoints:
        return None
    # v2 entries list URLs per interface, v3 entries list one endpoint per interface
    if f"{interface}URL" in endpoints[0]:
        return endpoints[0][f"{interface}URL"]
    for endpoint in endpoints:
        if endpoint.get("interface") == interface:
            return endpoint.get("url")
    return endpoints[0].get("url")


def service_url(
    session_data: dict[str, Any],
    service: str,
    request_name: str,
    endpoint_type: EndpointType = EndpointType.PUBLIC,
) -> str:
    """
    Base URL a request for ``service`` is sent to.

    Priority: explicit ``base_url``, then the service catalog, then the auth
    service host. The last one covers bootstrap data and unscoped tokens,
    whose catalog is empty.

    Raises:
        MissingServiceEndpointError: No source yields a URL
    """
    if session_data.get("base_url"):
        return str(session_data["base_url"]).rstrip("/")

    if has_catalog(session_data):
        entry = find_catalog_entry(session_data, service)
        url = catalog_url(entry, endpoint_type) if entry else None
        if url:
            return url.rstrip("/")

    auth_service = session_data.get("auth_service") or {}
    if auth_service.get("host_uri"):
        return str(auth_service["host_uri"]).rstrip("/")

    raise MissingServiceEndpointError(service, request_name)


def infer_version(session_data: dict[str, Any], service: str, request_name: str) -> Optional[str]:
    """
    Version hint carried by session data.

    Returns None when nothing in the data pins a version (e.g. bootstrap
    data whose host URI has no version segment).

    Raises:
        MissingServiceEndpointError: The catalog has no entry for the service
    """
    auth_service = session_data.get("auth_service")
    if auth_service:
        if auth_service.get("api_version"):
            return str(auth_service["api_version"])
        return version_from_url(auth_service.get("host_uri"))

    if session_data.get("base_url"):
        return version_from_url(str(session_data["base_url"]))

    if has_catalog(session_data):
        entry = find_catalog_entry(session_data, service)
        if entry is None:
            raise MissingServiceEndpointError(service, request_name)
        return version_from_url(catalog_url(entry)) or "v1"

    return None
