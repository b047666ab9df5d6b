"""
Pytest configuration and fixtures for skyport tests.

The backend is simulated with respx: ``keystone`` mounts a fake identity
service (v2.0 and v3) plus a compute endpoint, issuing a fresh token on
every successful authentication and rejecting unknown tokens with 401.
"""
import itertools
import json
from typing import Any, Optional

import httpx
import pytest
import respx

from skyport import Session

USERNAME = "admin"
PASSWORD = "s3cret"
TENANT = "admin"

KEYSTONE_HOST = "http://keystone.test:5000"
PUBLIC_URL = f"{KEYSTONE_HOST}/v2.0"
ADMIN_URL = "http://keystone.test:35357/v2.0"
V3_URL = f"{KEYSTONE_HOST}/v3"
COMPUTE_URL = "http://nova.test:8774/v2/tenant-1"


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


class FakeKeystone:
    """Token-issuing identity backend driven by respx side effects."""

    def __init__(self) -> None:
        self.tokens: set[str] = set()
        self._ids = itertools.count(1)
        self.router: Optional[respx.Router] = None

    def issue(self) -> str:
        token = f"token-{next(self._ids)}"
        self.tokens.add(token)
        return token

    def authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("X-Auth-Token") in self.tokens

    def v2_catalog(self) -> list[dict[str, Any]]:
        return [
            {
                "type": "identity",
                "name": "keystone",
                "endpoints": [{"publicURL": PUBLIC_URL, "adminURL": ADMIN_URL, "internalURL": PUBLIC_URL}],
            },
            {
                "type": "compute",
                "name": "nova",
                "endpoints": [{"publicURL": COMPUTE_URL, "adminURL": COMPUTE_URL, "internalURL": COMPUTE_URL}],
            },
        ]

    def create_token_v2(self, request: httpx.Request) -> httpx.Response:
        auth = json.loads(request.content)["auth"]
        if "token" in auth:
            if auth["token"]["id"] not in self.tokens:
                return _error(401, "The request you have made requires authentication.")
        elif auth.get("passwordCredentials") != {"username": USERNAME, "password": PASSWORD}:
            return _error(401, "Invalid user / password")

        token = self.issue()
        access: dict[str, Any] = {
            "token": {"id": token, "expires": "2026-10-20T00:00:00Z"},
            "user": {"name": USERNAME},
            "serviceCatalog": self.v2_catalog() if auth.get("tenantName") else [],
        }
        return httpx.Response(200, json={"access": access})

    def list_tenants(self, request: httpx.Request) -> httpx.Response:
        if not self.authorized(request):
            return _error(401, "The request you have made requires authentication.")
        return httpx.Response(200, json={"tenants": [{"id": "tenant-1", "name": TENANT, "enabled": True}]})

    def create_tenant(self, request: httpx.Request) -> httpx.Response:
        if not self.authorized(request):
            return _error(401, "The request you have made requires authentication.")
        tenant = json.loads(request.content)["tenant"]
        return httpx.Response(200, json={"tenant": {"id": "tenant-2", **tenant}})

    def create_token_v3(self, request: httpx.Request) -> httpx.Response:
        identity = json.loads(request.content)["auth"]["identity"]
        user = identity.get("password", {}).get("user", {})
        if user.get("name") != USERNAME or user.get("password") != PASSWORD:
            return _error(401, "The request you have made requires authentication.")

        token = self.issue()
        body = {
            "token": {
                "expires_at": "2026-10-20T00:00:00Z",
                "catalog": [
                    {
                        "type": "identity",
                        "endpoints": [
                            {"interface": "public", "url": V3_URL},
                            {"interface": "admin", "url": V3_URL},
                        ],
                    }
                ],
            }
        }
        return httpx.Response(201, headers={"X-Subject-Token": token}, json=body)

    def list_projects(self, request: httpx.Request) -> httpx.Response:
        if not self.authorized(request):
            return _error(401, "The request you have made requires authentication.")
        return httpx.Response(200, json={"projects": [{"id": "p-1", "name": TENANT}]})

    def list_servers(self, request: httpx.Request) -> httpx.Response:
        if not self.authorized(request):
            return _error(401, "The request you have made requires authentication.")
        return httpx.Response(200, json={"servers": [{"id": "srv-1", "name": "web"}]})


@pytest.fixture
def keystone():
    """Fake identity and compute backend mounted on respx."""
    fake = FakeKeystone()
    with respx.mock(assert_all_called=False) as router:
        router.post(f"{PUBLIC_URL}/tokens").mock(side_effect=fake.create_token_v2)
        router.get(f"{PUBLIC_URL}/tenants").mock(side_effect=fake.list_tenants)
        router.post(f"{ADMIN_URL}/tenants").mock(side_effect=fake.create_tenant)
        router.post(f"{V3_URL}/auth/tokens").mock(side_effect=fake.create_token_v3)
        router.get(f"{V3_URL}/projects").mock(side_effect=fake.list_projects)
        router.route(method="GET", host="nova.test", path__startswith="/v2/tenant-1/servers").mock(
            side_effect=fake.list_servers
        )
        fake.router = router
        yield fake


@pytest.fixture
def config() -> dict[str, Any]:
    """Inline environment for a Keystone v2.0 admin."""
    return {
        "provider": "openstack",
        "auth_service": {
            "name": "identity",
            "host_uri": PUBLIC_URL,
            "request": "create_token",
            "validator": "list_tenants",
        },
        "auth_credentials": {
            "username": USERNAME,
            "password": PASSWORD,
            "tenant_name": TENANT,
        },
    }


@pytest.fixture
def v3_config() -> dict[str, Any]:
    """Inline environment for Keystone v3."""
    return {
        "provider": "openstack",
        "auth_service": {
            "name": "identity",
            "host_uri": KEYSTONE_HOST,
            "request": "create_token",
            "validator": "list_projects",
            "api_version": "v3",
        },
        "auth_credentials": {
            "username": USERNAME,
            "password": PASSWORD,
            "project_name": TENANT,
        },
    }


@pytest.fixture
def config_file(tmp_path, config):
    """JSON config file with an ``openstack_admin`` environment."""
    path = tmp_path / "skyport.json"
    path.write_text(json.dumps({"openstack_admin": config}), encoding="utf-8")
    return path


@pytest.fixture
def log_file_path(tmp_path):
    return tmp_path / "logs" / "skyport.log"


@pytest.fixture
def new_session(config_file, log_file_path):
    """Factory for unauthenticated sessions built from the config file."""
    sessions = []

    def factory() -> Session:
        session = Session(config_file=config_file, environment="openstack_admin", log_file=log_file_path)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()
