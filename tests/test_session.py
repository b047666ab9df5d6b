"""Unit tests for Session: authentication lifecycle, facades, dump/load."""

import json

import httpx
import pytest

from skyport import (
    AuthenticationError,
    ConnectionError,
    EnvironmentNotDefinedError,
    InitializationError,
    InvalidConfigFilePathError,
    NotAuthenticatedError,
    Service,
    Session,
    SessionLoadError,
    UnknownParamError,
    ValidationOutcome,
    ValidatorNotDefinedError,
    ValidatorRequestError,
)

from .conftest import PASSWORD, PUBLIC_URL, USERNAME


def token_of(session_data: dict) -> str:
    return session_data["body"]["access"]["token"]["id"]


# Authentication


def test_authenticate_with_config_file_credentials(keystone, new_session) -> None:
    """Test authenticating with the credentials from the config file."""
    session = new_session()

    assert session.authenticated is False
    assert session.authenticate() is session
    assert session.authenticated is True
    assert token_of(session.auth_response) in keystone.tokens


def test_authenticate_with_callback(keystone, new_session) -> None:
    """Test credentials supplied by a params callback."""
    session = new_session()

    def credentials(params) -> None:
        params["username"] = USERNAME
        params["password"] = PASSWORD

    session.authenticate(credentials)

    assert session.authenticated is True


def test_authenticate_with_mapping(keystone, new_session) -> None:
    """Test credentials supplied as a mapping."""
    session = new_session()

    session.authenticate({"username": USERNAME, "password": PASSWORD, "tenant_name": "admin"})

    assert session.authenticated is True


def test_authentication_error(keystone, new_session) -> None:
    """Test that rejected credentials raise AuthenticationError."""
    session = new_session()

    with pytest.raises(AuthenticationError) as exc_info:
        session.authenticate({"username": "invalidusername", "password": "invalidpassword"})

    assert exc_info.value.status_code == 401
    assert "Invalid user / password" in str(exc_info.value)
    assert session.authenticated is False


def test_failed_authentication_keeps_previous_state(keystone, new_session) -> None:
    """Test that a failed re-authentication leaves the old auth payload in place."""
    session = new_session()
    session.authenticate()
    before = session.auth_response

    with pytest.raises(AuthenticationError):
        session.authenticate({"username": USERNAME, "password": "wrong"})

    assert session.authenticated is True
    assert session.auth_response is before


def test_unknown_credential_fails_fast(keystone, new_session) -> None:
    """Test that a credential the bootstrap request does not declare is rejected."""
    session = new_session()

    with pytest.raises(UnknownParamError, match="api_key"):
        session.authenticate({"username": USERNAME, "api_key": "nope"})

    assert len(keystone.router.calls) == 0


def test_reauthenticate_refreshes_service_in_place(keystone, new_session) -> None:
    """Test that re-authenticating updates existing facades instead of replacing them."""
    session = new_session()
    session.authenticate()

    identity = session.get_service("identity")
    first_token = token_of(identity.default_session_data)

    session.authenticate()

    assert session.get_service("identity") is identity
    new_token = token_of(session.get_service("identity").default_session_data)
    assert new_token != first_token
    assert token_of(identity.default_session_data) == new_token


def test_log_file_receives_activity(keystone, new_session, log_file_path) -> None:
    """Test that HTTP activity is appended to the log file."""
    session = new_session()
    session.authenticate()

    assert log_file_path.is_file()
    contents = log_file_path.read_text(encoding="utf-8")
    assert f"POST {PUBLIC_URL}/tokens" in contents
    assert PASSWORD not in contents


# Construction


def test_new_with_inline_config(config) -> None:
    """Test constructing a session from an inline config."""
    session = Session(config=config)

    assert session.environment.model_dump(exclude_none=True) == config
    assert session.auth_service.service == config["auth_service"]["name"]
    assert session.authenticated is False


def test_new_without_arguments() -> None:
    """Test that a session needs an environment source."""
    with pytest.raises(InitializationError) as exc_info:
        Session()

    assert exc_info.value.message


def test_new_with_incomplete_config(config) -> None:
    """Test that missing auth_service keys are reported."""
    del config["auth_service"]["host_uri"]

    with pytest.raises(InitializationError, match="host_uri"):
        Session(config=config)


def test_new_with_missing_config_file(tmp_path) -> None:
    """Test a config file path that does not exist."""
    with pytest.raises(InvalidConfigFilePathError):
        Session(config_file=tmp_path / "missing.json", environment="openstack_admin")


def test_new_with_unknown_environment(config_file) -> None:
    """Test an environment name missing from the config file."""
    with pytest.raises(EnvironmentNotDefinedError, match="staging"):
        Session(config_file=config_file, environment="staging")


def test_new_with_default_session_data(keystone, config) -> None:
    """Test seeding a session with a previously obtained auth payload."""
    with Session(config=config) as first:
        first.authenticate()

    with Session(config=config, default_session_data=first.auth_response) as second:
        assert second.authenticated is True
        assert second.get_service("identity").default_session_data == first.auth_response
        assert second.validate() is True


def test_new_with_default_session_data_is_copied(keystone, config) -> None:
    with Session(config=config) as first:
        first.authenticate()

    seed = json.loads(json.dumps(first.auth_response))
    with Session(config=config, default_session_data=seed) as second:
        seed["body"]["access"]["token"]["id"] = "tampered"

        assert token_of(second.auth_response) == token_of(first.auth_response)


@pytest.mark.parametrize("seed", ["garbage", ["headers", "body"], 42])
def test_new_with_malformed_default_session_data(config, seed) -> None:
    with pytest.raises(InitializationError):
        Session(config=config, default_session_data=seed)


# Validation


def test_validate_returns_true_for_valid_session(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()

    assert session.validate() is True
    assert session.check() == ValidationOutcome.VALID


def test_validate_returns_false_for_invalid_token(keystone, new_session) -> None:
    """Test that a rejected token is reported as False, not raised."""
    session = new_session()
    session.authenticate()

    session.auth_response["body"]["access"]["token"]["id"] = "invalidtokenid"

    assert session.validate() is False
    assert session.check() == ValidationOutcome.INVALID_TOKEN


def test_validate_before_authenticating(new_session) -> None:
    with pytest.raises(NotAuthenticatedError):
        new_session().validate()


def test_validate_with_unscoped_token(keystone, new_session) -> None:
    """Test validating a token obtained without a tenant (empty catalog)."""
    session = new_session()
    session.authenticate({"username": USERNAME, "password": PASSWORD})

    assert session.auth_response["body"]["access"]["serviceCatalog"] == []
    assert session.validate() is True


def test_validate_without_validator(keystone, config) -> None:
    del config["auth_service"]["validator"]

    with Session(config=config) as session:
        session.authenticate()

        with pytest.raises(ValidatorNotDefinedError):
            session.validate()


def test_validate_connection_error(keystone, new_session) -> None:
    """Test that transport failures are raised rather than reported as invalid."""
    session = new_session()
    session.authenticate()
    keystone.router.get(f"{PUBLIC_URL}/tenants").mock(side_effect=httpx.ConnectError("refused"))

    assert session.check() == ValidationOutcome.ERROR
    with pytest.raises(ConnectionError):
        session.validate()


def test_validate_server_error(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()
    keystone.router.get(f"{PUBLIC_URL}/tenants").mock(return_value=httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(ValidatorRequestError) as exc_info:
        session.validate()

    assert exc_info.value.status_code == 500


# Service facades


def test_get_service_before_authenticating(new_session) -> None:
    with pytest.raises(NotAuthenticatedError):
        new_session().get_service("identity")


def test_get_service_is_memoized(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()

    identity = session.get_service("identity")

    assert isinstance(identity, Service)
    assert identity.service == "identity"
    assert session.get_service("identity") is identity
    assert session.services == {"identity": identity}


def test_service_survives_session_close(keystone, new_session) -> None:
    """Test that facades follow the session onto a new HTTP client after close()."""
    session = new_session()
    session.authenticate()
    identity = session.get_service("identity")

    session.close()
    session.authenticate()

    response = identity.request("list_tenants")

    assert response.status == 200
    assert identity._client is session._client


def test_service_request_after_session_close(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()
    identity = session.get_service("identity")

    session.close()

    assert identity.request("list_tenants").status == 200
    identity.close()


def test_service_session_data_is_not_shared(keystone, new_session) -> None:
    """Test that changing a facade's session data leaves the session untouched."""
    session = new_session()
    session.authenticate()
    dumped = session.dump()

    identity = session.get_service("identity")
    identity.default_session_data["body"]["access"]["token"]["id"] = "tampered"

    assert session.dump() == dumped
    assert token_of(session.auth_response) != "tampered"


def test_create_tenant_scenario(keystone, config) -> None:
    """Test authenticating and creating a tenant through the identity facade."""
    with Session(config=config) as session:
        session.authenticate()

        response = session.get_service("identity").request("create_tenant", params=lambda p: setattr(p, "name", "X"))

    assert response.status == 200
    assert response.ok is True
    assert response.body["tenant"]["name"] == "X"
    assert response.request.api_version == "v2"


def test_v3_session(keystone, v3_config) -> None:
    """Test a Keystone v3 session, whose token travels in a header."""
    with Session(config=v3_config) as session:
        session.authenticate()

        assert session.auth_response["headers"]["x-subject-token"] in keystone.tokens
        assert session.validate() is True

        response = session.get_service("identity").request("list_projects")

    assert response.status == 200
    assert response.request.api_version == "v3"


# Dump and load


def test_dump(keystone, new_session) -> None:
    """Test that dump serializes environment and auth payload."""
    session = new_session()
    session.authenticate()

    data = json.loads(session.dump())

    assert set(data) == {"environment", "auth_response"}
    assert data["environment"] == session.environment.model_dump(mode="json", exclude_none=True)
    assert data["auth_response"] == session.auth_response


def test_dump_round_trip(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()

    dumped = session.dump()

    assert Session.from_dump(dumped).dump() == dumped
    assert new_session().load(dumped).dump() == dumped


def test_load_returns_itself(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()

    assert session.load(session.dump()) is session


def test_load_updates_services(keystone, new_session) -> None:
    """Test that loading another session's dump converges facade data."""
    session1 = new_session()
    session1.authenticate()
    identity1 = session1.get_service("identity")

    session2 = new_session()
    session2.authenticate()
    identity2 = session2.get_service("identity")

    session1.load(session2.dump())

    assert identity1 is not identity2
    assert identity1.default_session_data == identity2.default_session_data


def test_from_dump_creates_authenticated_session(keystone, new_session) -> None:
    session = new_session()
    session.authenticate()

    dumped = session.dump()
    expected = json.loads(dumped)
    restored = Session.from_dump(dumped)

    assert restored.authenticated is True
    assert restored.environment.model_dump(mode="json", exclude_none=True) == expected["environment"]
    assert restored.auth_response == expected["auth_response"]
    assert restored.get_service("identity").default_session_data == expected["auth_response"]
    assert restored.validate() is True


def test_from_dump_unauthenticated(config) -> None:
    restored = Session.from_dump(Session(config=config).dump())

    assert restored.authenticated is False


@pytest.mark.parametrize(
    "dumped",
    [
        "not json",
        json.dumps(["environment", "auth_response"]),
        json.dumps({"environment": {"provider": "openstack"}}),
        json.dumps({"environment": {"provider": "openstack"}, "auth_response": None}),
    ],
)
def test_load_invalid_dump(dumped, config) -> None:
    session = Session(config=config)

    with pytest.raises(SessionLoadError):
        session.load(dumped)

    assert session.environment.provider == "openstack"


@pytest.mark.parametrize("auth_response", ["garbage", ["headers", "body"], 42, True])
def test_load_dump_with_malformed_auth_response(auth_response, config) -> None:
    session = Session(config=config)
    dumped = json.dumps({"environment": config, "auth_response": auth_response})

    with pytest.raises(SessionLoadError, match="auth_response"):
        session.load(dumped)

    with pytest.raises(SessionLoadError):
        Session.from_dump(dumped)

    assert session.authenticated is False
