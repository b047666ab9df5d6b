"""Example usage of a skyport session against a Keystone v2.0 deployment."""

from skyport import Session


def example_with_inline_config():
    """Authenticate, create a tenant, and cache the session."""
    config = {
        "provider": "openstack",
        "auth_service": {
            "name": "identity",
            "host_uri": "http://devstack:5000/v2.0",
            "request": "create_token",
            "validator": "list_tenants",
        },
        "auth_credentials": {
            "username": "admin",
            "password": "secret",
            "tenant_name": "admin",
        },
    }

    with Session(config=config, log_file="skyport.log") as session:
        session.authenticate()

        keystone = session.get_service("identity")

        def tenant(params):
            params.name = "Example Project"
            params.description = "Created by skyport"

        response = keystone.request("create_tenant", params=tenant)
        print(f"create_tenant ({response.request.api_version}): {response.status}")

        # Store this somewhere and restore it in another process
        return session.dump()


def example_with_cached_session(dumped: str):
    """Reuse a dumped session, re-authenticating only when the token expired."""
    with Session.from_dump(dumped) as session:
        if not session.validate():
            session.authenticate()

        response = session.get_service("compute").request("list_servers")
        print(f"Servers: {response.body}")


if __name__ == "__main__":
    example_with_cached_session(example_with_inline_config())
