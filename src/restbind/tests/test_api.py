import pytest

from ..api import Api, EndpointConfig
from ..endpoint import Endpoint
from ..exceptions import InvalidDeclarationError
from ..utils import UNSPECIFIED
from .testing import RecordingTransport, User, registry


@pytest.fixture
def target():
    api = Api(base_route="/api", head_response_header_prefix="X-Api-", registry=registry)
    api.endpoint("users", route="/users/:id", model="User")
    api.endpoint("groups").with_route("/groups/:id").with_model("Group").with_container("items")
    return api


def test_endpoint_config(target):
    config = target.endpoints["groups"]
    assert config == EndpointConfig(route="/groups/:id", model="Group", container="items")
    assert config.base_route is UNSPECIFIED


def test_fluent_setters():
    config = EndpointConfig().with_route("/x").with_model(User).with_base_route("/v2")
    assert config.route == "/x"
    assert config.model is User
    assert config.base_route == "/v2"
    assert config.container is UNSPECIFIED


def test_build(target):
    transport = RecordingTransport()
    client = target.build(transport)
    assert set(client) == {"users", "groups"}
    assert len(client) == 2
    assert isinstance(client["users"], Endpoint)
    assert client.users is client["users"]
    assert client.groups.container == "items"
    assert client.users.container == "users"
    assert client.users.route.template == "/api/users/:id"
    assert client.users.head_response_header_prefix == "X-Api-"
    assert client.users.transport is transport
    assert client.users.mapper is target.mapper


def test_build_unknown_endpoint(target):
    client = target.build(RecordingTransport())
    with pytest.raises(AttributeError):
        client.posts
    with pytest.raises(KeyError):
        client["posts"]


def test_build_without_model():
    api = Api()
    api.endpoint("users", route="/users")
    with pytest.raises(InvalidDeclarationError):
        api.build(RecordingTransport())


def test_redefining_an_endpoint(target):
    target.endpoint("users", route="/people/:id", model="User")
    client = target.build(RecordingTransport())
    assert client.users.route.template == "/api/people/:id"


def test_from_settings():
    api = Api.from_settings(
        {
            "base_route": "/api",
            "head_response_header_prefix": "X-Api-",
            "endpoints": {
                "users": {"route": "/users/:id", "model": "User"},
                "legacy": {"route": "/old", "model": "User", "base_route": "/v1"},
            },
        },
        registry=registry,
    )
    assert api.base_route == "/api"
    assert api.head_response_header_prefix == "X-Api-"
    assert api.endpoints["legacy"].base_route == "/v1"
    client = api.build(RecordingTransport())
    assert client.legacy.route.template == "/v1/old"


def test_from_settings_unknown_key():
    with pytest.raises(InvalidDeclarationError) as excinfo:
        Api.from_settings({"endpoints": {"users": {"model": "User", "actions": {}}}})
    assert "actions" in str(excinfo.value)


@pytest.mark.asyncio
async def test_end_to_end(target):
    transport = RecordingTransport()
    transport.respond(body={"users": [{"id": 1, "name": "Ann"}], "count": 1, "limit": 10, "skip": 0})
    async with target.build(transport) as client:
        users = await client.users.get({"_limit": 10})
        assert [u.name for u in users] == ["Ann"]
        assert users.pagination.pages_count == 1
    assert transport.closed


@pytest.mark.parametrize("name", ["get", "items", "keys", "values", "transport", "aclose", "_private"])
def test_endpoint_name_clashing_with_client(name):
    with pytest.raises(InvalidDeclarationError):
        Api().endpoint(name, route="/x", model="User")
