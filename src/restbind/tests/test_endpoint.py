import pytest

from ..api import EndpointConfig
from ..declarative import ModelState, WriteIntent
from ..endpoint import Endpoint, ResultList, Route
from ..exceptions import ModelStateError, PaginationUnavailableError, ResponseError
from ..utils import UNSPECIFIED
from .testing import Article, Group, RecordingTransport, Tag, User, new_mapper


class TestRoute:
    def test_placeholders(self):
        assert Route("/users/:id/posts/:postId").placeholders == ["id", "postId"]

    def test_build(self):
        path, query = Route("/users/:id").build({"id": 5, "_limit": 10})
        assert path == "/users/5"
        assert query == {"_limit": 10}

    def test_missing_placeholder(self):
        assert Route("/users/:id").build({})[0] == "/users"
        assert Route("/users/:id").build({"id": None})[0] == "/users"
        assert Route("/users/:userId/posts/:id").build({"userId": 1})[0] == "/users/1/posts"

    def test_no_params(self):
        assert Route("/users/:id").build() == ("/users", {})

    def test_quoting(self):
        assert Route("/files/:name").build({"name": "a b/c"})[0] == "/files/a%20b%2Fc"

    def test_port_is_not_a_placeholder(self):
        route = Route("http://localhost:8080/users/:id")
        assert route.placeholders == ["id"]
        assert route.build({"id": 2})[0] == "http://localhost:8080/users/2"

    def test_root(self):
        assert Route("/").build()[0] == "/"


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def target(transport):
    return Endpoint(
        "users",
        EndpointConfig(route="/users/:id", model="User"),
        transport,
        mapper=new_mapper(),
        base_route="/api",
    )


def test_container_defaults_to_name(target):
    assert target.container == "users"
    target.config.container = "items"
    assert target.container == "items"


def test_base_route_override(transport):
    e = Endpoint(
        "users",
        EndpointConfig(route="/users", model="User", base_route="/v2"),
        transport,
        base_route="/api",
    )
    assert e.route.template == "/v2/users"


class TestGet:
    @pytest.mark.asyncio
    async def test_single(self, target, transport):
        transport.respond(body={"id": 1, "name": "Ann", "address": {"id": 2}})
        user = await target.get({"id": 1})
        assert transport.requests[0].method == "GET"
        assert transport.requests[0].url == "/api/users/1"
        assert transport.requests[0].params == {}
        assert transport.requests[0].json is UNSPECIFIED
        assert isinstance(user, User)
        assert user.state is ModelState.LOADED
        assert user.address.id == 2
        assert user.pagination is None
        assert user.endpoint is target

    @pytest.mark.asyncio
    async def test_list_with_pagination(self, target, transport):
        transport.respond(
            body={
                "users": [{"id": 1}, {"id": 2}],
                "count": 25,
                "limit": 10,
                "skip": 10,
            }
        )
        users = await target.get({"_limit": 10, "_skip": 10, "active": True})
        assert transport.requests[0].url == "/api/users"
        assert transport.requests[0].params == {"_limit": 10, "_skip": 10, "active": True}
        assert isinstance(users, ResultList)
        assert [u.id for u in users] == [1, 2]
        assert users.pagination is not None
        assert users.pagination.current_page == 2
        assert users.pagination.pages_count == 3

    @pytest.mark.asyncio
    async def test_top_level_array(self, target, transport):
        transport.respond(body=[{"id": 1}])
        users = await target.get()
        assert isinstance(users, ResultList)
        assert users.pagination is None
        assert [u.id for u in users] == [1]

    @pytest.mark.asyncio
    async def test_empty_body(self, target, transport):
        transport.respond(status=204)
        assert await target.get({"id": 1}) is None

    @pytest.mark.asyncio
    async def test_params_are_not_mutated(self, target, transport):
        transport.respond(body=[])
        params = {"id": None, "q": "x"}
        await target.get(params)
        assert params == {"id": None, "q": "x"}

    @pytest.mark.asyncio
    async def test_error(self, target, transport):
        transport.respond(status=404, body={"error": "not found"}, headers={"x-trace": "1"})
        with pytest.raises(ResponseError) as excinfo:
            await target.get({"id": 9})
        assert excinfo.value.status == 404
        assert excinfo.value.payload == {"error": "not found"}
        assert excinfo.value.headers == {"x-trace": "1"}
        assert excinfo.value.method == "GET"
        assert excinfo.value.endpoint_name == "users"
        assert "404" in str(excinfo.value)


class TestNavigation:
    @pytest.mark.asyncio
    async def test_next_previous_page(self, target, transport):
        transport.respond(body={"users": [{"id": 11}], "count": 25, "limit": 10, "skip": 10})
        users = await target.get({"_limit": 10, "_skip": 10, "q": "a"})

        transport.respond(body={"users": [{"id": 21}], "count": 25, "limit": 10, "skip": 20})
        following = await users.next()
        assert transport.requests[-1].params == {"_limit": 10, "_skip": 20, "q": "a"}
        assert following.pagination.current_page == 3
        assert following.pagination.current_page_items_count == 5

        transport.respond(body={"users": [{"id": 1}], "count": 25, "limit": 10, "skip": 0})
        await users.previous()
        assert transport.requests[-1].params == {"_limit": 10, "_skip": 0, "q": "a"}

        transport.respond(body={"users": [], "count": 25, "limit": 10, "skip": 20})
        await users.page(3)
        assert transport.requests[-1].params == {"_limit": 10, "_skip": 20, "q": "a"}

    @pytest.mark.asyncio
    async def test_without_pagination(self, target, transport):
        transport.respond(body=[{"id": 1}])
        users = await target.get()
        with pytest.raises(PaginationUnavailableError):
            await users.next()

    @pytest.mark.asyncio
    async def test_detached_model(self):
        with pytest.raises(PaginationUnavailableError):
            await User(id=1).next()


class TestHead:
    @pytest.mark.asyncio
    async def test_all_headers(self, target, transport):
        transport.respond(headers={"x-api-count": "3", "content-type": "application/json"})
        headers = await target.head({"id": 1})
        assert transport.requests[0].method == "HEAD"
        assert transport.requests[0].url == "/api/users/1"
        assert headers == {"x-api-count": "3", "content-type": "application/json"}

    @pytest.mark.asyncio
    async def test_wildcard(self, target, transport):
        target.head_response_header_prefix = "*"
        transport.respond(headers={"x-api-count": "3", "etag": "abc"})
        assert await target.head() == {"x-api-count": "3", "etag": "abc"}

    @pytest.mark.asyncio
    async def test_prefix(self, target, transport):
        target.head_response_header_prefix = "X-Api-"
        transport.respond(headers={"x-api-count": "3", "x-api-total": "9", "etag": "abc"})
        assert await target.head() == {
            "x-api-count": "3",
            "count": "3",
            "x-api-total": "9",
            "total": "9",
        }

    @pytest.mark.asyncio
    async def test_error(self, target, transport):
        transport.respond(status=500)
        with pytest.raises(ResponseError):
            await target.head()


class TestSave:
    @pytest.mark.asyncio
    async def test_save(self, target, transport):
        transport.respond(status=201, body={"id": 3, "name": "Ann"})
        user = User(name="Ann", password="secret", groups=[{"id": 4, "name": "g"}])
        created = await target.save(user)
        assert transport.requests[0].method == "POST"
        assert transport.requests[0].url == "/api/users"
        assert transport.requests[0].json == {"name": "Ann", "groups": [{"id": 4}]}
        assert user.state is ModelState.CLEANED
        assert isinstance(created, User)
        assert created.id == 3
        assert created.state is ModelState.LOADED

    @pytest.mark.asyncio
    async def test_post_alias(self, target, transport):
        transport.respond(status=201)
        assert await target.post(User(name="Ann")) is None

    @pytest.mark.asyncio
    async def test_save_twice(self, target, transport):
        transport.respond(status=201, body={"id": 3})
        user = User(name="Ann")
        await target.save(user)
        with pytest.raises(ModelStateError):
            await target.save(user)
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_write_intent_seen_by_before_save(self, transport):
        e = Endpoint("articles", EndpointConfig(route="/articles", model=Article), transport)
        transport.respond(status=201, body={"id": 1, "title": "HI"})
        article = Article(title="hi")
        await e.save(article)
        assert article._seen_intent is WriteIntent.SAVE
        assert article.write_intent is None
        assert transport.requests[0].json == {"title": "HI"}

    @pytest.mark.asyncio
    async def test_error(self, target, transport):
        transport.respond(status=422, body={"errors": {"email": "invalid"}})
        with pytest.raises(ResponseError) as excinfo:
            await target.save(User(name="Ann"))
        assert excinfo.value.payload == {"errors": {"email": "invalid"}}


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update(self, target, transport):
        transport.respond(body={"id": 1, "name": "Bob"})
        user = User(id=1, name="Bob", tags=[Tag(id=2, label="t")])
        updated = await target.update(user, {"id": 1})
        assert transport.requests[0].method == "PUT"
        assert transport.requests[0].url == "/api/users/1"
        assert transport.requests[0].json == {
            "id": 1,
            "name": "Bob",
            "tags": [{"id": 2, "label": "t"}],
        }
        assert user.state is ModelState.CLEANED
        assert updated.name == "Bob"

    @pytest.mark.asyncio
    async def test_update_many(self, target, transport):
        transport.respond(body=[{"id": 1}, {"id": 2}])
        users = [User(id=1, name="a"), User(id=2, name="b", password="x")]
        result = await target.put(users)
        assert transport.requests[0].json == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
        assert all(u.state is ModelState.NEW for u in users)
        assert users[1].password == "x"
        assert [u.id for u in result] == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_response(self, target, transport):
        transport.respond(status=204)
        assert await target.update(User(id=1)) is None


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove(self, target, transport):
        transport.respond(status=204)
        user = User(id=7)
        assert await target.remove(user) is None
        assert transport.requests[0].method == "DELETE"
        assert transport.requests[0].url == "/api/users/7"
        assert transport.requests[0].params == {}
        assert transport.requests[0].json is UNSPECIFIED
        assert user.write_intent is WriteIntent.REMOVE
        assert user.state is ModelState.NEW

    @pytest.mark.asyncio
    async def test_custom_reference(self, transport):
        e = Endpoint(
            "groups",
            EndpointConfig(route="/groups/:id", model="Group"),
            transport,
            mapper=new_mapper(),
        )
        transport.respond(status=204)
        await e.delete(Group(gid=4))
        assert transport.requests[0].url == "/groups/4"

    @pytest.mark.asyncio
    async def test_without_identifier(self, target, transport):
        user = User(name="Ann")
        with pytest.raises(ModelStateError):
            await target.remove(user)
        assert transport.requests == []
        assert user.write_intent is None

    @pytest.mark.asyncio
    async def test_identifier_from_params(self, target, transport):
        transport.respond(status=204)
        await target.remove(User(name="Ann"), {"id": 8})
        assert transport.requests[0].url == "/api/users/8"

    @pytest.mark.asyncio
    async def test_explicit_params_win(self, target, transport):
        transport.respond(status=204)
        await target.remove(User(id=7), {"id": 8, "force": True})
        assert transport.requests[0].url == "/api/users/8"
        assert transport.requests[0].params == {"force": True}

    @pytest.mark.asyncio
    async def test_error(self, target, transport):
        transport.respond(status=403, body="forbidden")
        with pytest.raises(ResponseError) as excinfo:
            await target.remove(User(id=7))
        assert excinfo.value.payload == "forbidden"
