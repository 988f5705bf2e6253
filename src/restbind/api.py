import collections.abc
import dataclasses
import logging
import typing

from .declarative import Model
from .endpoint import Endpoint
from .exceptions import InvalidDeclarationError
from .interfaces import Transport
from .mapper import Mapper, ModelRegistry
from .utils import UNSPECIFIED, UnspecifiedType

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class EndpointConfig:
    route: str = ""
    """
    The route of the endpoint, appended to the base route; may hold ``:name`` placeholders.
    """

    model: typing.Union[str, typing.Type[Model], UnspecifiedType] = UNSPECIFIED
    """
    The model responses are mapped to, as a class or a registered name.
    """

    container: typing.Union[str, UnspecifiedType] = UNSPECIFIED
    """
    The response field wrapping lists of records. Defaults to the endpoint name.
    """

    base_route: typing.Union[str, UnspecifiedType] = UNSPECIFIED
    """
    Overrides the base route of the :py:class:`Api` for this endpoint.
    """

    def with_route(self, route: str) -> "EndpointConfig":
        self.route = route
        return self

    def with_model(self, model: typing.Union[str, typing.Type[Model]]) -> "EndpointConfig":
        self.model = model
        return self

    def with_container(self, container: str) -> "EndpointConfig":
        self.container = container
        return self

    def with_base_route(self, base_route: str) -> "EndpointConfig":
        self.base_route = base_route
        return self


class ApiClient(collections.abc.Mapping):
    """
    The endpoints built by :py:meth:`Api.build`, reachable by item or attribute access::

        async with api.build(HTTPXTransport(base_url="https://example.com")) as client:
            users = await client.users.get({"_limit": 10})
    """

    transport: Transport
    _endpoints: typing.Mapping[str, Endpoint]

    def __getitem__(self, name: str) -> Endpoint:
        return self._endpoints[name]

    def __getattr__(self, name: str) -> Endpoint:
        try:
            return self.__dict__["_endpoints"][name]
        except KeyError:
            raise AttributeError(name)

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __init__(self, transport: Transport, endpoints: typing.Mapping[str, Endpoint]):
        self.transport = transport
        self._endpoints = endpoints


RESERVED_ENDPOINT_NAMES = frozenset(
    [n for n in dir(ApiClient) if not n.startswith("_")] + ["transport"]
)


class Api:
    """
    Collects the endpoint configurations of a backend.

    :param str base_route: the URL prefix every route is appended to.
    :param Optional[str] head_response_header_prefix: the prefix of the headers reported by
        :py:meth:`Endpoint.head`.
    :param Optional[ModelRegistry] registry: the registry resolving model names.
    """

    base_route: str
    head_response_header_prefix: typing.Optional[str]
    mapper: Mapper
    endpoints: typing.Dict[str, EndpointConfig]

    def endpoint(self, name: str, **kwargs) -> EndpointConfig:
        if name.startswith("_") or name in RESERVED_ENDPOINT_NAMES:
            raise InvalidDeclarationError(
                f"endpoint name {name} clashes with an ApiClient attribute"
            )
        config = EndpointConfig(**kwargs)
        self.endpoints[name] = config
        return config

    def build(self, transport: Transport) -> ApiClient:
        endpoints: typing.Dict[str, Endpoint] = {}
        for name, config in self.endpoints.items():
            if config.model is UNSPECIFIED:
                raise InvalidDeclarationError(f"endpoint {name} does not specify a model")
            endpoints[name] = Endpoint(
                name,
                config,
                transport,
                mapper=self.mapper,
                base_route=self.base_route,
                head_response_header_prefix=self.head_response_header_prefix,
            )
            logger.debug("Api: endpoint %s registered at %s", name, endpoints[name].route.template)
        return ApiClient(transport, endpoints)

    @classmethod
    def from_settings(
        cls, settings: typing.Mapping[str, typing.Any], registry: typing.Optional[ModelRegistry] = None
    ) -> "Api":
        """
        Builds an :py:class:`Api` from a plain mapping::

            {
                "base_route": "/api",
                "head_response_header_prefix": "X-Api-",
                "endpoints": {
                    "users": {"route": "/users/:id", "model": "User"},
                },
            }
        """
        api = cls(
            base_route=settings.get("base_route", ""),
            head_response_header_prefix=settings.get("head_response_header_prefix"),
            registry=registry,
        )
        for name, endpoint_settings in settings.get("endpoints", {}).items():
            unknown = set(endpoint_settings) - {f.name for f in dataclasses.fields(EndpointConfig)}
            if unknown:
                raise InvalidDeclarationError(
                    f"unknown setting(s) for endpoint {name}: {', '.join(sorted(unknown))}"
                )
            api.endpoint(name, **endpoint_settings)
        return api

    def __init__(
        self,
        base_route: str = "",
        head_response_header_prefix: typing.Optional[str] = None,
        registry: typing.Optional[ModelRegistry] = None,
    ):
        self.base_route = base_route
        self.head_response_header_prefix = head_response_header_prefix
        self.mapper = Mapper(registry)
        self.endpoints = {}
