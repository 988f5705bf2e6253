import copy
import logging
import re
import typing
import urllib.parse

from .declarative import Model, WriteIntent
from .exceptions import ModelStateError, ResponseError
from .interfaces import Transport, TransportResponse
from .mapper import MappedResult, Mapper, default_mapper, is_array
from .navigation import Navigable, Navigation
from .pagination import calculate_pagination
from .types import JSONValue, Params
from .utils import UNSPECIFIED, UnspecifiedType, maybe_unspecified

logger = logging.getLogger(__name__)

# Matches ":name" placeholders; ":8080" in a host part is left alone
_PLACEHOLDER = re.compile(r"(/?):([A-Za-z_][A-Za-z0-9_]*)")

WILDCARD_PREFIX = "*"


class Route:
    """
    A route template in the form of ``/users/:id/posts/:postId``.
    """

    template: str
    placeholders: typing.Sequence[str]

    def build(self, params: typing.Optional[Params] = None) -> typing.Tuple[str, Params]:
        """
        Substitutes the placeholders with the matching parameters.

        :param Optional[Mapping[str, Any]] params: the request parameters.
        :return: a tuple of the expanded path and the parameters left for the query string.
        """
        params = params or {}

        def _(m: re.Match) -> str:
            slash, name = m.group(1), m.group(2)
            value = params.get(name)
            if value is None:
                return ""
            return slash + urllib.parse.quote(str(value), safe="")

        path = _PLACEHOLDER.sub(_, self.template)
        if len(path) > 1 and path.endswith("/"):
            path = path.rstrip("/")
        query = {k: v for k, v in params.items() if k not in self.placeholders}
        return path, query

    def __repr__(self) -> str:
        return f"Route({self.template!r})"

    def __init__(self, template: str):
        self.template = template
        self.placeholders = [m.group(2) for m in _PLACEHOLDER.finditer(template)]


class ResultList(list, Navigable):
    """
    A list of models returned by :py:meth:`Endpoint.get`, carrying the pagination
    of the response and the continuations to the neighbouring pages.
    """


class Endpoint:
    """
    Wraps one REST resource.

    :param str name: the name of the endpoint.
    :param EndpointConfig config: the configuration of the endpoint.
    :param Transport transport: the HTTP transport.
    :param Mapper mapper: the mapper turning response bodies into models.
    :param str base_route: the URL prefix of the backend, unless the config overrides it.
    :param Optional[str] head_response_header_prefix: the prefix of the headers
        :py:meth:`head` reports. ``None`` or ``"*"`` reports every header.
    """

    name: str
    config: "api.EndpointConfig"
    transport: Transport
    mapper: Mapper
    route: Route
    head_response_header_prefix: typing.Optional[str]

    @property
    def container(self) -> str:
        return maybe_unspecified(self.config.container, self.name)

    def _map_response(self, response: TransportResponse) -> typing.Optional[MappedResult]:
        if response.body is None:
            return None
        return self.mapper.map_result(self.config.model, response.body, self.container)

    async def _request(
        self,
        method: str,
        params: typing.Optional[Params],
        json: typing.Union[JSONValue, UnspecifiedType] = UNSPECIFIED,
    ) -> TransportResponse:
        path, query = self.route.build(params)
        logger.debug("Endpoint (%s): %s %s called", self.name, method, path)
        response = await self.transport.request(method, path, params=query, json=json)
        if response.is_error:
            logger.warning(
                "Endpoint (%s): %s %s failed with status %d",
                self.name,
                method,
                path,
                response.status,
            )
            raise ResponseError(
                self.name, method, response.status, response.body, response.headers
            )
        return response

    async def get(self, params: typing.Optional[Params] = None) -> typing.Any:
        """
        Reads the resource and maps the response to one or more models.

        :param Optional[Mapping[str, Any]] params: route and query string parameters.
        :return: a :py:class:`Model`, or a :py:class:`ResultList` of them.
        """
        params = dict(params or {})
        response = await self._request("GET", params)
        result = self._map_response(response)
        if result is None:
            return None
        if isinstance(result, list):
            result = ResultList(result)
        result.attach_navigation(
            Navigation(endpoint=self, params=params, pagination=calculate_pagination(response.body))
        )
        return result

    async def head(self, params: typing.Optional[Params] = None) -> typing.Dict[str, str]:
        """
        Issues a HEAD request and returns the response headers.

        When a header prefix is configured, only the headers starting with it are returned,
        each of them a second time under its name stripped of the prefix.
        """
        response = await self._request("HEAD", params)
        headers = dict(response.headers)
        prefix = self.head_response_header_prefix
        if not prefix or prefix == WILDCARD_PREFIX:
            return headers

        filtered: typing.Dict[str, str] = {}
        for name, value in headers.items():
            if not name.lower().startswith(prefix.lower()):
                continue
            filtered[name] = value
            filtered[name[len(prefix) :]] = value
        return filtered

    def _prepare(self, model: Model, intent: WriteIntent) -> typing.Dict[str, typing.Any]:
        model.write_intent = intent
        return self.mapper.clean(model)

    async def save(self, model: Model, params: typing.Optional[Params] = None) -> typing.Any:
        """
        Creates a resource out of a model.

        :param Model model: the model to save. It is cleaned in place and cannot be saved again.
        :param Optional[Mapping[str, Any]] params: route and query string parameters.
        :return: the model mapped from the response.
        """
        payload = self._prepare(model, WriteIntent.SAVE)
        logger.debug("Endpoint (%s): model to save is: %r", self.name, payload)
        return self._map_response(await self._request("POST", params, payload))

    post = save

    async def update(
        self,
        model: typing.Union[Model, typing.Sequence[Model]],
        params: typing.Optional[Params] = None,
    ) -> typing.Any:
        """
        Updates a resource, or several at once when given a sequence of models.
        The models of a sequence are cleaned as copies; the originals stay untouched.
        """
        payload: typing.Union[typing.Dict[str, typing.Any], typing.List[typing.Dict[str, typing.Any]]]
        if is_array(model):
            payload = [
                self._prepare(copy.deepcopy(m), WriteIntent.UPDATE)
                for m in typing.cast(typing.Sequence[Model], model)
            ]
        else:
            payload = self._prepare(typing.cast(Model, model), WriteIntent.UPDATE)
        logger.debug("Endpoint (%s): model to update is: %r", self.name, payload)
        return self._map_response(await self._request("PUT", params, payload))

    put = update

    async def remove(self, model: Model, params: typing.Optional[Params] = None) -> None:
        """
        Deletes the resource a model stands for. The identifier is taken from the model's
        reference field and passed as the ``id`` parameter; explicit ``params`` take precedence.
        Without an identifier the request would target the whole collection, so
        :py:class:`ModelStateError` is raised instead.
        """
        params = {"id": model.reference, **(params or {})}
        if params["id"] is None:
            raise ModelStateError(model, "has no identifier to delete by")
        model.write_intent = WriteIntent.REMOVE
        logger.debug("Endpoint (%s): model to remove is: %r", self.name, model)
        await self._request("DELETE", params)

    delete = remove

    def __repr__(self) -> str:
        return f"Endpoint({self.name!r}, {self.route!r})"

    def __init__(
        self,
        name: str,
        config: "api.EndpointConfig",
        transport: Transport,
        mapper: typing.Optional[Mapper] = None,
        base_route: str = "",
        head_response_header_prefix: typing.Optional[str] = None,
    ):
        self.name = name
        self.config = config
        self.transport = transport
        self.mapper = mapper if mapper is not None else default_mapper
        self.route = Route(maybe_unspecified(config.base_route, base_route) + config.route)
        self.head_response_header_prefix = head_response_header_prefix


if typing.TYPE_CHECKING:
    from . import api  # noqa: E402
