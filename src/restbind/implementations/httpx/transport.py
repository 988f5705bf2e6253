import json as json_
import logging
import typing

import httpx

from ...interfaces import Transport, TransportResponse
from ...types import JSONValue, Params
from ...utils import UNSPECIFIED, UnspecifiedType

logger = logging.getLogger(__name__)


def decode_body(response: httpx.Response) -> JSONValue:
    if response.request.method == "HEAD" or not response.content:
        return None
    try:
        return response.json()
    except (json_.JSONDecodeError, UnicodeDecodeError):
        logger.debug("response body of %s is not JSON; keeping raw text", response.url)
        return response.text


class HTTPXTransport(Transport):
    """
    A :py:class:`Transport` backed by :py:class:`httpx.AsyncClient`.

    :param Optional[httpx.AsyncClient] client: a client to use. When omitted, one is created
                                               from ``client_kwargs`` and owned by the transport.
    :param client_kwargs: keyword arguments for :py:class:`httpx.AsyncClient`
                          (``base_url``, ``timeout``, ``headers``, ``transport`` ...)
    """

    client: httpx.AsyncClient
    _owns_client: bool

    async def request(
        self,
        method: str,
        url: str,
        params: typing.Optional[Params] = None,
        json: typing.Union[JSONValue, UnspecifiedType] = UNSPECIFIED,
    ) -> TransportResponse:
        kwargs: typing.Dict[str, typing.Any] = {}
        if params:
            kwargs["params"] = {k: _stringify(v) for k, v in params.items() if v is not None}
        if json is not UNSPECIFIED:
            kwargs["json"] = json

        logger.debug("%s %s params=%r", method, url, kwargs.get("params"))
        response = await self.client.request(method, url, **kwargs)
        return TransportResponse(
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=decode_body(response),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HTTPXTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __init__(self, client: typing.Optional[httpx.AsyncClient] = None, **client_kwargs):
        if client is None:
            self.client = httpx.AsyncClient(**client_kwargs)
            self._owns_client = True
        else:
            if client_kwargs:
                raise TypeError("client_kwargs cannot be combined with an explicit client")
            self.client = client
            self._owns_client = False


def _stringify(value: typing.Any) -> typing.Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
