"""
This module contains the interface that needs to be implemented by
the HTTP client used to talk to the backend.

"""
import abc
import dataclasses
import typing

from .types import JSONValue, Params
from .utils import UNSPECIFIED, UnspecifiedType


@dataclasses.dataclass
class TransportResponse:
    status: int
    """
    The HTTP status code.
    """

    headers: typing.Mapping[str, str] = dataclasses.field(default_factory=dict)
    """
    The response headers, keyed by lower-cased names.
    """

    body: JSONValue = None
    """
    The decoded response body; :py:const:`None` for an empty body.
    """

    @property
    def is_error(self) -> bool:
        return self.status >= 400


class Transport(metaclass=abc.ABCMeta):
    """
    A :py:class:`Transport` performs a single HTTP request and returns the decoded JSON response.
    It does not raise on error status codes; the endpoint decides what a failure is.
    """

    @abc.abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        params: typing.Optional[Params] = None,
        json: typing.Union[JSONValue, UnspecifiedType] = UNSPECIFIED,
    ) -> TransportResponse:
        """
        Issues a request.

        :param str method: the HTTP verb.
        :param str url: the URL, relative to the transport's base URL if any.
        :param Optional[Mapping[str, Any]] params: the query string parameters.
        :param json: the body to send as JSON; left out if unspecified.
        :return: a :py:class:`TransportResponse`.
        """
        ...  # pragma: nocover

    async def aclose(self) -> None:
        """
        Releases the resources held by the transport.
        """
