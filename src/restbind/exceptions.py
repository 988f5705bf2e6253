import abc
import typing

from .types import JSONValue
from .utils import english_enumerate


class RestBindException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class InvalidDeclarationError(RestBindException):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class MappingError(RestBindException, metaclass=abc.ABCMeta):
    pass


class UnknownModelError(MappingError):
    name: str
    known: typing.Sequence[str]

    @property
    def message(self):
        if not self.known:
            return f'no model known as "{self.name}"'
        return f'no model known as "{self.name}" (known models: {english_enumerate(self.known)})'

    def __init__(self, name: str, known: typing.Iterable[str] = ()):
        super().__init__(name)
        self.name = name
        self.known = sorted(known)


class ModelStateError(MappingError):
    model: "declarative.Model"
    detail: str

    @property
    def message(self):
        return f"{type(self.model).__name__} {self.detail}"

    def __init__(self, model: "declarative.Model", detail: str):
        super().__init__(detail)
        self.model = model
        self.detail = detail


class CircularReferenceError(MappingError):
    path: typing.Sequence[str]

    @property
    def message(self):
        return f"circular relation detected while cleaning: {' -> '.join(self.path)}"

    def __init__(self, path: typing.Sequence[str]):
        super().__init__(path)
        self.path = path


class EndpointError(RestBindException, metaclass=abc.ABCMeta):
    pass


class ResponseError(EndpointError):
    """
    Raised when the backend answers with a status code of 400 or above.
    The response body is carried as-is in :py:attr:`payload`, unmapped.
    """

    endpoint_name: str
    method: str
    status: int
    payload: JSONValue
    headers: typing.Mapping[str, str]

    @property
    def message(self):
        return f"{self.method} on endpoint {self.endpoint_name} failed with status {self.status}"

    def __init__(
        self,
        endpoint_name: str,
        method: str,
        status: int,
        payload: JSONValue,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
    ):
        super().__init__(endpoint_name, method, status)
        self.endpoint_name = endpoint_name
        self.method = method
        self.status = status
        self.payload = payload
        self.headers = headers if headers is not None else {}


class PaginationUnavailableError(EndpointError):
    @property
    def message(self):
        return "the result carries no pagination information to navigate with"


if typing.TYPE_CHECKING:
    from . import declarative  # noqa: E402
