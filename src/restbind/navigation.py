import dataclasses
import typing

from .exceptions import PaginationUnavailableError
from .pagination import Pagination
from .types import Params


@dataclasses.dataclass
class Navigation:
    """
    Remembers where a ``get`` result came from, so that neighbouring pages can be requested.
    """

    endpoint: "endpoint_.Endpoint"
    params: Params
    pagination: typing.Optional[Pagination] = None

    def _require_pagination(self) -> Pagination:
        if self.pagination is None:
            raise PaginationUnavailableError()
        return self.pagination

    def params_for_skip(self, skip: int) -> typing.Dict[str, typing.Any]:
        pagination = self._require_pagination()
        return {**self.params, "_skip": skip, "_limit": pagination.limit}

    async def next(self) -> typing.Any:
        return await self.endpoint.get(self.params_for_skip(self._require_pagination().next_skip))

    async def previous(self) -> typing.Any:
        return await self.endpoint.get(
            self.params_for_skip(self._require_pagination().previous_skip)
        )

    async def page(self, page: int) -> typing.Any:
        return await self.endpoint.get(
            self.params_for_skip(self._require_pagination().skip_for_page(page))
        )


class Navigable:
    """
    Mixin for ``get`` results. The continuations re-issue ``get`` against the originating
    endpoint, with ``_skip`` and ``_limit`` computed from this result's pagination.
    """

    _navigation: typing.Optional[Navigation] = None

    def attach_navigation(self, navigation: Navigation) -> None:
        self._navigation = navigation

    @property
    def navigation(self) -> typing.Optional[Navigation]:
        return self._navigation

    @property
    def pagination(self) -> typing.Optional[Pagination]:
        return self._navigation.pagination if self._navigation is not None else None

    @property
    def endpoint(self) -> typing.Optional["endpoint_.Endpoint"]:
        return self._navigation.endpoint if self._navigation is not None else None

    def _require_navigation(self) -> Navigation:
        if self._navigation is None:
            raise PaginationUnavailableError()
        return self._navigation

    async def next(self) -> typing.Any:
        return await self._require_navigation().next()

    async def previous(self) -> typing.Any:
        return await self._require_navigation().previous()

    async def page(self, page: int) -> typing.Any:
        return await self._require_navigation().page(page)


if typing.TYPE_CHECKING:
    from . import endpoint as endpoint_  # noqa: E402
