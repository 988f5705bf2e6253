import collections.abc
import dataclasses
import math
import typing

from .utils import is_number


@dataclasses.dataclass(frozen=True)
class Pagination:
    """
    Page navigation metadata derived from the ``count``, ``limit`` and ``skip``
    values a backend returns alongside a list.
    """

    count: int
    limit: int
    skip: int
    pages_array: typing.Sequence[int]
    pages_count: int
    current_page: int
    current_page_items_count: int

    @property
    def next_skip(self) -> int:
        return self.skip + self.limit

    @property
    def previous_skip(self) -> int:
        return self.skip - self.limit

    def skip_for_page(self, page: int) -> int:
        return page * self.limit - self.limit

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        return {
            "count": self.count,
            "limit": self.limit,
            "skip": self.skip,
            "pagesArray": list(self.pages_array),
            "pagesCount": self.pages_count,
            "currentPage": self.current_page,
            "currentPageItemsCount": self.current_page_items_count,
        }


def calculate_pagination(data: typing.Any) -> typing.Optional[Pagination]:
    """
    Builds a :py:class:`Pagination` out of a raw response body.

    :param Any data: the decoded response body.
    :return: a :py:class:`Pagination`, or :py:const:`None` if the body lacks any of
             ``count``, ``limit`` and ``skip`` as finite numbers, or ``limit`` is not positive.
    """
    if not isinstance(data, collections.abc.Mapping):
        return None
    count, limit, skip = data.get("count"), data.get("limit"), data.get("skip")
    if not all(is_number(v) and math.isfinite(v) for v in (count, limit, skip)):
        return None
    if limit <= 0:
        return None

    pages_count = math.ceil(count / limit)
    current_page = math.floor(skip / limit) + 1
    current_page_items_count = limit
    if skip + 1 + limit > count:
        current_page_items_count = count - (current_page - 1) * limit

    return Pagination(
        count=count,
        limit=limit,
        skip=skip,
        pages_array=tuple(range(1, pages_count + 1)),
        pages_count=pages_count,
        current_page=current_page,
        current_page_items_count=current_page_items_count,
    )
