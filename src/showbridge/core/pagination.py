"""Pagination parameters shared by the list facade and the backend client."""

from typing import NamedTuple

from pydantic import BaseModel, Field


class PageParams(BaseModel):
    """Pagination request, either page-based or offset-based.

    An explicit ``limit``/``offset`` pair takes precedence over
    ``page``/``page_size`` when either of them is set.
    """

    page: int | None = Field(default=None)
    page_size: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)


class LimitOffset(NamedTuple):
    limit: int | None
    offset: int | None


def to_limit_offset(params: PageParams | None) -> LimitOffset:
    """Translate pagination parameters into a ``limit``/``offset`` pair.

    Example:
        >>> to_limit_offset(PageParams(page=3, page_size=15))
        LimitOffset(limit=15, offset=30)
        >>> to_limit_offset(PageParams(page_size=25))
        LimitOffset(limit=25, offset=0)
        >>> to_limit_offset(PageParams())
        LimitOffset(limit=None, offset=None)
    """
    if params is None:
        return LimitOffset(None, None)
    if params.limit is not None or params.offset is not None:
        return LimitOffset(params.limit, params.offset)
    if params.page_size is None:
        return LimitOffset(None, None)
    page = max(params.page or 1, 1)
    return LimitOffset(params.page_size, (page - 1) * params.page_size)
