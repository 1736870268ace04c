from typing import List, NamedTuple, Sequence, TypeVar

from feedcache.core.exceptions.exceptions import ValidationError

T = TypeVar("T")


class Page(NamedTuple):
    items: List
    total_items: int


def paginate(items: Sequence[T], page: int, limit: int) -> Page:
    """Return the 1-based `page` of `items`, `limit` items per page.

    Pages past the end are empty rather than an error.
    """
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValidationError(f"limit must be > 0, got {limit}")

    start = (page - 1) * limit
    return Page(items=list(items[start:start + limit]), total_items=len(items))
