"""
Filter engine: decides which repositories take part in a batch operation.
"""

from enum import Enum
from typing import Iterable

from .errors import InvalidFilter
from .git_ops import RepositoryStatus


class Filter(str, Enum):
    """Predicate tags accepted by --filter."""

    ALL = "all"
    DIRTY = "dirty"
    CLEAN = "clean"
    TRACKING = "tracking"
    AHEAD = "ahead"
    BEHIND = "behind"

    @classmethod
    def choices(cls) -> list[str]:
        return [f.value for f in cls]


def parse_filter(tag: str) -> Filter:
    """Parse a filter tag, raising InvalidFilter for unknown tags."""
    try:
        return Filter(tag.strip().lower())
    except ValueError:
        raise InvalidFilter(tag, Filter.choices()) from None


def parse_filters(tags: Iterable[str]) -> list[Filter]:
    return [parse_filter(tag) for tag in tags]


def needs_status(filters: Iterable[Filter]) -> bool:
    """Whether evaluating these filters requires a status snapshot."""
    return any(f is not Filter.ALL for f in filters)


def matches(f: Filter, status: RepositoryStatus) -> bool:
    """Evaluate a single filter against a status snapshot."""
    if f is Filter.ALL:
        return True
    if f is Filter.DIRTY:
        return status.is_dirty
    if f is Filter.CLEAN:
        return not status.is_dirty
    if f is Filter.TRACKING:
        return status.tracking
    if f is Filter.AHEAD:
        return bool(status.ahead)
    if f is Filter.BEHIND:
        return bool(status.behind)
    raise InvalidFilter(str(f), Filter.choices())


def matches_any(filters: Iterable[Filter], status: RepositoryStatus | None) -> bool:
    """
    True if any filter matches. An empty filter list includes everything.

    Status may only be None when no filter needs it.
    """
    filters = list(filters)
    if not filters:
        return True
    return any(matches(f, status) for f in filters)
