"""Cursor pagination.

List endpoints return at most `limit` records (100 max). The `CB-BEFORE`
and `CB-AFTER` response headers carry the cursors for the adjacent pages:
`before` requests newer records, `after` requests older ones.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

MAX_PAGE_LIMIT = 100


@dataclass
class PageArgs:
    """Pagination arguments; at least one of before, after or limit is required."""

    before: int | str | None = None
    after: int | str | None = None
    limit: int | None = None

    def __post_init__(self):
        if self.before is None and self.after is None and self.limit is None:
            raise ValueError("PageArgs requires at least one of before, after or limit")
        if self.limit is not None and not 1 <= self.limit <= MAX_PAGE_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")

    def to_params(self) -> dict[str, Any]:
        """Query parameters for the request."""
        params = {}
        if self.before is not None:
            params["before"] = self.before
        if self.after is not None:
            params["after"] = self.after
        if self.limit is not None:
            params["limit"] = self.limit
        return params

    @classmethod
    def coerce(cls, value: "PageArgs | dict | None") -> "PageArgs | None":
        """Accept PageArgs, a plain dict of the same keys, or None."""
        if value is None or isinstance(value, cls):
            return value
        return cls(**value)


@dataclass
class Page(Generic[T]):
    """One page of results and the cursors to its neighbours."""

    results: list[T] = field(default_factory=list)
    before: str | None = None
    after: str | None = None
    # Items the server returned that could not be parsed
    skipped: int = 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index):
        return self.results[index]

    def next_page_args(self, limit: int | None = None) -> PageArgs | None:
        """Arguments for the next (older) page, or None at the end."""
        if self.after is None:
            return None
        return PageArgs(after=self.after, limit=limit)

    def previous_page_args(self, limit: int | None = None) -> PageArgs | None:
        """Arguments for the previous (newer) page, or None at the start."""
        if self.before is None:
            return None
        return PageArgs(before=self.before, limit=limit)
