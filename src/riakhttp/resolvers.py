"""Conflict resolution strategies: pick one Value out of a set of siblings."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Protocol, runtime_checkable

from riakhttp.errors import ConflictResolutionFailed
from riakhttp.types import ContentType, Value

MergeFn = Callable[[bytes, bytes], bytes]
"""Merge function: (older_data, newer_data) -> merged_data."""


@runtime_checkable
class ConflictResolver(Protocol):
    """Chooses the value that replaces a set of siblings."""

    def resolve(self, values: frozenset[Value]) -> Value: ...


def _newest_first(values: frozenset[Value]) -> list[Value]:
    if not values:
        raise ConflictResolutionFailed("no siblings to resolve")
    # etag breaks ties so the choice does not depend on set iteration order
    return sorted(values, key=lambda v: (v.last_modified, v.etag), reverse=True)


class LastWriteWins:
    """Keeps the sibling with the most recent last-modified timestamp."""

    def resolve(self, values: frozenset[Value]) -> Value:
        return _newest_first(values)[0]

    def __repr__(self) -> str:
        return "LastWriteWins()"


class CallbackResolver:
    """Delegates the choice to a caller-supplied function."""

    def __init__(self, fn: Callable[[frozenset[Value]], Value]) -> None:
        self._fn = fn

    def resolve(self, values: frozenset[Value]) -> Value:
        if not values:
            raise ConflictResolutionFailed("no siblings to resolve")
        return self._fn(values)


class MergeResolver:
    """Folds all siblings, oldest first, through a domain merge function.

    The result keeps the newest sibling's causality metadata and indexes are
    unioned across siblings.
    """

    def __init__(self, merge_fn: MergeFn, *, content_type: ContentType | None = None) -> None:
        self._merge_fn = merge_fn
        self._content_type = content_type

    def resolve(self, values: frozenset[Value]) -> Value:
        ordered = list(reversed(_newest_first(values)))
        data = ordered[0].data
        for sibling in ordered[1:]:
            data = self._merge_fn(data, sibling.data)
        newest = ordered[-1]
        indexes = frozenset().union(*(v.indexes for v in ordered))
        return replace(
            newest,
            data=data,
            content_type=self._content_type or newest.content_type,
            indexes=indexes,
        )


DEFAULT_RESOLVER: ConflictResolver = LastWriteWins()
