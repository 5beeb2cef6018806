from __future__ import annotations

from typing import Iterable, Iterator, Sequence, TypeVar, Union

from freshguard.models import Batch, Item, Location
from freshguard.services.freshness import STATUS_ORDER, Status

Entity = TypeVar("Entity", Item, Batch)
StatusKey = Union[Status, str]

ALL = "all"


def _matches_search(name: str, search: str) -> bool:
    needle = (search or "").strip().casefold()
    return not needle or needle in (name or "").casefold()


def _matches_status(status: Status, status_filter: StatusKey) -> bool:
    if status_filter == ALL:
        return True
    return status == Status(status_filter)


class FilteredView(Iterable[Entity]):
    """Lazy, restartable view over a base collection.

    Every iteration re-reads the base sequence, so the same view can be
    rendered repeatedly.
    """

    def __init__(self, entities: Sequence[Entity], status_filter: StatusKey = ALL, search: str = "") -> None:
        if status_filter != ALL:
            # Fail on an unknown status here rather than on first iteration.
            Status(status_filter)
        self._entities = entities
        self._status_filter = status_filter
        self._search = search

    def __iter__(self) -> Iterator[Entity]:
        for entity in self._entities:
            if _matches_status(entity.status, self._status_filter) and _matches_search(entity.name, self._search):
                yield entity


def filter_entities(entities: Sequence[Entity], status_filter: StatusKey = ALL, search: str = "") -> FilteredView[Entity]:
    return FilteredView(entities, status_filter, search)


def counts_by_status(entities: Iterable[Union[Item, Batch]]) -> dict[StatusKey, int]:
    """Counts per status plus an "all" total, used to label filter chips."""
    counts: dict[StatusKey, int] = {ALL: 0, **{status: 0 for status in STATUS_ORDER}}
    for entity in entities:
        counts[ALL] += 1
        counts[entity.status] += 1
    return counts


def filter_locations(locations: Iterable[Location], search: str = "") -> list[Location]:
    return [location for location in locations if _matches_search(location.name, search)]
