"""The inventory owner: locations, items and batches behind one mutation lock.

Reads return frozen models, so callers can hold on to them as a snapshot.
Every mutation builds its new entities first and swaps them in under the
lock; a raised ``InventoryError`` therefore leaves the store unchanged.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, NamedTuple, Optional, Union

from pydantic import ValidationError

from freshguard.config import (
    DEFAULT_COUNT_LABEL,
    DEFAULT_WINDOW_DAYS_BY_KIND,
    MAX_NEAREST_DAYS,
    MAX_UNITS,
)
from freshguard.errors import InvalidField, InvalidQuantity, LocationInUse, NotFound
from freshguard.models import Batch, Item, Location
from freshguard.services import lifecycle
from freshguard.services.freshness import Status
from freshguard.services.lifecycle import new_id, now_iso

logger = logging.getLogger(__name__)

# Recomputed on read, never persisted.
DERIVED_FIELDS = {"status", "progress"}

ChangeListener = Callable[["InventoryStore"], None]


class InventorySnapshot(NamedTuple):
    locations: tuple[Location, ...]
    items: tuple[Item, ...]
    batches: tuple[Batch, ...]


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(int(value), low), high)


def _required_name(value: Optional[str], field: str = "name") -> str:
    name = (value or "").strip()
    if not name:
        raise InvalidField(f"{field} must not be empty.")
    return name


class InventoryStore:
    def __init__(self) -> None:
        self._locations: dict[str, Location] = {}
        self._items: dict[str, Item] = {}
        self._batches: dict[str, Batch] = {}
        self._lock = threading.RLock()
        self._listeners: list[ChangeListener] = []

    # --- Change notification -------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --- Reads ---------------------------------------------------------------

    def snapshot(self) -> InventorySnapshot:
        with self._lock:
            return InventorySnapshot(
                tuple(self._locations.values()),
                tuple(self._items.values()),
                tuple(self._batches.values()),
            )

    def list_locations(self) -> list[Location]:
        return list(self.snapshot().locations)

    def list_items(self) -> list[Item]:
        return list(self.snapshot().items)

    def list_batches(self) -> list[Batch]:
        return list(self.snapshot().batches)

    def entities(self) -> list[Union[Item, Batch]]:
        snap = self.snapshot()
        return [*snap.items, *snap.batches]

    def get_location(self, location_id: str) -> Location:
        location = self._locations.get(location_id)
        if location is None:
            raise NotFound(f"location {location_id} not found.")
        return location

    def get_item(self, item_id: str) -> Item:
        item = self._items.get(item_id)
        if item is None:
            raise NotFound(f"item {item_id} not found.")
        return item

    def get_batch(self, batch_id: str) -> Batch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise NotFound(f"batch {batch_id} not found.")
        return batch

    def location_summary(self) -> list[dict[str, Any]]:
        snap = self.snapshot()
        summary = []
        for location in snap.locations:
            summary.append(
                {
                    "location": location,
                    "item_count": sum(1 for item in snap.items if item.location_id == location.id),
                    "batch_count": sum(1 for batch in snap.batches if batch.location_id == location.id),
                }
            )
        return summary

    # --- Locations -----------------------------------------------------------

    def add_location(
        self,
        name: str,
        kind: str = "refrigerated",
        subtitle: str = "",
        target_temp: Optional[str] = None,
    ) -> Location:
        try:
            location = Location(
                id=new_id(),
                name=_required_name(name),
                kind=kind,
                subtitle=(subtitle or "").strip(),
                target_temp=(target_temp or "").strip() or None,
                created_at=now_iso(),
            )
        except ValidationError as exc:
            raise InvalidField(f"invalid location: {exc.errors()[0]['msg']}") from exc
        with self._lock:
            self._locations[location.id] = location
        logger.info("Added location %s (%s)", location.name, location.kind)
        self._changed()
        return location

    def update_location(
        self,
        location_id: str,
        name: Optional[str] = None,
        subtitle: Optional[str] = None,
        target_temp: Optional[str] = None,
    ) -> Location:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = _required_name(name)
        if subtitle is not None:
            changes["subtitle"] = subtitle.strip()
        if target_temp is not None:
            changes["target_temp"] = target_temp.strip() or None
        with self._lock:
            updated = self.get_location(location_id).model_copy(update=changes)
            self._locations[location_id] = updated
        self._changed()
        return updated

    def delete_location(self, location_id: str) -> None:
        """Remove an empty location. Locations still holding stock are kept."""
        with self._lock:
            self.get_location(location_id)
            in_use = sum(1 for item in self._items.values() if item.location_id == location_id)
            in_use += sum(1 for batch in self._batches.values() if batch.location_id == location_id)
            if in_use:
                raise LocationInUse(f"location {location_id} still holds {in_use} entries.")
            del self._locations[location_id]
        logger.info("Deleted location %s", location_id)
        self._changed()

    # --- Items ---------------------------------------------------------------

    def add_item(
        self,
        name: str,
        location_id: str,
        quantity: int = 1,
        days_to_expire: Optional[int] = None,
        opened: bool = False,
        status: Optional[Status] = None,
    ) -> Item:
        item_name = _required_name(name)
        if quantity < 1:
            raise InvalidField(f"quantity must be at least 1, got {quantity}.")
        if days_to_expire is not None:
            days_to_expire = _clamp(days_to_expire, -MAX_NEAREST_DAYS, MAX_NEAREST_DAYS)
        now = now_iso()
        with self._lock:
            self.get_location(location_id)
            item = Item(
                id=new_id(),
                name=item_name,
                quantity=_clamp(quantity, 1, MAX_UNITS),
                location_id=location_id,
                days_to_expire=days_to_expire,
                opened=opened,
                explicit_status=status if days_to_expire is None else None,
                created_at=now,
                updated_at=now,
            )
            self._items[item.id] = item
        logger.info("Added item %s x%d", item.name, item.quantity)
        self._changed()
        return item

    def use_item(self, item_id: str, amount: int = 1) -> Optional[Item]:
        """Consume units of an item. Returns None once it is used up."""
        if amount < 1:
            raise InvalidQuantity(f"use amount must be at least 1, got {amount}.")
        with self._lock:
            item = self.get_item(item_id)
            remaining = item.quantity - min(amount, item.quantity)
            if remaining == 0:
                del self._items[item_id]
                updated = None
            else:
                updated = item.model_copy(update={"quantity": remaining, "opened": True, "updated_at": now_iso()})
                self._items[item_id] = updated
        logger.info("Used %d of item %s, %d left", amount, item_id, remaining)
        self._changed()
        return updated

    def move_item(self, item_id: str, location_id: str) -> Item:
        with self._lock:
            item = self.get_item(item_id)
            self.get_location(location_id)
            updated = item.model_copy(update={"location_id": location_id, "updated_at": now_iso()})
            self._items[item_id] = updated
        self._changed()
        return updated

    def delete_item(self, item_id: str) -> None:
        with self._lock:
            self.get_item(item_id)
            del self._items[item_id]
        self._changed()

    # --- Batches -------------------------------------------------------------

    def add_batch(
        self,
        name: str,
        location_id: str,
        count_label: str = "",
        nearest_days: int = 0,
        opened: int = 0,
        total: int = 1,
        window_days: Optional[int] = None,
    ) -> Batch:
        batch_name = _required_name(name)
        if total < 1:
            raise InvalidField(f"total must be at least 1, got {total}.")
        opened = _clamp(opened, 0, MAX_UNITS)
        total = _clamp(max(total, opened), 1, MAX_UNITS)
        now = now_iso()
        with self._lock:
            location = self.get_location(location_id)
            batch = Batch(
                id=new_id(),
                name=batch_name,
                count_label=(count_label or "").strip() or DEFAULT_COUNT_LABEL,
                location_id=location_id,
                nearest_days=_clamp(nearest_days, 0, MAX_NEAREST_DAYS),
                opened=opened,
                total=total,
                window_days=max(window_days or DEFAULT_WINDOW_DAYS_BY_KIND[location.kind], 1),
                created_at=now,
                updated_at=now,
            )
            self._batches[batch.id] = batch
        logger.info("Added batch %s (%d units)", batch.name, batch.total)
        self._changed()
        return batch

    def use_batch(self, batch_id: str, amount: int = 1) -> Optional[Batch]:
        """Consume units of a batch. Returns None when the batch is depleted."""
        with self._lock:
            updated = lifecycle.use_batch(self.get_batch(batch_id), amount)
            if updated is None:
                del self._batches[batch_id]
            else:
                self._batches[batch_id] = updated
        if updated is None:
            logger.info("Batch %s depleted", batch_id)
        else:
            logger.info("Used %d of batch %s, %d left", amount, batch_id, updated.total)
        self._changed()
        return updated

    def split_batch(self, batch_id: str, amount: int) -> tuple[Batch, Batch]:
        """Returns ``(source, split_off)``; the new batch is listed after its source."""
        with self._lock:
            source, split_off = lifecycle.split_batch(self.get_batch(batch_id), amount)
            self._batches = self._rebuilt_batches({batch_id: [source, split_off]})
        logger.info("Split %d units off batch %s into %s", amount, batch_id, split_off.id)
        self._changed()
        return source, split_off

    def merge_batches(self, first_id: str, second_id: str) -> Batch:
        """Merge two batches into a new one that takes the first one's place."""
        with self._lock:
            merged = lifecycle.merge_batches(self.get_batch(first_id), self.get_batch(second_id))
            self._batches = self._rebuilt_batches({first_id: [merged], second_id: []})
        logger.info("Merged batches %s and %s into %s", first_id, second_id, merged.id)
        self._changed()
        return merged

    def move_batch(self, batch_id: str, location_id: str) -> Batch:
        with self._lock:
            batch = self.get_batch(batch_id)
            self.get_location(location_id)
            moved = lifecycle.move_batch(batch, location_id)
            self._batches[batch_id] = moved
        logger.info("Moved batch %s to location %s", batch_id, location_id)
        self._changed()
        return moved

    def delete_batch(self, batch_id: str) -> None:
        with self._lock:
            self.get_batch(batch_id)
            del self._batches[batch_id]
        self._changed()

    def _rebuilt_batches(self, replacements: dict[str, list[Batch]]) -> dict[str, Batch]:
        rebuilt: dict[str, Batch] = {}
        for batch_id, batch in self._batches.items():
            for replacement in replacements.get(batch_id, [batch]):
                rebuilt[replacement.id] = replacement
        return rebuilt

    # --- Whole inventory -----------------------------------------------------

    def clear(self) -> None:
        with self._lock:
            self._locations = {}
            self._items = {}
            self._batches = {}
        logger.info("Cleared all inventory data")
        self._changed()

    def load(self, locations: list[dict], items: list[dict], batches: list[dict]) -> None:
        """Replace the whole inventory from persisted rows."""
        loaded_locations = [Location.model_validate(row) for row in locations]
        loaded_items = [Item.model_validate(row) for row in items]
        loaded_batches = [Batch.model_validate(row) for row in batches]
        with self._lock:
            self._locations = {location.id: location for location in loaded_locations}
            self._items = {item.id: item for item in loaded_items}
            self._batches = {batch.id: batch for batch in loaded_batches}
        logger.info(
            "Loaded %d locations, %d items, %d batches",
            len(loaded_locations),
            len(loaded_items),
            len(loaded_batches),
        )

    def to_rows(self) -> dict[str, list[dict[str, Any]]]:
        snap = self.snapshot()
        return {
            "locations": [location.model_dump(mode="json") for location in snap.locations],
            "items": [item.model_dump(mode="json", exclude=DERIVED_FIELDS) for item in snap.items],
            "batches": [batch.model_dump(mode="json", exclude=DERIVED_FIELDS) for batch in snap.batches],
        }
