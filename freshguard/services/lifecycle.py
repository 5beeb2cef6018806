"""Batch lifecycle transformations: use, split, merge and move.

Each function takes frozen ``Batch`` values and returns new ones; nothing is
mutated in place. Validation happens before any value is built, so a raised
error means no new state exists at all.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from freshguard.config import MAX_UNITS
from freshguard.errors import IncompatibleBatches, InvalidQuantity
from freshguard.models import Batch

_COUNT_LABEL_RE = re.compile(r"^(\s*)(\d+)(\s.*)?$")


def now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid4())


def relabel(count_label: str, total: int) -> str:
    """Rewrite a "<n> <unit>" label for a new total; other labels are kept."""
    match = _COUNT_LABEL_RE.match(count_label or "")
    if not match:
        return count_label
    lead, _, rest = match.groups()
    return f"{lead}{total}{rest or ''}"


def _rebuild(batch: Batch, **changes) -> Batch:
    data = batch.model_dump(exclude={"status", "progress"})
    data.update(changes)
    if "total" in changes:
        data["count_label"] = relabel(batch.count_label, changes["total"])
    data["updated_at"] = now_iso()
    return Batch.model_validate(data)


def use_batch(batch: Batch, amount: int = 1) -> Optional[Batch]:
    """Consume ``amount`` units. Returns None once the batch is depleted."""
    if amount < 1:
        raise InvalidQuantity(f"use amount must be at least 1, got {amount}.")
    used = min(amount, batch.total)
    remaining = batch.total - used
    if remaining == 0:
        return None
    opened = min(batch.opened + used, remaining)
    return _rebuild(batch, total=remaining, opened=opened)


def split_batch(batch: Batch, amount: int, *, split_id: Optional[str] = None) -> tuple[Batch, Batch]:
    """Carve ``amount`` units off into a new batch.

    Returns ``(source, split_off)``. Opened units go to the new batch first.
    """
    if amount < 1 or amount >= batch.total:
        raise InvalidQuantity(
            f"split amount must be between 1 and {batch.total - 1}, got {amount}."
        )
    moved_opened = min(batch.opened, amount)
    now = now_iso()
    split_off = _rebuild(
        batch,
        id=split_id or new_id(),
        total=amount,
        opened=moved_opened,
        created_at=now,
    )
    source = _rebuild(batch, total=batch.total - amount, opened=batch.opened - moved_opened)
    return source, split_off


def merge_batches(first: Batch, second: Batch, *, merged_id: Optional[str] = None) -> Batch:
    if first.id == second.id:
        raise IncompatibleBatches("a batch cannot be merged with itself.")
    if first.location_id != second.location_id:
        raise IncompatibleBatches("batches are stored in different locations.")
    if first.name != second.name:
        raise IncompatibleBatches(
            f"batches hold different products: {first.name!r} and {second.name!r}."
        )
    total = first.total + second.total
    if total > MAX_UNITS:
        raise InvalidQuantity(f"merged total {total} exceeds the {MAX_UNITS} unit limit.")
    # The earliest-expiring unit dictates the merged timeline.
    dominant = second if second.nearest_days < first.nearest_days else first
    now = now_iso()
    return _rebuild(
        first,
        id=merged_id or new_id(),
        total=total,
        opened=first.opened + second.opened,
        nearest_days=dominant.nearest_days,
        window_days=dominant.window_days,
        created_at=now,
    )


def move_batch(batch: Batch, location_id: str) -> Batch:
    return _rebuild(batch, location_id=location_id)
