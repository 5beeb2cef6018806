from __future__ import annotations

from enum import Enum
from typing import Optional

from freshguard.config import DUE_TODAY_DAYS, SOON_MAX_DAYS, URGENT_MAX_DAYS


class Status(str, Enum):
    FRESH = "fresh"
    SOON = "soon"
    DUE_TODAY = "due_today"
    URGENT = "urgent"
    EXPIRED = "expired"

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank >= other.rank


# Increasing urgency.
STATUS_ORDER: tuple[Status, ...] = (
    Status.FRESH,
    Status.SOON,
    Status.DUE_TODAY,
    Status.URGENT,
    Status.EXPIRED,
)


def classify(
    days_remaining: int,
    *,
    due_today_days: int = DUE_TODAY_DAYS,
    urgent_max_days: int = URGENT_MAX_DAYS,
    soon_max_days: int = SOON_MAX_DAYS,
) -> Status:
    if days_remaining < due_today_days:
        return Status.EXPIRED
    if days_remaining == due_today_days:
        return Status.DUE_TODAY
    if days_remaining <= urgent_max_days:
        return Status.URGENT
    if days_remaining <= soon_max_days:
        return Status.SOON
    return Status.FRESH


def status_for(days_remaining: Optional[int], explicit: Optional[Status] = None) -> Status:
    """Status of an entity whose expiry may be unknown.

    Unknown dates are never urgent by date: they keep the status given at
    creation, or fall back to fresh.
    """
    if days_remaining is None:
        return explicit or Status.FRESH
    return classify(days_remaining)


def progress(days_remaining: int, window_days: int) -> float:
    """Freshness fraction: 1.0 is just stocked, 0.0 is expired."""
    if window_days <= 0:
        return 1.0 if days_remaining > 0 else 0.0
    return min(max(days_remaining / window_days, 0.0), 1.0)
