"""Daily digest: settings ownership, fire-time computation and arming.

The core only decides whether and when a digest should fire. Delivering it
is left to a ``DigestNotifier`` implementation.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional, Protocol, Union

from freshguard.config import DIGEST_MAX_ENTRIES
from freshguard.models import Batch, DigestEntry, DigestSettings, Item
from freshguard.services.freshness import Status

logger = logging.getLogger(__name__)

DIGEST_MIN_STATUS = Status.DUE_TODAY

# Opaque key-value names used by the settings store.
SETTINGS_KEYS: dict[str, str] = {
    "push_enabled": "pushEnabled",
    "digest_enabled": "digestEnabled",
    "hour": "digestHour",
    "minute": "digestMinute",
}

SettingsListener = Callable[[DigestSettings], None]


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def next_fire_time(settings: DigestSettings, now: datetime) -> Optional[datetime]:
    """Next hour:minute strictly after ``now``, or None when unscheduled."""
    if not settings.push_enabled or not settings.digest_enabled:
        return None
    candidate = now.replace(hour=settings.hour, minute=settings.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def digest_content(
    entities: Iterable[Union[Item, Batch]],
    limit: Optional[int] = None,
) -> list[DigestEntry]:
    """Entities due today or worse, soonest first, ties broken by name."""
    due = [entity for entity in entities if entity.status >= DIGEST_MIN_STATUS]
    due.sort(
        key=lambda entity: (
            entity.days_left is None,
            entity.days_left if entity.days_left is not None else 0,
            entity.name,
        )
    )
    if limit is not None:
        due = due[:limit]
    return [DigestEntry(name=entity.name, status=entity.status, days=entity.days_left) for entity in due]


def settings_to_pairs(settings: DigestSettings) -> dict[str, Any]:
    return {SETTINGS_KEYS[field]: getattr(settings, field) for field in SETTINGS_KEYS}


def settings_from_pairs(pairs: Optional[dict[str, Any]]) -> DigestSettings:
    return DigestSettings.model_validate(pairs or {})


class DigestSettingsManager:
    """Owns the in-memory ``DigestSettings`` and announces every change.

    Listeners are called with the new settings after each effective change;
    persistence and re-arming subscribe here.
    """

    def __init__(self, settings: Optional[DigestSettings] = None) -> None:
        self._settings = settings or DigestSettings()
        self._lock = threading.Lock()
        self._listeners: list[SettingsListener] = []

    @property
    def settings(self) -> DigestSettings:
        return self._settings

    def subscribe(self, listener: SettingsListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_push_enabled(self, enabled: bool) -> DigestSettings:
        changes: dict[str, Any] = {"push_enabled": enabled}
        if not enabled:
            changes["digest_enabled"] = False
        return self._replace(**changes)

    def set_digest_enabled(self, enabled: bool) -> DigestSettings:
        if enabled and not self._settings.push_enabled:
            logger.info("Ignoring digest toggle: push notifications are disabled")
            return self._settings
        return self._replace(digest_enabled=enabled)

    def set_digest_time(self, hour: int, minute: int) -> DigestSettings:
        return self._replace(hour=hour, minute=minute)

    def reset(self) -> DigestSettings:
        return self._replace(**DigestSettings().model_dump())

    def _replace(self, **changes: Any) -> DigestSettings:
        with self._lock:
            previous = self._settings
            updated = DigestSettings.model_validate({**previous.model_dump(), **changes})
            if updated == previous:
                return previous
            self._settings = updated
        for listener in list(self._listeners):
            listener(updated)
        return updated


class DigestNotifier(Protocol):
    def arm(self, fire_at: datetime) -> None: ...

    def cancel(self) -> None: ...

    def deliver(self, entries: list[DigestEntry]) -> None: ...


class LoggingDigestNotifier:
    """Stand-in notifier that records and logs instead of pushing alerts."""

    def __init__(self) -> None:
        self.armed_at: Optional[datetime] = None
        self.delivered: list[list[DigestEntry]] = []

    def arm(self, fire_at: datetime) -> None:
        self.armed_at = fire_at
        logger.info("Digest armed for %s", fire_at.isoformat())

    def cancel(self) -> None:
        self.armed_at = None
        logger.info("Digest cancelled")

    def deliver(self, entries: list[DigestEntry]) -> None:
        self.delivered.append(entries)
        logger.info("Digest delivered with %d entries", len(entries))


class DigestScheduler:
    """Keeps the notifier armed in step with the digest settings."""

    def __init__(
        self,
        settings: DigestSettingsManager,
        entities: Callable[[], Iterable[Union[Item, Batch]]],
        notifier: Optional[DigestNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings
        self._entities = entities
        self._notifier = notifier or LoggingDigestNotifier()
        self._clock = clock or datetime.now
        self._next_fire: Optional[datetime] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def next_fire(self) -> Optional[datetime]:
        return self._next_fire

    @property
    def notifier(self) -> DigestNotifier:
        return self._notifier

    def now(self) -> datetime:
        return _local_naive(self._clock())

    def start(self) -> None:
        self._settings.subscribe(self._on_settings_changed)
        self._running = True
        self.reschedule()
        logger.info("Digest scheduler started")

    def stop(self) -> None:
        if not self._running:
            return
        self._settings.unsubscribe(self._on_settings_changed)
        if self._next_fire is not None:
            self._notifier.cancel()
        self._next_fire = None
        self._running = False
        logger.info("Digest scheduler stopped")

    def reschedule(self, now: Optional[datetime] = None) -> Optional[datetime]:
        current = _local_naive(now) if now else self.now()
        fire_at = next_fire_time(self._settings.settings, current)
        if fire_at is None:
            if self._next_fire is not None:
                self._notifier.cancel()
        else:
            self._notifier.arm(fire_at)
        self._next_fire = fire_at
        return fire_at

    def run_due(self, as_of: Optional[datetime] = None) -> Optional[list[DigestEntry]]:
        """Deliver the digest if its fire time has passed, then re-arm."""
        current = _local_naive(as_of) if as_of else self.now()
        if self._next_fire is None or self._next_fire > current:
            return None
        entries = digest_content(self._entities(), limit=DIGEST_MAX_ENTRIES)
        self._notifier.deliver(entries)
        self.reschedule(current)
        return entries

    def _on_settings_changed(self, _settings: DigestSettings) -> None:
        self.reschedule()
