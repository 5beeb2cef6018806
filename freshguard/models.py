from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)

from freshguard.config import DEFAULT_DIGEST_HOUR, DEFAULT_DIGEST_MINUTE
from freshguard.services.freshness import Status, progress, status_for


LocationKind = Literal["refrigerated", "frozen", "pantry"]
StatusFilter = Literal["all", "fresh", "soon", "due_today", "urgent", "expired"]


class ApiError(BaseModel):
    error: str
    kind: str


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: LocationKind = "refrigerated"
    subtitle: str = ""
    target_temp: Optional[str] = None
    created_at: str


class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    quantity: int = Field(ge=1)
    location_id: str
    days_to_expire: Optional[int] = None
    opened: bool = False
    explicit_status: Optional[Status] = None
    created_at: str
    updated_at: str

    @computed_field
    @property
    def status(self) -> Status:
        return status_for(self.days_to_expire, self.explicit_status)

    @property
    def days_left(self) -> Optional[int]:
        return self.days_to_expire


class Batch(BaseModel):
    """A group of identical units sharing one expiry timeline.

    ``status`` and ``progress`` are recomputed from ``nearest_days`` on every
    read, so a lifecycle step can never leave them stale.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    count_label: str
    location_id: str
    nearest_days: int = Field(ge=0)
    opened: int = Field(ge=0)
    total: int = Field(ge=1)
    window_days: int = Field(ge=1)
    created_at: str
    updated_at: str

    @model_validator(mode="after")
    def _opened_within_total(self) -> "Batch":
        if self.opened > self.total:
            raise ValueError("opened cannot exceed total")
        return self

    @computed_field
    @property
    def status(self) -> Status:
        return status_for(self.nearest_days)

    @computed_field
    @property
    def progress(self) -> float:
        return progress(self.nearest_days, self.window_days)

    @property
    def days_left(self) -> Optional[int]:
        return self.nearest_days


_TIME_BOUNDS: dict[str, tuple[int, int]] = {
    "hour": (DEFAULT_DIGEST_HOUR, 23),
    "minute": (DEFAULT_DIGEST_MINUTE, 59),
}


class DigestSettings(BaseModel):
    """Digest preferences.

    Also validates the opaque key-value pairs of the settings store
    (``pushEnabled``, ``digestEnabled``, ``digestHour``, ``digestMinute``).
    """

    model_config = ConfigDict(frozen=True)

    push_enabled: bool = Field(default=False, validation_alias=AliasChoices("push_enabled", "pushEnabled"))
    digest_enabled: bool = Field(default=False, validation_alias=AliasChoices("digest_enabled", "digestEnabled"))
    hour: int = Field(default=DEFAULT_DIGEST_HOUR, ge=0, le=23, validation_alias=AliasChoices("hour", "digestHour"))
    minute: int = Field(
        default=DEFAULT_DIGEST_MINUTE, ge=0, le=59, validation_alias=AliasChoices("minute", "digestMinute")
    )

    @field_validator("digest_enabled")
    @classmethod
    def _digest_requires_push(cls, value: bool, info: ValidationInfo) -> bool:
        return value and info.data.get("push_enabled", False)

    @field_validator("hour", "minute", mode="before")
    @classmethod
    def _clamp_time(cls, value: Any, info: ValidationInfo) -> int:
        fallback, high = _TIME_BOUNDS[info.field_name]
        try:
            number = int(round(float(value)))
        except (TypeError, ValueError):
            number = fallback
        return min(max(number, 0), high)


class DigestEntry(BaseModel):
    name: str
    status: Status
    days: Optional[int] = None


class LocationCreateRequest(BaseModel):
    name: str
    kind: LocationKind = "refrigerated"
    subtitle: str = ""
    target_temp: Optional[str] = None


class LocationUpdateRequest(BaseModel):
    name: Optional[str] = None
    subtitle: Optional[str] = None
    target_temp: Optional[str] = None


class ItemCreateRequest(BaseModel):
    name: str
    location_id: str
    quantity: int = 1
    days_to_expire: Optional[int] = None
    opened: bool = False
    status: Optional[Status] = None


class BatchCreateRequest(BaseModel):
    name: str
    location_id: str
    count_label: str = ""
    nearest_days: int = 0
    opened: int = 0
    total: int = 1
    window_days: Optional[int] = None


class UseRequest(BaseModel):
    amount: int = 1


class SplitRequest(BaseModel):
    amount: int


class MergeRequest(BaseModel):
    first_id: str
    second_id: str


class MoveRequest(BaseModel):
    location_id: str


class TogglePayload(BaseModel):
    enabled: bool


class DigestTimePayload(BaseModel):
    hour: int
    minute: int


class RunDuePayload(BaseModel):
    as_of_datetime: Optional[datetime] = None
