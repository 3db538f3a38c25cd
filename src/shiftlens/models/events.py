"""Pydantic models for detection rows read from the Frigate database."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shiftlens.constants import DEFAULT_EVENT_LIMIT, ClassType


class DetectionEvent(BaseModel):
    """
    A single timeline row, already parsed from Frigate's JSON payload.

    Instances are immutable; analysis code only derives structures from them.

    Attributes:
        timestamp: Unix seconds
        camera: Camera name
        label: Object label ("person", "cell phone", ...)
        sub_label: Recognized identity (employee name), if any
        zones: Zones the object was in, in source order without duplicates
        class_type: Zone transition kind
        score: Detection confidence (0-1)
        source_id: Frigate tracked-object id
    """

    model_config = ConfigDict(frozen=True)

    timestamp: float = Field(description="Unix timestamp (seconds)")
    camera: str = Field(description="Camera name")
    label: str = Field(description="Detected object label")
    sub_label: str | None = Field(default=None, description="Employee name")
    zones: tuple[str, ...] = Field(default=(), description="Ordered zone names")
    class_type: ClassType = Field(default=ClassType.OTHER)
    score: float | None = Field(default=None, ge=0, le=1)
    source_id: str | None = Field(default=None)

    @field_validator("zones", mode="before")
    @classmethod
    def _dedupe_zones(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        seen: dict[str, None] = {}
        for zone in value:  # type: ignore[attr-defined]
            if zone is not None:
                seen.setdefault(str(zone), None)
        return tuple(seen)

    @field_validator("class_type", mode="before")
    @classmethod
    def _parse_class_type(cls, value: object) -> ClassType:
        if isinstance(value, ClassType):
            return value
        return ClassType.parse(value if isinstance(value, str) else None)

    @property
    def employee(self) -> str | None:
        """Employee identity (alias of sub_label)."""
        return self.sub_label

    @property
    def is_zone_transition(self) -> bool:
        return self.class_type in (ClassType.ENTERED_ZONE, ClassType.LEFT_ZONE)


class Recording(BaseModel):
    """A recording segment from the `recordings` table."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None)
    camera: str
    start_time: float = Field(description="Segment start (unix seconds)")
    end_time: float = Field(description="Segment end (unix seconds)")
    duration: float = Field(ge=0, description="Segment duration (seconds)")


class EventFilter(BaseModel):
    """
    Query predicate for the event source.

    The time filter is inclusive at both ends. `limit=None` disables the row cap.
    """

    start_time: float
    end_time: float
    camera: str | None = None
    label: str | None = None
    sub_label: str | None = None
    class_type: ClassType | None = None
    class_types: tuple[ClassType, ...] | None = None
    zone: str | None = None
    has_sub_label: bool = False
    has_zones: bool = False
    limit: int | None = Field(default=DEFAULT_EVENT_LIMIT, ge=1)
    ascending: bool = False

    def matches(self, event: DetectionEvent) -> bool:
        """Evaluate the filter in memory (used by fakes and the poller)."""
        if not self.start_time <= event.timestamp <= self.end_time:
            return False
        if self.camera is not None and event.camera != self.camera:
            return False
        if self.label is not None and event.label != self.label:
            return False
        if self.sub_label is not None and event.sub_label != self.sub_label:
            return False
        if self.class_type is not None and event.class_type != self.class_type:
            return False
        if self.class_types is not None and event.class_type not in self.class_types:
            return False
        if self.zone is not None and self.zone not in event.zones:
            return False
        if self.has_sub_label and not event.sub_label:
            return False
        if self.has_zones and not event.zones:
            return False
        return True


class RecordingFilter(BaseModel):
    """Query predicate for recording segments."""

    start_time: float
    end_time: float
    camera: str | None = None
    limit: int | None = Field(default=DEFAULT_EVENT_LIMIT, ge=1)
