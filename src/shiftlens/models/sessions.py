"""Pydantic models for reconstructed presence sessions."""

from typing import Literal

from pydantic import BaseModel, Field, computed_field

from shiftlens.constants import SECONDS_PER_HOUR

SessionStatus = Literal["completed", "active"]


class Session(BaseModel):
    """
    A contiguous interval during which a subject was present.

    Attributes:
        subject: Employee name (or desk key for desk-centric views)
        camera: Camera the presence was observed on
        zone: Zone name, or None for camera-level presence
        entry: Entry timestamp (unix seconds)
        exit: Exit timestamp, None while the session is still open
        end_bound: Effective end used for duration (exit, or window end when open)
        status: "completed" when a real exit was seen, "active" otherwise
        event_count: Source rows folded into this session
    """

    subject: str
    camera: str
    zone: str | None = None
    entry: float
    exit: float | None = None
    end_bound: float
    status: SessionStatus = "completed"
    event_count: int = Field(default=1, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_seconds(self) -> float:
        return max(self.end_bound - self.entry, 0.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / SECONDS_PER_HOUR

    @property
    def is_open(self) -> bool:
        return self.status == "active"


class BreakInterval(BaseModel):
    """Gap between two consecutive presence intervals of one employee."""

    start: float = Field(description="Previous exit (unix seconds)")
    end: float = Field(description="Next entry (unix seconds)")
    camera: str | None = Field(default=None, description="Camera of the next entry")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_hours(self) -> float:
        return max(self.end - self.start, 0.0) / SECONDS_PER_HOUR
