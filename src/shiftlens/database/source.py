"""Event source interface consumed by the analytics engine and the poller."""

from typing import Protocol, runtime_checkable

from shiftlens.models.events import DetectionEvent, EventFilter, Recording, RecordingFilter


@runtime_checkable
class EventSource(Protocol):
    """
    Read-only access to detection rows and recording segments.

    Implementations return typed rows ordered by timestamp (descending unless
    the filter asks for ascending) and raise `SourceQueryError` or
    `SourceTimeout` on failure.
    """

    async def query_events(self, filters: EventFilter) -> list[DetectionEvent]: ...

    async def query_recordings(self, filters: RecordingFilter) -> list[Recording]: ...

    async def list_cameras(self) -> list[str]: ...

    async def close(self) -> None: ...
