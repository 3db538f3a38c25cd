"""In-memory EventSource for service and poller tests."""

from collections.abc import Iterable

from shiftlens.exceptions import SourceQueryError
from shiftlens.models.events import DetectionEvent, EventFilter, Recording, RecordingFilter


class FakeEventSource:
    """
    EventSource backed by lists, evaluating filters in memory.

    Args:
        events: Timeline rows
        recordings: Recording segments
        fail_calls: 1-based indices of `query_events` calls that raise
            SourceQueryError
    """

    def __init__(
        self,
        events: Iterable[DetectionEvent] = (),
        recordings: Iterable[Recording] = (),
        fail_calls: Iterable[int] = (),
    ):
        self.events = list(events)
        self.recordings = list(recordings)
        self.fail_calls = set(fail_calls)
        self.calls: list[EventFilter] = []
        self.closed = False

    def add(self, *events: DetectionEvent) -> None:
        self.events.extend(events)

    async def query_events(self, filters: EventFilter) -> list[DetectionEvent]:
        self.calls.append(filters)
        if len(self.calls) in self.fail_calls:
            raise SourceQueryError(f"Injected failure on call {len(self.calls)}")

        matched = [e for e in self.events if filters.matches(e)]
        matched.sort(key=lambda e: e.timestamp, reverse=not filters.ascending)
        if filters.limit is not None:
            matched = matched[: filters.limit]
        return matched

    async def query_recordings(self, filters: RecordingFilter) -> list[Recording]:
        matched = [
            r
            for r in self.recordings
            if filters.start_time <= r.start_time <= filters.end_time
            and (filters.camera is None or r.camera == filters.camera)
        ]
        matched.sort(key=lambda r: r.start_time, reverse=True)
        if filters.limit is not None:
            matched = matched[: filters.limit]
        return matched

    async def list_cameras(self) -> list[str]:
        return sorted({e.camera for e in self.events} | {r.camera for r in self.recordings})

    async def close(self) -> None:
        self.closed = True
