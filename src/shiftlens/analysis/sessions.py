"""
Session reconstruction from zone enter/leave and presence events.

Walks a subject's events in time order and pairs opens with closes per
(subject, camera, zone) key. Sessions still open when the events run out are
closed virtually at the window end and marked "active"; their duration is an
approximation against that boundary, not a real exit.
"""

import logging

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from shiftlens.constants import UNKNOWN_SUBJECT, ClassType
from shiftlens.models.events import DetectionEvent
from shiftlens.models.sessions import Session

logger = logging.getLogger(__name__)

SessionKey = tuple[str, str | None]  # (camera, zone)


@dataclass
class _OpenSession:
    entry: float
    last_seen: float
    event_count: int = 1


def default_subject_key(event: DetectionEvent) -> str:
    """Group by employee identity, pooling unidentified detections."""
    return event.sub_label or UNKNOWN_SUBJECT


class SessionReconstructor:
    """
    Rebuild presence sessions from time-ordered detection events.

    Args:
        gap_threshold: Seconds of silence after which a presence ("other")
            event starts a new session instead of extending the open one.
            None disables gap splitting.
        merge_zones: Key sessions per (subject, camera) instead of per zone.
        subject_key: Maps an event to its subject for `reconstruct_all`.
    """

    def __init__(
        self,
        gap_threshold: float | None = None,
        merge_zones: bool = False,
        subject_key: Callable[[DetectionEvent], str] = default_subject_key,
    ):
        if gap_threshold is not None and gap_threshold <= 0:
            raise ValueError(f"gap_threshold must be positive, got {gap_threshold}")
        self.gap_threshold = gap_threshold
        self.merge_zones = merge_zones
        self.subject_key = subject_key

    def _keys(self, event: DetectionEvent) -> list[SessionKey]:
        if self.merge_zones or not event.zones:
            return [(event.camera, None)]
        return [(event.camera, zone) for zone in event.zones]

    def reconstruct(
        self,
        events: Iterable[DetectionEvent],
        window_end: float,
        subject: str | None = None,
    ) -> list[Session]:
        """
        Reconstruct sessions for a single subject.

        Args:
            events: DetectionEvents for one subject, any order
            window_end: Query window end; closes sessions left open
            subject: Subject name for the output (defaults to the first
                event's subject key)

        Returns:
            Sessions ordered by entry time
        """
        # Stable sort keeps source order for identical timestamps
        ordered = sorted(events, key=lambda e: e.timestamp)
        if not ordered:
            return []
        if subject is None:
            subject = self.subject_key(ordered[0])

        open_sessions: dict[SessionKey, _OpenSession] = {}
        sessions: list[Session] = []

        def close(key: SessionKey, state: _OpenSession, exit_time: float) -> None:
            camera, zone = key
            sessions.append(
                Session(
                    subject=subject,
                    camera=camera,
                    zone=zone,
                    entry=state.entry,
                    exit=exit_time,
                    end_bound=exit_time,
                    status="completed",
                    event_count=state.event_count,
                )
            )

        for event in ordered:
            ts = event.timestamp
            for key in self._keys(event):
                state = open_sessions.get(key)

                if event.class_type == ClassType.ENTERED_ZONE:
                    if state is None:
                        open_sessions[key] = _OpenSession(entry=ts, last_seen=ts)
                    else:
                        # Duplicate open: keep the earliest entry
                        state.event_count += 1
                        state.last_seen = ts

                elif event.class_type == ClassType.LEFT_ZONE:
                    if state is None:
                        logger.debug(
                            f"Ignoring left_zone without open session: "
                            f"{subject} {key} @ {ts}"
                        )
                        continue
                    state.event_count += 1
                    close(key, state, ts)
                    del open_sessions[key]

                else:
                    if state is None:
                        open_sessions[key] = _OpenSession(entry=ts, last_seen=ts)
                    elif (
                        self.gap_threshold is not None
                        and ts - state.last_seen > self.gap_threshold
                    ):
                        close(key, state, state.last_seen)
                        open_sessions[key] = _OpenSession(entry=ts, last_seen=ts)
                    else:
                        state.event_count += 1
                        state.last_seen = ts

        for (camera, zone), state in open_sessions.items():
            sessions.append(
                Session(
                    subject=subject,
                    camera=camera,
                    zone=zone,
                    entry=state.entry,
                    exit=None,
                    end_bound=max(window_end, state.entry),
                    status="active",
                    event_count=state.event_count,
                )
            )

        sessions.sort(key=lambda s: (s.entry, s.camera, s.zone or ""))
        return sessions

    def reconstruct_all(
        self, events: Iterable[DetectionEvent], window_end: float
    ) -> dict[str, list[Session]]:
        """
        Reconstruct sessions for every subject present in `events`.

        Returns:
            Mapping of subject -> sessions ordered by entry, subjects in order
            of first appearance
        """
        grouped: dict[str, list[DetectionEvent]] = {}
        for event in events:
            grouped.setdefault(self.subject_key(event), []).append(event)

        return {
            subject: self.reconstruct(subject_events, window_end, subject=subject)
            for subject, subject_events in grouped.items()
        }


def flatten_sessions(sessions_by_subject: dict[str, list[Session]]) -> list[Session]:
    """All sessions from a `reconstruct_all` result, ordered by entry."""
    flat = [s for sessions in sessions_by_subject.values() for s in sessions]
    flat.sort(key=lambda s: s.entry)
    return flat
