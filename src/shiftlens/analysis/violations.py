"""Grouping of cell-phone detections per employee and per camera."""

from collections.abc import Iterable

from shiftlens.constants import VIOLATION_LABELS
from shiftlens.models.events import DetectionEvent
from shiftlens.models.time_range import TimeRange
from shiftlens.models.violations import (
    CameraViolations,
    EmployeeViolations,
    Violation,
    ViolationReport,
)


def to_violation(event: DetectionEvent) -> Violation:
    return Violation(
        timestamp=event.timestamp,
        camera=event.camera,
        employee=event.sub_label,
        confidence=event.score,
        zones=list(event.zones),
        source_id=event.source_id,
    )


def _average_confidence(violations: list[Violation]) -> float | None:
    scores = [v.confidence for v in violations if v.confidence is not None]
    return sum(scores) / len(scores) if scores else None


def build_violation_report(
    events: Iterable[DetectionEvent], time_range: TimeRange, limit: int | None = None
) -> ViolationReport:
    """
    Group violation detections.

    Args:
        events: Rows in the window; labels outside VIOLATION_LABELS are ignored
        time_range: Window the rows were read for
        limit: Cap on the flat `violations` list and on each group's list

    Returns:
        ViolationReport with employees ordered by count (then name) and
        cameras ordered by count (then name)
    """
    violations = sorted(
        (to_violation(e) for e in events if e.label in VIOLATION_LABELS),
        key=lambda v: v.timestamp,
        reverse=True,
    )

    by_employee: dict[str, list[Violation]] = {}
    by_camera: dict[str, list[Violation]] = {}
    for violation in violations:
        if violation.employee:
            by_employee.setdefault(violation.employee, []).append(violation)
        by_camera.setdefault(violation.camera, []).append(violation)

    employees = [
        EmployeeViolations(
            employee=name,
            total_violations=len(items),
            cameras=sorted({v.camera for v in items}),
            first_violation=items[-1].timestamp,
            last_violation=items[0].timestamp,
            average_confidence=_average_confidence(items),
            violations=items[:limit],
        )
        for name, items in by_employee.items()
    ]
    employees.sort(key=lambda e: (-e.total_violations, e.employee))

    cameras = [
        CameraViolations(
            camera=name,
            total_violations=len(items),
            unique_employees=len({v.employee for v in items if v.employee}),
            unidentified=sum(1 for v in items if not v.employee),
            last_violation=items[0].timestamp,
            violations=items[:limit],
        )
        for name, items in by_camera.items()
    ]
    cameras.sort(key=lambda c: (-c.total_violations, c.camera))

    return ViolationReport(
        violations=violations[:limit],
        total_violations=len(violations),
        unidentified_violations=sum(1 for v in violations if not v.employee),
        employees=employees,
        cameras=cameras,
        period=time_range,
    )
