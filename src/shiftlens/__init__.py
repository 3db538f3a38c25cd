"""
SHIFTLENS: Workplace analytics over Frigate NVR detections

Session reconstruction, work-hours, occupancy and trend analytics with an
MCP server and a realtime event broadcaster.
"""

from typing import Any

__all__ = ["server"]


def __getattr__(name: str) -> Any:
    """Lazy load server to avoid circular imports at module level."""
    if name == "server":
        from shiftlens.server import server

        return server
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
