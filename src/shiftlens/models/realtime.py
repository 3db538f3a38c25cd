"""Pydantic models for the realtime broadcaster."""

import json

from typing import Any

from pydantic import BaseModel, Field


class Subscription(BaseModel):
    """A client's interest in one event category, with optional filters."""

    client_id: str
    event_type: str
    filters: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        """`<event_type>_<canonical JSON of filters>`, stable across key order."""
        return f"{self.event_type}_{json.dumps(self.filters, sort_keys=True, default=str)}"


class RealtimeEvent(BaseModel):
    """One event delivered to subscribers."""

    type: str = Field(description="Category, e.g. 'employee_activity'")
    event: str = Field(description="Event name, e.g. 'employee_entered'")
    data: dict[str, Any] = Field(default_factory=dict)


class BroadcastPayload(BaseModel):
    """Message handed to the transport for one client and category."""

    event_type: str
    events: list[dict[str, Any]]
    timestamp: float


class PollerStats(BaseModel):
    """Snapshot of poller state."""

    client_count: int = 0
    subscription_count: int = 0
    active_subscriptions: list[str] = Field(default_factory=list)
    last_poll_time: float | None = None
    is_polling: bool = False
    tick_count: int = 0
    failed_ticks: int = 0
