"""Realtime polling broadcaster."""

from shiftlens.realtime.poller import RealtimePoller
from shiftlens.realtime.registry import SubscriptionRegistry

__all__ = ["RealtimePoller", "SubscriptionRegistry"]
