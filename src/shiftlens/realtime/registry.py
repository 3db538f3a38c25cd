"""
Client and subscription registry for the realtime broadcaster.

The subscription table is copy-on-write: every mutation builds a new mapping
and swaps it in, so a broadcast iterating over a snapshot never sees a
half-applied subscribe or unsubscribe.
"""

import logging
import time

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from shiftlens.models.realtime import Subscription

logger = logging.getLogger(__name__)

# subscription key -> client_id -> Subscription
SubscriptionTable = Mapping[str, Mapping[str, Subscription]]


@dataclass
class ClientState:
    client_id: str
    connected_at: float = field(default_factory=time.time)
    subscriptions: frozenset[str] = frozenset()
    filters: dict[str, Any] = field(default_factory=dict)


class SubscriptionRegistry:
    """Tracks connected clients, their subscriptions and default filters."""

    def __init__(self) -> None:
        self._clients: dict[str, ClientState] = {}
        self._table: SubscriptionTable = MappingProxyType({})

    def register_client(self, client_id: str) -> ClientState:
        """Register a client (idempotent)."""
        state = self._clients.get(client_id)
        if state is None:
            state = ClientState(client_id=client_id)
            self._clients[client_id] = state
            logger.info(f"Client connected: {client_id}")
        return state

    def subscribe(
        self, client_id: str, event_type: str, filters: dict[str, Any] | None = None
    ) -> Subscription:
        """
        Subscribe a client to an event category.

        Subscribing twice with the same filters is a no-op.
        """
        subscription = Subscription(
            client_id=client_id, event_type=event_type, filters=dict(filters or {})
        )
        key = subscription.key
        state = self.register_client(client_id)

        members = dict(self._table.get(key, {}))
        members[client_id] = subscription
        table = dict(self._table)
        table[key] = MappingProxyType(members)
        self._table = MappingProxyType(table)

        state.subscriptions = state.subscriptions | {key}
        logger.info(f"Client {client_id} subscribed to {event_type} (filters={subscription.filters})")
        return subscription

    def unsubscribe(
        self, client_id: str, event_type: str, filters: dict[str, Any] | None = None
    ) -> bool:
        """Remove one subscription. Returns True if it existed."""
        key = Subscription(client_id=client_id, event_type=event_type, filters=dict(filters or {})).key
        removed = self._remove_keys(client_id, [key])
        if removed:
            logger.info(f"Client {client_id} unsubscribed from {event_type}")
        return removed > 0

    def remove_client(self, client_id: str) -> int:
        """
        Drop a client and all of its subscriptions.

        Returns:
            Number of subscriptions removed
        """
        state = self._clients.pop(client_id, None)
        if state is None:
            return 0
        removed = self._remove_keys(client_id, list(state.subscriptions))
        logger.info(f"Client disconnected: {client_id} ({removed} subscriptions removed)")
        return removed

    def _remove_keys(self, client_id: str, keys: list[str]) -> int:
        table = dict(self._table)
        removed = 0
        for key in keys:
            members = table.get(key)
            if members is None or client_id not in members:
                continue
            remaining = {cid: sub for cid, sub in members.items() if cid != client_id}
            if remaining:
                table[key] = MappingProxyType(remaining)
            else:
                del table[key]
            removed += 1
        if removed:
            self._table = MappingProxyType(table)
            state = self._clients.get(client_id)
            if state is not None:
                state.subscriptions = state.subscriptions - set(keys)
        return removed

    def set_filter(self, client_id: str, filters: dict[str, Any] | None) -> None:
        """Replace a client's default filter, applied on top of its subscriptions."""
        state = self.register_client(client_id)
        state.filters = dict(filters or {})
        logger.info(f"Client {client_id} updated filters: {state.filters}")

    def client_filter(self, client_id: str) -> dict[str, Any]:
        state = self._clients.get(client_id)
        return dict(state.filters) if state else {}

    def snapshot(self) -> SubscriptionTable:
        """The current immutable subscription table."""
        return self._table

    @staticmethod
    def subscribers_for(
        event_type: str, table: SubscriptionTable
    ) -> dict[str, list[Subscription]]:
        """
        Group matching subscriptions by client.

        A subscription matches when its key starts with `event_type`.
        """
        result: dict[str, list[Subscription]] = {}
        for key, members in table.items():
            if not key.startswith(event_type):
                continue
            for client_id, subscription in members.items():
                result.setdefault(client_id, []).append(subscription)
        return result

    @property
    def client_ids(self) -> list[str]:
        return list(self._clients)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def subscription_count(self) -> int:
        return len(self._table)

    @property
    def subscription_keys(self) -> list[str]:
        return list(self._table)
