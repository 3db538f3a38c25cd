"""Tests for the realtime subscription registry."""

import pytest

from shiftlens.realtime.registry import SubscriptionRegistry


class TestSubscriptions:
    """Tests for subscribe / unsubscribe bookkeeping."""

    @pytest.fixture
    def registry(self):
        """Create a fresh registry."""
        return SubscriptionRegistry()

    def test_subscribe_registers_client(self, registry):
        subscription = registry.subscribe("c1", "employee_activity", {"employee": "alice"})

        assert registry.client_ids == ["c1"]
        assert subscription.key == 'employee_activity_{"employee": "alice"}'
        assert registry.subscription_keys == [subscription.key]

    def test_filter_key_order_does_not_matter(self, registry):
        registry.subscribe("c1", "zone_activity", {"camera": "office", "zone": "desk_1"})
        registry.subscribe("c1", "zone_activity", {"zone": "desk_1", "camera": "office"})

        assert registry.subscription_count == 1

    def test_clients_share_a_key(self, registry):
        registry.subscribe("c1", "violations")
        registry.subscribe("c2", "violations")

        assert registry.subscription_count == 1
        assert set(registry.snapshot()["violations_{}"]) == {"c1", "c2"}

    def test_unsubscribe(self, registry):
        registry.subscribe("c1", "violations")
        registry.subscribe("c2", "violations")

        assert registry.unsubscribe("c1", "violations") is True
        assert registry.unsubscribe("c1", "violations") is False
        assert list(registry.snapshot()["violations_{}"]) == ["c2"]

    def test_last_member_removes_key(self, registry):
        registry.subscribe("c1", "violations")

        registry.unsubscribe("c1", "violations")

        assert registry.subscription_count == 0
        # the client itself stays connected
        assert registry.client_count == 1

    def test_remove_client_drops_every_subscription(self, registry):
        registry.subscribe("c1", "violations")
        registry.subscribe("c1", "employee_activity", {"employee": "alice"})
        registry.subscribe("c2", "violations")

        removed = registry.remove_client("c1")

        assert removed == 2
        assert registry.client_ids == ["c2"]
        assert registry.subscription_keys == ["violations_{}"]
        assert registry.remove_client("c1") == 0

    def test_client_filter(self, registry):
        registry.set_filter("c1", {"camera": "lobby"})

        assert registry.client_filter("c1") == {"camera": "lobby"}
        assert registry.client_filter("unknown") == {}

        registry.set_filter("c1", None)
        assert registry.client_filter("c1") == {}


class TestSnapshots:
    """Tests for copy-on-write snapshots."""

    def test_snapshot_unchanged_by_later_subscribe(self):
        registry = SubscriptionRegistry()
        registry.subscribe("c1", "violations")
        snapshot = registry.snapshot()

        registry.subscribe("c2", "violations")
        registry.subscribe("c3", "zone_activity")

        assert list(snapshot) == ["violations_{}"]
        assert list(snapshot["violations_{}"]) == ["c1"]

    def test_snapshot_unchanged_by_removal(self):
        registry = SubscriptionRegistry()
        registry.subscribe("c1", "violations")
        snapshot = registry.snapshot()

        registry.remove_client("c1")

        assert "c1" in snapshot["violations_{}"]

    def test_snapshot_is_read_only(self):
        registry = SubscriptionRegistry()

        with pytest.raises(TypeError):
            registry.snapshot()["x"] = {}  # type: ignore[index]

    def test_subscribers_for_matches_key_prefix(self):
        registry = SubscriptionRegistry()
        registry.subscribe("c1", "employee_activity", {"employee": "alice"})
        registry.subscribe("c1", "employee_activity")
        registry.subscribe("c2", "zone_activity")

        targets = SubscriptionRegistry.subscribers_for("employee_activity", registry.snapshot())

        assert list(targets) == ["c1"]
        assert len(targets["c1"]) == 2
