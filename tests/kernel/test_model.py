"""Tests for snapshot record replacement and override records."""

from decimal import Decimal

from bookkeeping_kernel.domain.model import BusinessSnapshot, DailyEntry, Override


class TestSnapshotEntries:
    """A snapshot holds at most one entry per (date, employee)."""

    def test_with_entry_replaces_same_day_record_under_any_key(self):
        legacy = DailyEntry("2024-05-14", "e1", {"s1": 1})
        snapshot = BusinessSnapshot(daily_records={"legacy-key": legacy})

        updated = snapshot.with_entry(DailyEntry("2024-05-14", "e1", {"s1": 3}))

        assert list(updated.daily_records) == ["2024-05-14_e1"]
        assert updated.find_entry("2024-05-14", "e1").service_quantities == {"s1": 3}
        assert snapshot.find_entry("2024-05-14", "e1") is legacy

    def test_with_entry_keeps_other_records(self):
        snapshot = BusinessSnapshot().with_entry(DailyEntry("2024-05-14", "e1"))
        snapshot = snapshot.with_entry(DailyEntry("2024-05-14", "e2"))
        snapshot = snapshot.with_entry(DailyEntry("2024-05-15", "e1"))
        assert len(snapshot.entries()) == 3

    def test_without_entry(self):
        snapshot = BusinessSnapshot().with_entry(DailyEntry("2024-05-14", "e1"))
        assert snapshot.without_entry("2024-05-14", "e1").entries() == ()

    def test_next_version(self):
        assert BusinessSnapshot(version=4).next_version().version == 5


class TestOverrideRecord:
    def test_set_fields_in_report_order(self):
        override = Override(
            "2024-05-20",
            product_revenue=Decimal("1"),
            total_revenue=Decimal("0"),
        )
        assert override.set_fields() == ("total_revenue", "product_revenue")
        assert not override.is_empty

    def test_zero_is_a_value(self):
        assert Override("2024-05-20", owner_savings=Decimal("0")).value("owner_savings") == 0

    def test_empty(self):
        assert Override("2024-05-20").is_empty
