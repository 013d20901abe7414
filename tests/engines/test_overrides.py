"""Tests for the Override Store."""

from decimal import Decimal

import pytest

from bookkeeping_engines.overrides import OverrideStore
from bookkeeping_kernel.domain.model import Override
from bookkeeping_kernel.domain.values import month_window
from bookkeeping_kernel.exceptions import (
    InvalidDateError,
    OverrideValueError,
    UnknownOverrideFieldError,
)


class TestSet:
    def setup_method(self):
        self.store = OverrideStore()

    def test_set_and_get(self):
        stored = self.store.set("2024-05-20", total_revenue="1000000")
        assert stored.total_revenue == Decimal("1000000")
        assert self.store.get("2024-05-20") == stored
        assert "2024-05-20" in self.store

    def test_merge_keeps_other_fields(self):
        self.store.set("2024-05-20", total_revenue=1000000)
        merged = self.store.set("2024-05-20", total_expenses=250000, total_revenue=None)

        assert merged.total_revenue == Decimal("1000000")
        assert merged.total_expenses == Decimal("250000")
        assert len(self.store) == 1

    def test_negative_allowed(self):
        assert self.store.set("2024-05-20", owner_savings=-5000).owner_savings == Decimal("-5000")

    def test_every_save_is_later(self):
        first = self.store.set("2024-05-20", total_revenue=1)
        second = self.store.set("2024-05-02", total_revenue=2)
        again = self.store.set("2024-05-20", total_expenses=3)
        assert first.sequence < second.sequence < again.sequence
        assert [o.date for o in self.store.snapshot()] == ["2024-05-02", "2024-05-20"]

    def test_sequence_continues_from_loaded(self):
        store = OverrideStore([Override("2024-05-20", total_revenue=Decimal("1"), sequence=9)])
        assert store.set("2024-05-21", total_revenue=2).sequence == 10

    def test_bad_field(self):
        with pytest.raises(UnknownOverrideFieldError) as exc_info:
            self.store.set("2024-05-20", revenue=1)
        assert exc_info.value.code == "OVERRIDE_FIELD_UNKNOWN"

    def test_bad_value(self):
        with pytest.raises(OverrideValueError):
            self.store.set("2024-05-20", total_revenue="sejuta")
        assert len(self.store) == 0

    def test_bad_date(self):
        with pytest.raises(InvalidDateError):
            self.store.set("20-05-2024", total_revenue=1)

    def test_clear(self):
        self.store.set("2024-05-20", total_revenue=1)
        assert self.store.clear("2024-05-20")
        assert not self.store.clear("2024-05-20")
        assert len(self.store) == 0

    def test_save_is_logged(self, captured_logs):
        self.store.set("2024-05-20", total_revenue=1)
        (record,) = [r for r in captured_logs() if r["message"] == "override_saved"]
        assert record["fields"] == ["total_revenue"]


class TestResolve:
    """Per-field, last-write-wins resolution inside a window."""

    def test_empty(self):
        resolution = OverrideStore().resolve(month_window("2024-05"))
        assert resolution.values == {}
        assert resolution.apply("total_revenue", Decimal("5")) == Decimal("5")

    def test_fields_from_different_dates_combine(self):
        store = OverrideStore()
        store.set("2024-05-02", total_revenue=100)
        store.set("2024-05-20", total_expenses=200)
        resolution = store.resolve(month_window("2024-05"))

        assert resolution.values == {
            "total_revenue": Decimal("100"),
            "total_expenses": Decimal("200"),
        }
        assert not resolution.has_conflict

    def test_latest_save_wins_regardless_of_date(self):
        store = OverrideStore()
        store.set("2024-05-25", total_revenue=100)
        store.set("2024-05-02", total_revenue=200)
        resolution = store.resolve(month_window("2024-05"))

        assert resolution.values["total_revenue"] == Decimal("200")
        assert resolution.sources["total_revenue"] == "2024-05-02"
        (condition,) = resolution.conditions
        assert "2024-05-25" in condition.message

    def test_zero_override_applies(self):
        store = OverrideStore()
        store.set("2024-05-02", owner_savings=0)
        resolution = store.resolve(month_window("2024-05"))
        assert resolution.apply("owner_savings", Decimal("40000")) == Decimal("0")

    def test_other_months_ignored(self):
        store = OverrideStore()
        store.set("2024-06-01", total_revenue=1)
        assert store.in_window(month_window("2024-05")) == ()
