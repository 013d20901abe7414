"""Tests for entry capture."""

from decimal import Decimal

import pytest

from bookkeeping_engines.capture import (
    record_daily_entry,
    record_month_end_balance,
    record_product_sale,
    record_transaction,
    remove_daily_entry,
)
from bookkeeping_kernel.domain.conditions import ConditionKind
from bookkeeping_kernel.domain.model import DailyEntry, Product, Role, TransactionType
from bookkeeping_kernel.exceptions import (
    InvalidDateError,
    InvalidMonthError,
    RecordValueError,
    UnknownProductError,
)

POMADE = Product("prd-pomade", "Pomade", Decimal("45000"), stock=10)


class TestRecordDailyEntry:
    def test_stamps_cached_pay(self, make_snapshot, make_entry):
        entry = make_entry(services={"svc-cut": 2}, bonus={("svc-cut", "svc-wash"): 1})
        result = record_daily_entry(make_snapshot(), entry)

        cached = result.entry.cached
        assert cached.main_revenue == Decimal("100000")
        assert cached.bonus_revenue == Decimal("10000")
        assert cached.deduction == Decimal("50000")
        assert cached.net_pay == Decimal("70000")
        assert cached.role is Role.KARYAWAN
        assert result.snapshot.find_entry("2024-05-14", "emp-budi") == result.entry

    def test_owner_uses_entry_only_context(self, make_snapshot, make_entry):
        staff = make_entry(employee_id="emp-budi", services={"svc-cut": 4})
        snapshot = record_daily_entry(make_snapshot(), staff).snapshot

        owner = make_entry(employee_id="emp-owner", services={"svc-cut": 1})
        result = record_daily_entry(snapshot, owner)

        # 50 000 - 40 000 daily savings; no staff share at capture time
        assert result.entry.cached.net_pay == Decimal("10000")
        assert result.entry.cached.deduction == Decimal("40000")
        assert result.entry.cached.role is Role.OWNER

    def test_normalizes_and_clamps(self, make_snapshot, make_entry):
        entry = make_entry(
            services={"svc-cut": "2", "svc-shave": "x"},
            bonus={("svc-cut", "svc-wash"): 5},
        )
        result = record_daily_entry(make_snapshot(), entry)

        assert result.entry.service_quantities == {"svc-cut": 2, "svc-shave": 0}
        assert result.entry.bonus_claims[0].quantity == 2
        kinds = {c.kind for c in result.conditions}
        assert kinds == {ConditionKind.INVALID_QUANTITY, ConditionKind.BONUS_EXCEEDS_MAIN}

    def test_replaces_same_employee_and_date(self, make_snapshot, make_entry):
        legacy = DailyEntry("2024-05-14", "emp-budi", {"svc-cut": 1})
        snapshot = make_snapshot(entries=[legacy])

        result = record_daily_entry(snapshot, make_entry(services={"svc-cut": 3}))

        assert result.replaced
        assert len(result.snapshot.entries()) == 1
        assert result.entry.cached.main_revenue == Decimal("150000")

    def test_input_snapshot_unchanged(self, make_snapshot, make_entry):
        snapshot = make_snapshot()
        record_daily_entry(snapshot, make_entry(services={"svc-cut": 1}))
        assert snapshot.entries() == ()

    def test_unknown_employee(self, make_snapshot, make_entry):
        result = record_daily_entry(
            make_snapshot(), make_entry(employee_id="ghost", services={"svc-cut": 1})
        )
        assert result.entry.cached.net_pay == Decimal("0")
        assert result.entry.cached.role is None
        assert result.conditions[-1].kind is ConditionKind.MISSING_REFERENCE

    def test_invalid_date(self, make_snapshot, make_entry):
        with pytest.raises(InvalidDateError):
            record_daily_entry(make_snapshot(), make_entry(date="2024-5-14"))


class TestRemoveDailyEntry:
    def test_remove(self, make_snapshot, make_entry):
        snapshot = make_snapshot(entries=[make_entry()])
        updated, removed = remove_daily_entry(snapshot, "2024-05-14", "emp-budi")
        assert removed
        assert updated.entries() == ()

    def test_remove_missing(self, make_snapshot):
        snapshot = make_snapshot()
        updated, removed = remove_daily_entry(snapshot, "2024-05-14", "emp-budi")
        assert not removed
        assert updated is snapshot


class TestRecordProductSale:
    """Sales are priced from the product catalog unless a unit price is given."""

    @pytest.fixture
    def snapshot(self, make_snapshot):
        return make_snapshot(products=(POMADE,))

    def test_catalog_price(self, snapshot):
        updated, sale = record_product_sale(snapshot, "s1", "2024-05-04", "prd-pomade", 2)

        assert sale.total == Decimal("90000")
        assert sale.unit_price == Decimal("45000")
        assert sale.product_name == "Pomade"
        assert sale.seller_name == "N/A"
        assert updated.product_sales == {"s1": sale}
        assert snapshot.product_sales == {}

    def test_unit_price_override(self, snapshot):
        _, sale = record_product_sale(
            snapshot, "s1", "2024-05-04", "prd-pomade", "3", unit_price="40000", seller_name=" Budi "
        )
        assert sale.total == Decimal("120000")
        assert sale.seller_name == "Budi"

    def test_unknown_product(self, snapshot):
        with pytest.raises(UnknownProductError) as exc_info:
            record_product_sale(snapshot, "s1", "2024-05-04", "prd-gel", 1)
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"

    @pytest.mark.parametrize("quantity", [0, -1, "1.5", "dua"])
    def test_quantity_must_be_positive_whole(self, snapshot, quantity):
        with pytest.raises(RecordValueError) as exc_info:
            record_product_sale(snapshot, "s1", "2024-05-04", "prd-pomade", quantity)
        assert exc_info.value.field == "quantity"

    def test_negative_unit_price(self, snapshot):
        with pytest.raises(RecordValueError):
            record_product_sale(snapshot, "s1", "2024-05-04", "prd-pomade", 1, unit_price=-5)


class TestRecordTransaction:
    def test_stores_transaction(self, make_snapshot):
        updated, transaction = record_transaction(
            make_snapshot(), "t1", "2024-05-03", TransactionType.EXPENSE, " Listrik ", "200000"
        )
        assert transaction.amount == Decimal("200000")
        assert transaction.description == "Listrik"
        assert updated.transactions["t1"] == transaction

    @pytest.mark.parametrize(
        "description, amount, field",
        [("", 1000, "description"), ("Sewa", 0, "amount"), ("Sewa", "banyak", "amount")],
    )
    def test_rejects_unusable_input(self, make_snapshot, description, amount, field):
        with pytest.raises(RecordValueError) as exc_info:
            record_transaction(
                make_snapshot(), "t1", "2024-05-03", TransactionType.INCOME, description, amount
            )
        assert exc_info.value.field == field

    def test_invalid_date(self, make_snapshot):
        with pytest.raises(InvalidDateError):
            record_transaction(make_snapshot(), "t1", "3 Mei", TransactionType.INCOME, "Sewa", 1)


class TestRecordMonthEndBalance:
    def test_several_records_per_month(self, make_snapshot):
        snapshot, first = record_month_end_balance(make_snapshot(), "b1", "2024-05", "1250000")
        snapshot, second = record_month_end_balance(snapshot, "b2", "2024-05", 900000)

        assert first.amount == Decimal("1250000")
        assert second.year_month == "2024-05"
        assert set(snapshot.month_end_balances) == {"b1", "b2"}

    def test_invalid_month(self, make_snapshot):
        with pytest.raises(InvalidMonthError):
            record_month_end_balance(make_snapshot(), "b1", "Mei 2024", 1)

    def test_amount_must_be_numeric(self, make_snapshot):
        with pytest.raises(RecordValueError):
            record_month_end_balance(make_snapshot(), "b1", "2024-05", "")
