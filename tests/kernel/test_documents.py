"""Tests for the business document codec."""

from decimal import Decimal

import pytest

from bookkeeping_kernel.documents import dump_document, parse_document
from bookkeeping_kernel.domain.model import Role, TransactionType
from bookkeeping_kernel.exceptions import DocumentShapeError, OverrideValueError


def _legacy_document() -> dict:
    """A document as written by the earliest version of the shop app."""
    return {
        "businessName": "Nekat Mbois",
        "services": [
            {"id": "s1", "name": "Potong Rambut", "price": 50000},
            {"id": "b1", "name": "Keramas", "price": 10000, "isBonus": True},
        ],
        "employees": [
            {"id": "e1", "name": "Bagus", "isOwner": True},
            {"id": "e2", "name": "Budi"},
        ],
        "dailyRecords": {
            "whatever-key": {
                "date": "2024-05-14",
                "employeeId": "e2",
                "services": {"s1": 2},
                "bonusServices": {"s1": {"b1": True}},
                "bonusQuantities": {"s1": {"b1": 1}},
                "total": 100000,
                "potongan": 50000,
                "gajiDiterima": 70000,
            }
        },
        "transactions": {
            "t1": {"date": "2024-05-02", "type": "Pemasukan", "description": "Sewa kursi", "amount": 150000},
            "t2": {"date": "2024-05-03", "type": "Pengeluaran", "description": "Listrik", "amount": "200000"},
        },
        "productSales": {
            "p1": {"date": "2024-05-04", "productName": "Pomade", "quantity": 2, "total": 90000},
        },
        "urgentOverrides": {
            "2024-05-20": {"totalPendapatan": "1000000", "tabunganOwner": ""},
        },
        "settings": {"theme": "dark"},
    }


class TestParseDocument:
    """Parsing accepts legacy field names and validates shape."""

    def test_catalog_legacy_flags(self):
        snapshot = parse_document(_legacy_document())
        assert [s.bonusable for s in snapshot.services] == [False, True]
        assert [e.role for e in snapshot.employees] == [Role.OWNER, Role.KARYAWAN]

    def test_record_indexed_by_body_not_key(self):
        snapshot = parse_document(_legacy_document())
        entry = snapshot.find_entry("2024-05-14", "e2")
        assert entry is not None
        assert entry.service_quantities == {"s1": 2}

    def test_legacy_bonus_and_cached_pay(self):
        entry = parse_document(_legacy_document()).find_entry("2024-05-14", "e2")
        (claim,) = entry.bonus_claims
        assert (claim.main_service_id, claim.bonus_service_id) == ("s1", "b1")
        assert claim.enabled is True
        assert claim.quantity == 1
        assert entry.cached.main_revenue == Decimal("100000")
        assert entry.cached.deduction == Decimal("50000")
        assert entry.cached.net_pay == Decimal("70000")
        assert entry.cached.role is None

    def test_quantity_without_selection_is_disabled_claim(self):
        doc = _legacy_document()
        record = doc["dailyRecords"]["whatever-key"]
        record["bonusServices"] = {}
        entry = parse_document(doc).find_entry("2024-05-14", "e2")
        (claim,) = entry.bonus_claims
        assert claim.enabled is False

    def test_record_without_pay_has_no_cache(self):
        doc = _legacy_document()
        record = doc["dailyRecords"]["whatever-key"]
        del record["gajiDiterima"]
        entry = parse_document(doc).find_entry("2024-05-14", "e2")
        assert entry.cached is None

    def test_transaction_types(self):
        snapshot = parse_document(_legacy_document())
        assert snapshot.transactions["t1"].type is TransactionType.INCOME
        assert snapshot.transactions["t2"].type is TransactionType.EXPENSE
        assert snapshot.transactions["t2"].amount == Decimal("200000")

    def test_overrides_blank_is_absent(self):
        (override,) = parse_document(_legacy_document()).overrides
        assert override.total_revenue == Decimal("1000000")
        assert override.owner_savings is None
        assert override.set_fields() == ("total_revenue",)

    def test_override_order_follows_saved_sequence(self):
        doc = _legacy_document()
        doc["urgentOverrides"] = {
            "2024-05-02": {"totalRevenue": 1, "savedSeq": 7},
            "2024-05-20": {"totalRevenue": 2, "savedSeq": 3},
        }
        overrides = parse_document(doc).overrides
        assert [o.date for o in overrides] == ["2024-05-20", "2024-05-02"]

    def test_flat_bonus_selection_rides_on_first_performed_service(self):
        doc = _legacy_document()
        record = doc["dailyRecords"]["whatever-key"]
        record["services"] = {"s0": 0, "s1": 2}
        record["bonusServices"] = {"b1": True, "b2": False}
        del record["bonusQuantities"]
        entry = parse_document(doc).find_entry("2024-05-14", "e2")
        selected, unselected = entry.bonus_claims
        assert (selected.main_service_id, selected.bonus_service_id) == ("s1", "b1")
        assert selected.enabled is True
        assert selected.quantity == 1
        assert unselected.bonus_service_id == "b2"
        assert unselected.enabled is False

    def test_flat_bonus_selection_without_main_service(self):
        doc = _legacy_document()
        record = doc["dailyRecords"]["whatever-key"]
        record["services"] = {}
        record["bonusServices"] = {"b1": True}
        del record["bonusQuantities"]
        (claim,) = parse_document(doc).find_entry("2024-05-14", "e2").bonus_claims
        assert claim.main_service_id == ""
        assert claim.enabled is True

    def test_unknown_keys_kept(self):
        snapshot = parse_document(_legacy_document())
        assert snapshot.extras == {"settings": {"theme": "dark"}}

    def test_empty_document(self):
        snapshot = parse_document({})
        assert snapshot.version == 0
        assert snapshot.entries() == ()


    def test_products_and_month_end_balances(self):
        doc = _legacy_document()
        doc["products"] = [{"id": "prd-1", "name": "Pomade", "price": 45000, "stock": 3}]
        doc["sisaPendapatanRecords"] = {
            "2024-05-1717": {"id": "2024-05-1717", "monthYear": "2024-05", "sisaPendapatan": 1250000.5},
        }
        doc["productSales"]["p1"].update(productId="prd-1", unitPrice=45000)
        snapshot = parse_document(doc)

        assert snapshot.product("prd-1").price == Decimal("45000")
        assert snapshot.month_end_balances["2024-05-1717"].amount == Decimal("1250000.5")
        assert snapshot.product_sales["p1"].unit_price == Decimal("45000")
        assert snapshot.extras == {"settings": {"theme": "dark"}}
        assert parse_document(dump_document(snapshot)) == snapshot


class TestShapeErrors:
    """Malformed documents are rejected before reaching the engines."""

    def test_top_level_not_object(self):
        with pytest.raises(DocumentShapeError) as exc_info:
            parse_document([])
        assert exc_info.value.code == "DOCUMENT_SHAPE_INVALID"

    def test_services_not_list(self):
        with pytest.raises(DocumentShapeError):
            parse_document({"services": {"s1": {}}})

    def test_record_bad_date(self):
        doc = _legacy_document()
        doc["dailyRecords"]["whatever-key"]["date"] = "14/05/2024"
        with pytest.raises(DocumentShapeError):
            parse_document(doc)

    def test_unknown_role(self):
        with pytest.raises(DocumentShapeError):
            parse_document({"employees": [{"id": "e1", "role": "Manager"}]})

    def test_non_numeric_price(self):
        with pytest.raises(DocumentShapeError):
            parse_document({"services": [{"id": "s1", "price": "mahal"}]})

    def test_non_numeric_override(self):
        doc = {"urgentOverrides": {"2024-05-20": {"totalRevenue": "banyak"}}}
        with pytest.raises(OverrideValueError):
            parse_document(doc)

    def test_version_must_be_integer(self):
        with pytest.raises(DocumentShapeError):
            parse_document({"version": "3"})

    def test_month_end_balance_bad_month(self):
        doc = {"sisaPendapatanRecords": {"x": {"monthYear": "Mei", "sisaPendapatan": 1}}}
        with pytest.raises(DocumentShapeError):
            parse_document(doc)

    @pytest.mark.parametrize("sequence", ["dua", True, 1.5])
    def test_saved_sequence_must_be_integer(self, sequence):
        doc = {"urgentOverrides": {"2024-05-20": {"totalRevenue": 1, "savedSeq": sequence}}}
        with pytest.raises(DocumentShapeError) as exc_info:
            parse_document(doc)
        assert exc_info.value.path == "urgentOverrides.2024-05-20.savedSeq"


class TestDumpDocument:
    """Dumping writes current field names and survives a re-parse."""

    def test_current_names(self):
        document = dump_document(parse_document(_legacy_document()))
        record = document["dailyRecords"]["whatever-key"]
        assert record["serviceQuantities"] == {"s1": 2}
        assert record["bonusSelections"] == {"s1": {"b1": True}}
        assert record["gajiDiterima"] == 70000
        assert document["employees"][0]["role"] == "Owner"
        assert document["urgentOverrides"]["2024-05-20"] == {
            "savedSeq": 1,
            "totalRevenue": 1000000,
        }
        assert document["settings"] == {"theme": "dark"}

    def test_reparse_is_equal(self):
        snapshot = parse_document(_legacy_document())
        assert parse_document(dump_document(snapshot)) == snapshot
