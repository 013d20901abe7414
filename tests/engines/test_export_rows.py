"""Tests for flat export rows and CSV rendering."""

import csv
import io
from decimal import Decimal

import pytest

from bookkeeping_engines.catalog import Catalog
from bookkeeping_engines.daily import aggregate_day
from bookkeeping_engines.export_rows import (
    BELOW_MINIMUM_WAGE,
    MEETS_MINIMUM_WAGE,
    daily_recap_rows,
    month_end_balance_rows,
    monthly_salary_rows,
    monthly_summary_rows,
    product_sale_rows,
    rows_to_csv,
)
from bookkeeping_engines.monthly import aggregate_month
from bookkeeping_kernel.domain.model import MonthEndBalance, ProductSale, Service


@pytest.fixture
def recap(catalog, make_entry):
    entries = [
        make_entry(employee_id="emp-owner", services={"svc-cut": 1}),
        make_entry(
            employee_id="emp-budi",
            services={"svc-cut": 2},
            bonus={("svc-cut", "svc-wash"): 1},
        ),
    ]
    return aggregate_day("2024-05-14", entries, catalog)


class TestDailyRecapRows:
    def test_one_column_per_main_service(self, recap, catalog):
        rows = daily_recap_rows(recap, catalog)
        budi = rows[1]

        assert budi["Karyawan"] == "Budi"
        assert budi["Potong Rambut"] == 2
        assert budi["Cukur Jenggot"] == 0
        assert budi["Semir"] == 0
        assert "Keramas" not in budi

    def test_amounts_are_whole_rupiah(self, recap, catalog):
        budi = daily_recap_rows(recap, catalog)[1]
        assert budi["Gaji Diterima"] == 70000
        assert isinstance(budi["Gaji Diterima"], int)

    def test_values_are_primitives(self, recap, catalog):
        for row in daily_recap_rows(recap, catalog):
            for value in row.values():
                assert isinstance(value, (str, int))

    def test_breakdown_strings(self, recap, catalog):
        owner, budi, _ = daily_recap_rows(recap, catalog)
        assert "Uang hadir: Rp 10.000" in budi["Rincian"]
        assert "Keramas x1: Rp 10.000" in budi["Rincian"]
        assert "Tabungan: -Rp 40.000" in owner["Rincian"]

    def test_totals_row(self, recap, catalog):
        totals = daily_recap_rows(recap, catalog)[-1]
        assert totals["Karyawan"] == "TOTAL"
        assert totals["Potong Rambut"] == 3
        assert totals["Gaji Diterima"] == int(recap.total_salary_paid)

    def test_repeated_service_names_keep_separate_columns(self, employees, make_entry):
        catalog = Catalog(
            services=(
                Service("svc-a", "Cut", Decimal("50000")),
                Service("svc-b", "Cut", Decimal("70000")),
                Service("svc-c", "Potongan", Decimal("20000")),
            ),
            employees=employees,
        )
        entry = make_entry(services={"svc-a": 2, "svc-b": 1, "svc-c": 1})
        recap = aggregate_day("2024-05-14", [entry], catalog)

        budi, totals = daily_recap_rows(recap, catalog)
        assert budi["Cut (svc-a)"] == 2
        assert budi["Cut (svc-b)"] == 1
        assert budi["Potongan (svc-c)"] == 1
        assert "Cut" not in budi
        assert budi["Potongan"] == 95000
        assert totals["Cut (svc-a)"] + totals["Cut (svc-b)"] == 3


class TestMonthlyRows:
    @pytest.fixture
    def report(self, catalog, make_entry):
        entries = [
            make_entry(employee_id="emp-owner", services={"svc-cut": 1}),
            make_entry(employee_id="emp-budi", services={"svc-color": 1}),
        ]
        return aggregate_month("2024-05", entries, [], [], catalog, minimum_wage=Decimal("60000"))

    def test_summary_labels(self, report):
        rows = monthly_summary_rows(report)
        by_label = {row["Keterangan"]: row["Nilai"] for row in rows}
        assert by_label["Total Pendapatan"] == 150000
        assert by_label["Hari Aktif"] == 1
        assert by_label["Laba Bersih"] == int(report.net_profit)

    def test_salary_status(self, report):
        rows = {row["Karyawan"]: row for row in monthly_salary_rows(report)}
        assert rows["Budi"]["Status UMR"] == MEETS_MINIMUM_WAGE
        # 50 000 + 50 000 - 40 000 - 10 000
        assert rows["Bagus"]["Gaji Diterima"] == 50000
        assert rows["Bagus"]["Status UMR"] == BELOW_MINIMUM_WAGE


class TestProductSaleRows:
    def test_sorted_by_date(self):
        sales = [
            ProductSale("b", "2024-05-09", Decimal("45000"), "Pomade", 1, "Budi"),
            ProductSale("a", "2024-05-01", Decimal("30000"), "Sisir", 2, "Siti"),
        ]
        rows = product_sale_rows(sales)
        assert [r["Produk"] for r in rows] == ["Sisir", "Pomade"]
        assert rows[0]["Total"] == 30000


class TestMonthEndBalanceRows:
    def test_labels_and_order(self):
        balances = [
            MonthEndBalance("b2", "2024-06", Decimal("900000")),
            MonthEndBalance("b1", "2024-05", Decimal("1250000.4")),
        ]
        rows = month_end_balance_rows(balances)
        assert rows == [
            {"Bulan & Tahun": "May 2024", "Sisa Pendapatan + Tabungan": 1250000},
            {"Bulan & Tahun": "June 2024", "Sisa Pendapatan + Tabungan": 900000},
        ]


class TestRowsToCsv:
    def test_empty(self):
        assert rows_to_csv([]) == ""

    def test_header_and_escaping(self):
        rows = [{"Nama": 'Budi, "Si Cepat"', "Nilai": 1}, {"Nama": "Siti", "Nilai": 2}]
        text = rows_to_csv(rows)

        assert text.splitlines()[0] == "Nama,Nilai"
        assert text.splitlines()[1] == '"Budi, ""Si Cepat""",1'
        parsed = list(csv.DictReader(io.StringIO(text)))
        assert parsed[0]["Nama"] == 'Budi, "Si Cepat"'
        assert parsed[1]["Nilai"] == "2"
