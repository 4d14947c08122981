"""
Tests for CSV exports and the detailed report.
"""

import csv
import io

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from daara_ledger.ledger import (
    add_contribution,
    add_expense,
    add_other_income,
    new_record,
)
from daara_ledger.models import AppConfig, BrowserFilters, FundKey, Month
from daara_ledger.reports import (
    MONTH_SECTIONS,
    build_detailed_report,
    format_amount,
    format_timestamp,
    month_report_csv,
    month_report_filename,
    plain_amount,
    render_markdown,
    selection_csv,
)

T0 = datetime(2024, 3, 2, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def config():
    return AppConfig(
        location="Thiès",
        phone="77 000 00 00",
        renovation_percent=40,
        social_percent=30,
        board_percent=30,
    )


@pytest.fixture
def march(config):
    record = new_record(2024, Month.MARCH)
    record = add_contribution(record, config, "Amadou", "Diop", 100000, is_first_creation=True, now=T0)
    record = add_other_income(record, config, "Kermesse", 5000, now=T0)
    record = add_expense(record, config, "Électricité", 45000, now=T0)
    return record


@pytest.fixture
def april(config):
    record = new_record(2024, Month.APRIL)
    return add_contribution(record, config, "Fatou", "Sall", 20000, is_first_creation=True, now=T0)


class TestFormatting:
    """Tests for display helpers."""

    def test_format_amount_groups_thousands(self):
        """Test space-grouped thousands with the currency label."""
        assert format_amount(Decimal("1234567")) == "1 234 567 FCFA"
        assert format_amount(Decimal("-2500"), "") == "-2 500"

    def test_format_amount_decimals(self):
        """Test that fractional amounts keep two decimals."""
        assert format_amount(Decimal("1500.5"), "FCFA") == "1 500.50 FCFA"

    def test_plain_amount(self):
        """Test machine-friendly amounts."""
        assert plain_amount(Decimal("24000.000")) == "24000"
        assert plain_amount(Decimal("3.30")) == "3.3"
        assert plain_amount(Decimal("2.4E+4")) == "24000"

    def test_plain_amount_beyond_context_precision(self):
        """Test that very large amounts are written out in full."""
        assert plain_amount(Decimal("1e30")) == "1" + "0" * 30
        assert plain_amount(Decimal("1" + "0" * 30 + ".50")) == "1" + "0" * 30 + ".5"
        assert format_amount(Decimal("1e30"), "").replace(" ", "") == "1" + "0" * 30

    def test_format_timestamp(self):
        """Test dates and the N/A placeholder."""
        assert format_timestamp(T0) == "02/03/2024 14:30"
        assert format_timestamp(None) == "N/A"


class TestMonthReportCsv:
    """Tests for the single-month CSV."""

    def test_filename(self, march):
        """Test the download file name."""
        assert month_report_filename(march) == "Daara_Maha_Report_Mars_2024.csv"

    def test_section_order(self, march, config):
        """Test that sections appear in the fixed order."""
        text = month_report_csv(march, config)
        positions = [text.index(section) for section in MONTH_SECTIONS]
        assert positions == sorted(positions)

    def test_header_lines(self, march, config):
        """Test period, location and timestamp lines."""
        lines = month_report_csv(march, config).splitlines()
        assert lines[0] == "RAPPORT FINANCIER - MARS 2024"
        assert lines[1] == "Lieu: Thiès"
        assert lines[2] == "Date de creation: 02/03/2024 14:30"

    def test_missing_timestamps_show_na(self, config):
        """Test N/A for a month that was never saved."""
        text = month_report_csv(new_record(2024, Month.MAY), config)
        assert "Date de creation: N/A" in text
        assert "Derniere modification: N/A" in text

    def test_amounts_and_allocation(self, march, config):
        """Test totals, net and the fund rows."""
        rows = list(csv.reader(io.StringIO(month_report_csv(march, config))))
        assert ["Amadou", "Diop", "100000"] in rows
        assert ["TOTAL COTISATIONS", "", "100000"] in rows
        assert ["Total Recu", "105000"] in rows
        assert ["Net Mensuel", "60000"] in rows
        assert ["Caisse Renovation", "40%", "0", "24000"] in rows
        assert ["Comite Directeur", "30%", "0", "18000"] in rows

    def test_labels_with_commas_are_quoted(self, config):
        """Test that free text containing commas survives the CSV format."""
        record = add_expense(new_record(2024, Month.MAY), config, "Eau, gaz", 100)
        rows = list(csv.reader(io.StringIO(month_report_csv(record, config))))
        assert ["Eau, gaz", "100"] in rows

    def test_very_large_contribution(self, config):
        """Test that an exponent-style amount still produces a full report."""
        record = add_contribution(new_record(2024, Month.JANUARY), config, "A", "B", "1e30")
        rows = list(csv.reader(io.StringIO(month_report_csv(record, config))))
        assert ["A", "B", "1" + "0" * 30] in rows
        assert ["Caisse Renovation", "40%", "0", "4" + "0" * 29] in rows


class TestSelectionCsv:
    """Tests for the selection CSV."""

    def test_rows_and_total(self, march, april):
        """Test one row per month plus the total row."""
        rows = list(csv.reader(io.StringIO(selection_csv([april, march]))))
        assert rows[0][0] == "Periode"
        assert rows[1][:2] == ["Avril 2024", "20000"]
        assert rows[2][:6] == ["Mars 2024", "100000", "5000", "105000", "45000", "60000"]
        assert rows[-1] == ["TOTAL", "120000", "5000", "125000", "45000", "80000"]


class TestDetailedReport:
    """Tests for the detailed printable report."""

    def test_months_most_recent_first(self, march, april, config):
        """Test grouping and ordering."""
        report = build_detailed_report([march, april], config, now=T0)
        assert [m.record.key for m in report.months] == ["2024-Avril", "2024-Mars"]
        assert report.months[1].net_monthly == Decimal("60000")

    def test_grand_totals(self, march, april, config):
        """Test selection totals on the report."""
        report = build_detailed_report([march, april], config, now=T0)
        assert report.totals.contributions == Decimal("120000")
        assert report.totals.net == Decimal("80000")
        assert report.percents[FundKey.RENOVATION] == 40

    def test_balances_from_full_ledger(self, march, april, config):
        """Test that a filtered report can show the ledger's current balances."""
        report = build_detailed_report([march], config, balances_from=[march, april])
        assert report.balances.renovation == Decimal("8000")

    def test_render_markdown(self, march, april, config):
        """Test the printable text."""
        report = build_detailed_report(
            [march, april], config, BrowserFilters(year="2024"), now=T0
        )
        text = render_markdown(report)
        assert text.startswith("# DAARA MAHA - Rapport Financier Détaillé")
        assert "Sélection: Année: 2024" in text
        assert text.index("## Avril 2024") < text.index("## Mars 2024")
        assert "| Amadou | Diop | 100 000 FCFA |" in text
        assert "- Net: 80 000 FCFA" in text
        assert "- Caisse Rénovation: 8 000 FCFA" in text

    def test_unfiltered_label(self, march, config):
        """Test the selection line without filters."""
        text = render_markdown(build_detailed_report([march], config, now=T0))
        assert "Sélection: Toutes les périodes" in text
