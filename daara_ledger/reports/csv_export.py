"""
CSV export.

Two layouts:
- month_report_csv: one month, sectioned in a fixed order
  (Contributions, Other Income, Expenses, Balance, Fund Allocation)
- selection_csv: one row per month of a browsing selection, with a total row
"""

import csv
import io
from typing import Iterable

from daara_ledger.ledger import engine
from daara_ledger.models import AppConfig, FundKey, MonthlyRecord
from daara_ledger.queries import LedgerQueryExecutor
from daara_ledger.reports.formatting import format_timestamp, plain_amount

SECTION_CONTRIBUTIONS = "--- COTISATIONS ---"
SECTION_OTHER_INCOME = "--- AUTRES RECETTES ---"
SECTION_EXPENSES = "--- DEPENSES ---"
SECTION_BALANCE = "--- BILAN ---"
SECTION_ALLOCATION = "--- REPARTITION DES FONDS ---"

MONTH_SECTIONS = [
    SECTION_CONTRIBUTIONS,
    SECTION_OTHER_INCOME,
    SECTION_EXPENSES,
    SECTION_BALANCE,
    SECTION_ALLOCATION,
]

# CSV headers stay ASCII
_CSV_FUND_LABELS = {
    FundKey.RENOVATION: "Caisse Renovation",
    FundKey.SOCIAL: "Caisse Sociale",
    FundKey.BOARD: "Comite Directeur",
}


def _writer(buffer: io.StringIO):
    return csv.writer(buffer, lineterminator="\n")


def month_report_filename(record: MonthlyRecord) -> str:
    return f"Daara_Maha_Report_{record.month.value}_{record.year}.csv"


def month_report_csv(
    record: MonthlyRecord,
    config: AppConfig,
    currency: str = "FCFA",
) -> str:
    """Render one month as sectioned CSV text."""
    buffer = io.StringIO()
    writer = _writer(buffer)

    writer.writerow([f"RAPPORT FINANCIER - {record.month.value.upper()} {record.year}"])
    writer.writerow([f"Lieu: {config.location or 'Non spécifié'}"])
    writer.writerow([f"Date de creation: {format_timestamp(record.created_at)}"])
    writer.writerow([f"Derniere modification: {format_timestamp(record.updated_at)}"])
    writer.writerow([])

    writer.writerow([SECTION_CONTRIBUTIONS])
    writer.writerow(["Prenom", "Nom", f"Montant ({currency})"])
    for c in record.contributions:
        writer.writerow([c.given_name, c.family_name, plain_amount(c.amount)])
    writer.writerow(["TOTAL COTISATIONS", "", plain_amount(engine.total_contributions(record))])
    writer.writerow([])

    writer.writerow([SECTION_OTHER_INCOME])
    writer.writerow(["Source", f"Montant ({currency})"])
    for s in record.other_income:
        writer.writerow([s.source, plain_amount(s.amount)])
    writer.writerow(["TOTAL AUTRES", plain_amount(engine.total_other_income(record))])
    writer.writerow([])

    writer.writerow([SECTION_EXPENSES])
    writer.writerow(["Designation", f"Total ({currency})"])
    for e in record.expenses:
        writer.writerow([e.label, plain_amount(e.amount)])
    writer.writerow(["TOTAL DEPENSES", plain_amount(engine.total_expenses(record))])
    writer.writerow([])

    writer.writerow([SECTION_BALANCE])
    writer.writerow(["Total Recu", plain_amount(engine.total_received(record))])
    writer.writerow(["Net Mensuel", plain_amount(engine.net_monthly(record))])
    writer.writerow([])

    writer.writerow([SECTION_ALLOCATION])
    writer.writerow(["Fonds", "Pourcentage", "Ancien Solde", "Nouveau Solde"])
    for fund, state in record.allocation.items():
        writer.writerow([
            _CSV_FUND_LABELS[fund],
            f"{config.percent_for(fund)}%",
            plain_amount(state.prior_balance),
            plain_amount(state.new_balance),
        ])

    return buffer.getvalue()


def selection_csv(records: Iterable[MonthlyRecord]) -> str:
    """One row per month (in the given order) plus a total row."""
    records = list(records)
    buffer = io.StringIO()
    writer = _writer(buffer)

    writer.writerow([
        "Periode",
        "Cotisations",
        "Autres Recettes",
        "Total Recu",
        "Depenses",
        "Net Mensuel",
        *(_CSV_FUND_LABELS[fund] for fund in FundKey),
    ])
    for record in records:
        writer.writerow([
            record.period,
            plain_amount(engine.total_contributions(record)),
            plain_amount(engine.total_other_income(record)),
            plain_amount(engine.total_received(record)),
            plain_amount(engine.total_expenses(record)),
            plain_amount(engine.net_monthly(record)),
            *(plain_amount(state.new_balance) for _, state in record.allocation.items()),
        ])

    totals = LedgerQueryExecutor(records).selection_totals(records)
    writer.writerow([
        "TOTAL",
        plain_amount(totals.contributions),
        plain_amount(totals.other),
        plain_amount(totals.received),
        plain_amount(totals.expenses),
        plain_amount(totals.net),
    ])
    return buffer.getvalue()
