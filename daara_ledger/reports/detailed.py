"""
Detailed printable report.

Groups a selection of months (most recent first) with each month's entry
tables, totals and fund allocation, followed by the selection totals and
the current fund balances. build_detailed_report produces the data;
render_markdown turns it into printable text.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from daara_ledger.config import get_settings
from daara_ledger.ledger import engine
from daara_ledger.models import (
    AppConfig,
    BrowserFilters,
    DetailedReport,
    FundKey,
    MonthlyRecord,
    MonthReport,
)
from daara_ledger.queries import LedgerQueryExecutor
from daara_ledger.reports.formatting import format_amount, format_timestamp


def build_detailed_report(
    records: Iterable[MonthlyRecord],
    config: AppConfig,
    filters: Optional[BrowserFilters] = None,
    balances_from: Optional[Iterable[MonthlyRecord]] = None,
    now: Optional[datetime] = None,
) -> DetailedReport:
    """
    Assemble the report for a selection of months.

    Args:
        records: The selected months
        config: Organization details and percentages
        filters: Filters that produced the selection (printed in the header)
        balances_from: Records to take the current fund balances from.
                       Defaults to `records`; pass every stored record to
                       show the true current balances on a filtered report.
        now: Generation timestamp (defaults to the current time)
    """
    settings = get_settings().app
    executor = LedgerQueryExecutor(list(records))
    ordered = executor.all_records_sorted()

    months = [
        MonthReport(
            record=record,
            total_contributions=engine.total_contributions(record),
            total_other_income=engine.total_other_income(record),
            total_received=engine.total_received(record),
            total_expenses=engine.total_expenses(record),
            net_monthly=engine.net_monthly(record),
        )
        for record in ordered
    ]

    balance_source = (
        LedgerQueryExecutor(list(balances_from)) if balances_from is not None else executor
    )

    return DetailedReport(
        generated_at=now or datetime.now(timezone.utc),
        organization=settings.organization_name,
        location=config.location,
        phone=config.phone,
        email=config.email,
        currency=settings.currency_label,
        filters=filters or BrowserFilters(),
        months=months,
        totals=executor.selection_totals(ordered),
        balances=balance_source.current_fund_balances(),
        percents=config.percents(),
    )


def _filter_line(filters: BrowserFilters) -> str:
    if filters.is_unfiltered:
        return "Toutes les périodes"
    parts = []
    if filters.year != "all":
        parts.append(f"Année: {filters.year}")
    if filters.month != "all":
        parts.append(f"Mois: {filters.month}")
    if filters.member != "all":
        parts.append(f"Membre: {filters.member}")
    return " | ".join(parts)


def render_markdown(report: DetailedReport) -> str:
    """Render the report as Markdown (printable as-is or through a viewer)."""
    cur = report.currency
    lines = [
        f"# {report.organization} - Rapport Financier Détaillé",
        "",
    ]
    contact = [value for value in (report.location, report.phone, report.email) if value]
    if contact:
        lines.append(" | ".join(contact))
        lines.append("")
    lines.append(f"Sélection: {_filter_line(report.filters)}")
    lines.append(f"Généré le: {format_timestamp(report.generated_at)}")
    lines.append("")

    for month in report.months:
        record = month.record
        lines.append(f"## {record.period}")
        lines.append("")
        lines.append(
            f"Créé le: {format_timestamp(record.created_at)} | "
            f"Modifié le: {format_timestamp(record.updated_at)}"
        )
        lines.append("")

        lines.append("### Cotisations")
        lines.append("")
        lines.append("| Prénom | Nom | Montant |")
        lines.append("| --- | --- | ---: |")
        for c in record.contributions:
            lines.append(f"| {c.given_name} | {c.family_name} | {format_amount(c.amount, cur)} |")
        lines.append(f"| **Total** | | **{format_amount(month.total_contributions, cur)}** |")
        lines.append("")

        if record.other_income:
            lines.append("### Autres Recettes")
            lines.append("")
            lines.append("| Source | Montant |")
            lines.append("| --- | ---: |")
            for s in record.other_income:
                lines.append(f"| {s.source} | {format_amount(s.amount, cur)} |")
            lines.append(f"| **Total** | **{format_amount(month.total_other_income, cur)}** |")
            lines.append("")

        lines.append("### Dépenses")
        lines.append("")
        lines.append("| Désignation | Total |")
        lines.append("| --- | ---: |")
        for e in record.expenses:
            lines.append(f"| {e.label} | {format_amount(e.amount, cur)} |")
        lines.append(f"| **Total** | **{format_amount(month.total_expenses, cur)}** |")
        lines.append("")

        lines.append(f"- Total reçu: {format_amount(month.total_received, cur)}")
        lines.append(f"- Net mensuel: {format_amount(month.net_monthly, cur)}")
        lines.append("")

        lines.append("| Fonds | % | Ancien Solde | Nouveau Solde |")
        lines.append("| --- | ---: | ---: | ---: |")
        for fund, state in record.allocation.items():
            lines.append(
                f"| {fund.label} | {report.percents.get(fund, 0)}% | "
                f"{format_amount(state.prior_balance, cur)} | "
                f"{format_amount(state.new_balance, cur)} |"
            )
        lines.append("")

    totals = report.totals
    lines.append("## Totaux de la sélection")
    lines.append("")
    lines.append(f"- Cotisations: {format_amount(totals.contributions, cur)}")
    lines.append(f"- Autres recettes: {format_amount(totals.other, cur)}")
    lines.append(f"- Total reçu: {format_amount(totals.received, cur)}")
    lines.append(f"- Dépenses: {format_amount(totals.expenses, cur)}")
    lines.append(f"- Net: {format_amount(totals.net, cur)}")
    lines.append("")

    lines.append("## Soldes actuels des caisses")
    lines.append("")
    for fund in FundKey:
        lines.append(f"- {fund.label}: {format_amount(report.balances.get(fund), cur)}")
    lines.append("")

    return "\n".join(lines)
