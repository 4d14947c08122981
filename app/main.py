"""
Streamlit Frontend for Daara Ledger

The treasurer's day-to-day interface: record each month's contributions,
other income and expenses, follow the three funds, and print reports.

DESIGN PRINCIPLES:
1. One page per task, reachable from the sidebar
2. Every change is saved immediately and shown back
3. Destructive actions ask for confirmation
4. Clear error messages when the data file cannot be written
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from daara_ledger.config import get_settings, validate_all_settings
from daara_ledger.events import configure_logging
from daara_ledger.ledger import engine
from daara_ledger.models import (
    ALL,
    MONTHS,
    AppConfig,
    BrowserFilters,
    EntryType,
    FundKey,
    MonthlyRecord,
)
from daara_ledger.orchestrator import LedgerService, create_app_components
from daara_ledger.queries import member_roster
from daara_ledger.reports import (
    build_detailed_report,
    format_amount,
    format_timestamp,
    month_report_csv,
    month_report_filename,
    render_markdown,
    selection_csv,
)
from daara_ledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Daara Maha - Gestion",
    page_icon="🕌",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #14532d;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_service() -> LedgerService:
    """Get or create the ledger service (cached), loaded from disk."""
    configure_logging(get_settings().app.effective_log_level)
    try:
        service = create_app_components(use_storage=True)
        run_async(service.load())
        return service
    except StorageError as e:
        st.error(f"Impossible de lire les données: {e}")
        return create_app_components(use_storage=False)


def save_action(coro, success: str = ""):
    """Run a saving action and report a storage failure instead of crashing."""
    try:
        result = run_async(coro)
    except StorageError as e:
        st.error(f"Enregistrement impossible: {e}")
        return None
    if success:
        st.toast(success)
    return result


def money(value: Decimal) -> str:
    return format_amount(value, get_settings().app.currency_label)


def main():
    """Main application entry point."""
    service = get_service()
    settings = get_settings().app

    st.sidebar.title(f"🕌 {settings.organization_name}")
    if service.config.location:
        st.sidebar.caption(service.config.location)
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        [
            "📊 Tableau de bord",
            "📅 Gestion mensuelle",
            "🔍 Recherche",
            "🗄️ Base de données",
            "⚙️ Configuration",
        ],
        index=0,
    )

    if page == "📊 Tableau de bord":
        render_dashboard_page(service)
    elif page == "📅 Gestion mensuelle":
        render_month_page(service)
    elif page == "🔍 Recherche":
        render_search_page(service)
    elif page == "🗄️ Base de données":
        render_database_page(service)
    elif page == "⚙️ Configuration":
        render_config_page(service)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(service: LedgerService):
    """Headline numbers, the current year chart and the member roster."""
    st.title("📊 Tableau de bord")
    queries = service.queries()

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Total des cotisations**")
        st.markdown(
            f'<div class="big-number">{money(queries.grand_total_contributions())}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("**Membres inscrits**")
        st.markdown(
            f'<div class="big-number">{len(service.config.members)}</div>',
            unsafe_allow_html=True,
        )

    year = date.today().year
    st.markdown(f"### Évolution {year}")
    overview = queries.monthly_overview(year)
    st.bar_chart(
        {
            "Mois": [row.label for row in overview],
            "Recettes": [float(row.received) for row in overview],
            "Dépenses": [float(row.expenses) for row in overview],
        },
        x="Mois",
        y=["Recettes", "Dépenses"],
    )

    balances = queries.current_fund_balances()
    cols = st.columns(len(FundKey))
    for col, fund in zip(cols, FundKey):
        col.metric(fund.label, money(balances.get(fund)))

    st.markdown("### Membres")
    with st.form("add_member", clear_on_submit=True):
        c1, c2 = st.columns(2)
        given_name = c1.text_input("Prénom")
        family_name = c2.text_input("Nom")
        if st.form_submit_button("➕ Ajouter le membre"):
            result = save_action(service.add_member(given_name, family_name))
            if result is not None:
                if not result.is_valid:
                    for issue in result.issues:
                        st.error(issue.message)
                else:
                    for issue in result.warnings:
                        st.warning(issue.message)
                    st.rerun()

    for name in member_roster(service.config):
        st.markdown(f"- {name}")


# =============================================================================
# MONTH MANAGER
# =============================================================================

def _period_selector(key: str) -> tuple[int, str]:
    c1, c2 = st.columns(2)
    today = date.today()
    month = c1.selectbox("Mois", MONTHS, index=today.month - 1, key=f"{key}_month")
    year = c2.number_input(
        "Année", min_value=1900, max_value=2999, value=today.year, step=1, key=f"{key}_year"
    )
    return int(year), month


def _entry_rows(
    service: LedgerService,
    record: MonthlyRecord,
    entry_type: EntryType,
    text_fields: list[tuple[str, str]],
):
    """Editable rows for one entry list; a field is saved when its value changes."""
    attr = {
        EntryType.CONTRIBUTION: "contributions",
        EntryType.OTHER_INCOME: "other_income",
        EntryType.EXPENSE: "expenses",
    }[entry_type]

    for entry in getattr(record, attr):
        cols = st.columns(len(text_fields) + 2)
        for col, (field, label) in zip(cols, text_fields):
            value = col.text_input(label, getattr(entry, field), key=f"{entry.id}_{field}")
            if value.strip() != getattr(entry, field).strip():
                save_action(service.update_entry(
                    record.year, record.month, entry_type, entry.id, field, value
                ))
                st.rerun()
        amount = cols[-2].number_input(
            "Montant", value=float(entry.amount), min_value=0.0, step=500.0,
            key=f"{entry.id}_amount",
        )
        if Decimal(str(amount)) != entry.amount:
            save_action(service.update_entry(
                record.year, record.month, entry_type, entry.id, "amount", amount
            ))
            st.rerun()
        if cols[-1].button("🗑️", key=f"{entry.id}_remove"):
            save_action(service.remove_entry(record.year, record.month, entry_type, entry.id))
            st.rerun()


def render_month_page(service: LedgerService):
    """Edit one month: entries, prior balances, carry forward and reports."""
    st.title("📅 Gestion mensuelle")
    year, month = _period_selector("manager")
    record = service.get_record(year, month)
    config = service.config

    if record.created_at is None:
        st.info("Aucune donnée pour ce mois. Elle sera créée au premier enregistrement.")
    else:
        st.caption(
            f"Créé le {format_timestamp(record.created_at)} · "
            f"modifié le {format_timestamp(record.updated_at)}"
        )

    st.markdown("### Cotisations")
    roster = member_roster(config)
    _entry_rows(service, record, EntryType.CONTRIBUTION,
                [("given_name", "Prénom"), ("family_name", "Nom")])
    with st.form("add_contribution", clear_on_submit=True):
        picked = st.selectbox("Membre", [""] + roster)
        c1, c2, c3 = st.columns(3)
        given_name = c1.text_input("Prénom")
        family_name = c2.text_input("Nom")
        amount = c3.number_input("Montant", min_value=0.0, step=500.0)
        if st.form_submit_button("➕ Ajouter une cotisation"):
            if picked:
                member = config.members[roster.index(picked)]
                given_name, family_name = member.given_name, member.family_name
            save_action(service.add_contribution(year, month, given_name, family_name, amount))
            st.rerun()

    st.markdown("### Autres recettes")
    _entry_rows(service, record, EntryType.OTHER_INCOME, [("source", "Source")])
    with st.form("add_other_income", clear_on_submit=True):
        c1, c2 = st.columns(2)
        source = c1.text_input("Source")
        amount = c2.number_input("Montant", min_value=0.0, step=500.0)
        if st.form_submit_button("➕ Ajouter une recette"):
            save_action(service.add_other_income(year, month, source, amount))
            st.rerun()

    st.markdown("### Dépenses")
    _entry_rows(service, record, EntryType.EXPENSE, [("label", "Désignation")])
    with st.form("add_expense", clear_on_submit=True):
        c1, c2 = st.columns(2)
        label = c1.text_input("Désignation")
        amount = c2.number_input("Total", min_value=0.0, step=500.0)
        if st.form_submit_button("➕ Ajouter une dépense"):
            save_action(service.add_expense(year, month, label, amount))
            st.rerun()

    record = service.get_record(year, month)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total reçu", money(engine.total_received(record)))
    c2.metric("Dépenses", money(engine.total_expenses(record)))
    c3.metric("Net mensuel", money(engine.net_monthly(record)))

    st.markdown("### Répartition des fonds")
    for fund, state in record.allocation.items():
        c1, c2, c3 = st.columns(3)
        c1.markdown(f"**{fund.label}** ({config.percent_for(fund)}%)")
        prior = c2.number_input(
            "Ancien solde", value=float(state.prior_balance), step=1000.0,
            key=f"prior_{record.key}_{fund.value}",
        )
        if Decimal(str(prior)) != state.prior_balance:
            save_action(service.set_prior_balance(year, month, fund, prior))
            st.rerun()
        c3.metric("Nouveau solde", money(state.new_balance))

    previous = service.queries().previous_record(year, month)
    if previous is not None:
        if st.button(f"↪️ Reporter les soldes de {previous.period}"):
            save_action(service.carry_forward(year, month), "Soldes reportés")
            st.rerun()

    if record.created_at is not None:
        st.markdown("### Rapports")
        c1, c2 = st.columns(2)
        c1.download_button(
            "📥 Télécharger le CSV",
            month_report_csv(record, config, get_settings().app.currency_label),
            file_name=month_report_filename(record),
            mime="text/csv",
        )
        report = build_detailed_report([record], config, balances_from=service.data.records.values())
        c2.download_button(
            "🖨️ Rapport imprimable",
            render_markdown(report),
            file_name=month_report_filename(record).replace(".csv", ".md"),
            mime="text/markdown",
        )


# =============================================================================
# SEARCH
# =============================================================================

def render_search_page(service: LedgerService):
    """Free-text search over names, sources and expense labels."""
    st.title("🔍 Recherche")
    query = st.text_input("Rechercher", placeholder="Nom, source ou désignation")

    hits = service.queries().search(query)
    if query.strip() and not hits:
        st.info("Aucun résultat.")
    for hit in hits:
        st.markdown(
            f"**{hit.name}** · {hit.entry_type.label} · {hit.period} · {money(hit.amount)}"
        )


# =============================================================================
# DATABASE BROWSER
# =============================================================================

def render_database_page(service: LedgerService):
    """Browse stored months with filters, totals and deletion."""
    st.title("🗄️ Base de données")
    queries = service.queries()

    if "filters" not in st.session_state:
        st.session_state.filters = run_async(service.load_filters())
    saved: BrowserFilters = st.session_state.filters

    years = [ALL] + queries.available_years()
    months = [ALL] + MONTHS
    members = [ALL] + member_roster(service.config)

    def _index(options, value):
        return options.index(value) if value in options else 0

    c1, c2, c3 = st.columns(3)
    def label(value):
        return "Tous" if value == ALL else value

    year = c1.selectbox("Année", years, index=_index(years, saved.year), format_func=label)
    month = c2.selectbox("Mois", months, index=_index(months, saved.month), format_func=label)
    member = c3.selectbox("Membre", members, index=_index(members, saved.member), format_func=label)
    filters = BrowserFilters(year=year, month=month, member=member)

    if st.button("💾 Enregistrer les filtres"):
        save_action(service.save_filters(filters), "Filtres enregistrés")
        st.session_state.filters = filters

    result = queries.execute(filters)

    cols = st.columns(len(FundKey))
    for col, fund in zip(cols, FundKey):
        col.metric(fund.label, money(result.balances.get(fund)))

    totals = result.totals
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Cotisations", money(totals.contributions))
    c2.metric("Autres recettes", money(totals.other))
    c3.metric("Dépenses", money(totals.expenses))
    c4.metric("Net", money(totals.net))

    if not result.data_found:
        st.info("Aucun mois ne correspond à ces filtres.")
        return

    c1, c2 = st.columns(2)
    c1.download_button(
        "📥 Exporter la sélection (CSV)",
        selection_csv(result.records),
        file_name="Daara_Maha_Selection.csv",
        mime="text/csv",
    )
    report = build_detailed_report(
        result.records, service.config, filters, balances_from=service.data.records.values()
    )
    c2.download_button(
        "🖨️ Rapport détaillé",
        render_markdown(report),
        file_name="Daara_Maha_Rapport_Detaille.md",
        mime="text/markdown",
    )

    for record in result.records:
        with st.expander(record.period):
            st.markdown(
                f"{len(record.contributions)} cotisation(s) · "
                f"{len(record.other_income)} autre(s) recette(s) · "
                f"{len(record.expenses)} dépense(s)"
            )
            confirm_key = f"confirm_delete_{record.key}"
            if st.session_state.get(confirm_key):
                st.warning(f"Supprimer définitivement {record.period} ?")
                d1, d2 = st.columns(2)
                if d1.button("✅ Confirmer", key=f"yes_{record.key}"):
                    save_action(service.delete_record(record.year, record.month), "Mois supprimé")
                    st.session_state[confirm_key] = False
                    st.rerun()
                if d2.button("❌ Annuler", key=f"no_{record.key}"):
                    st.session_state[confirm_key] = False
                    st.rerun()
            elif st.button("🗑️ Supprimer", key=f"delete_{record.key}"):
                st.session_state[confirm_key] = True
                st.rerun()


# =============================================================================
# CONFIGURATION
# =============================================================================

def render_config_page(service: LedgerService):
    """Organization details, fund split and member roster."""
    st.title("⚙️ Configuration")
    config = service.config

    with st.form("config"):
        location = st.text_input("Lieu", config.location)
        phone = st.text_input("Téléphone", config.phone)
        email = st.text_input("Email", config.email)

        c1, c2, c3 = st.columns(3)
        renovation = c1.number_input(
            FundKey.RENOVATION.label, value=config.renovation_percent, step=1
        )
        social = c2.number_input(
            FundKey.SOCIAL.label, value=config.social_percent, step=1
        )
        board = c3.number_input(
            FundKey.BOARD.label, value=config.board_percent, step=1
        )
        st.markdown(f"**Total: {renovation + social + board}%**")

        if st.form_submit_button("💾 Enregistrer"):
            updated = AppConfig(
                location=location,
                phone=phone,
                email=email,
                logo_ref=config.logo_ref,
                renovation_percent=renovation,
                social_percent=social,
                board_percent=board,
                members=config.members,
            )
            result = save_action(service.save_config(updated), "Configuration enregistrée")
            if result is not None:
                for issue in result.warnings:
                    st.warning(issue.message)

    st.markdown("### Membres")
    for position, name in enumerate(member_roster(config)):
        c1, c2 = st.columns([4, 1])
        c1.markdown(name)
        if c2.button("🗑️", key=f"member_{position}"):
            save_action(service.remove_member(position))
            st.rerun()

    st.markdown("---")
    st.markdown("### Paramètres")
    status = validate_all_settings()
    for name in ("storage", "allocation", "app"):
        if status.get(name, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{name}_error', 'invalide')}")
    st.caption(f"Fichier de données: {get_settings().storage.data_path}")


if __name__ == "__main__":
    main()
