"""
Streamlit Frontend for Ledgerbook

DESIGN PRINCIPLES:
1. Nothing is reachable until the PIN gate is unlocked
2. Every money operation shows its result or its error
3. The history view never crashes; a failed load shows an empty table

All state that must survive reruns (the history query, the gate) lives
in st.session_state or in the cached components.
"""

import asyncio

import streamlit as st

from ledgerbook.config import validate_all_settings, get_settings
from ledgerbook.errors import LedgerError
from ledgerbook.models import (
    AccountKind,
    Currency,
    ExpenseCategory,
    HistoryQuery,
    SortKey,
    TransactionKind,
    short_id,
)
from ledgerbook.orchestrator import AccountFlow, HistoryFlow, create_app_components
from ledgerbook.services.gate import PinLock
from ledgerbook.services.storage import StorageError


st.set_page_config(
    page_title="Ledgerbook",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)


SORT_COLUMNS = [
    (SortKey.TIMESTAMP, "Date"),
    (SortKey.KIND, "Type"),
    (SortKey.ACCOUNT_ID, "Account"),
    (SortKey.AMOUNT, "Amount"),
    (SortKey.CURRENCY, "Currency"),
    (SortKey.BALANCE_AFTER, "Balance after"),
]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    account_flow, history_flow, pin_lock = create_app_components()
    run_async(pin_lock.initialize())
    return account_flow, history_flow, pin_lock


def format_money(amount, currency: Currency) -> str:
    return f"{amount:,.2f} {currency.label}"


def main():
    """Main application entry point."""
    account_flow, history_flow, pin_lock = get_components()

    st.sidebar.title("🏦 Ledgerbook")
    st.sidebar.markdown("---")

    if not pin_lock.is_unlocked:
        render_unlock_page(pin_lock)
        return

    page = st.sidebar.radio(
        "Navigate to:",
        ["💳 Accounts", "💸 Transactions", "📜 History", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🔒 Lock"):
        run_async(pin_lock.lock())
        st.rerun()

    if page == "💳 Accounts":
        render_accounts_page(account_flow)
    elif page == "💸 Transactions":
        render_transactions_page(account_flow)
    elif page == "📜 History":
        render_history_page(history_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_unlock_page(pin_lock: PinLock):
    """Render the PIN gate."""
    st.title("🔒 Locked")
    st.markdown("Enter your PIN to open the ledger.")

    with st.form("unlock_form"):
        pin = st.text_input("PIN", type="password", max_chars=8)
        submitted = st.form_submit_button("Unlock", type="primary")

    if submitted:
        if run_async(pin_lock.try_unlock(pin)):
            st.rerun()
        else:
            st.error("Wrong PIN.")


def render_accounts_page(account_flow: AccountFlow):
    """Render the account list, the create form and import/export."""
    st.title("💳 Accounts")

    try:
        accounts = run_async(account_flow.list_accounts())
    except StorageError as e:
        st.error(f"Failed to load accounts: {e}")
        accounts = []

    if accounts:
        st.dataframe(
            [
                {
                    "Id": a.short_id,
                    "Name": a.name,
                    "Type": a.account_kind.label,
                    "Balance": format_money(a.balance, a.currency),
                    "Last updated": a.last_updated.strftime("%Y-%m-%d %H:%M"),
                }
                for a in accounts
            ],
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No accounts yet. Create your first one below.")

    st.markdown("### New account")
    with st.form("create_account_form", clear_on_submit=True):
        name = st.text_input("Name")
        col1, col2, col3 = st.columns(3)
        with col1:
            account_kind = st.selectbox(
                "Type",
                options=list(AccountKind),
                format_func=lambda k: "Select..." if k is AccountKind.NONE else k.label,
            )
        with col2:
            currency = st.selectbox(
                "Currency",
                options=list(Currency),
                format_func=lambda c: "Select..." if c is Currency.NONE else c.label,
            )
        with col3:
            initial_balance = st.text_input("Initial balance", value="0")
        submitted = st.form_submit_button("Create account", type="primary")

    if submitted:
        try:
            account = run_async(
                account_flow.create_account(name, account_kind, currency, initial_balance)
            )
            st.success(f"Created {account.name} ({account.short_id}).")
            st.rerun()
        except (LedgerError, StorageError) as e:
            st.error(str(e))

    st.markdown("### Import / export")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Prepare export"):
            st.session_state.export_json = run_async(account_flow.export_json())
        if st.session_state.get("export_json"):
            st.download_button(
                "⬇️ Download accounts.json",
                data=st.session_state.export_json,
                file_name="accounts.json",
                mime="application/json",
            )
    with col2:
        uploaded = st.file_uploader("Import accounts", type=["json"])
        replace_existing = st.checkbox("Replace existing accounts")
        if uploaded and st.button("Import"):
            errors = run_async(
                account_flow.import_json(
                    uploaded.getvalue().decode("utf-8"),
                    replace_existing=replace_existing,
                )
            )
            if errors:
                for message in errors:
                    st.warning(message)
            else:
                st.success("Import complete.")


def render_transactions_page(account_flow: AccountFlow):
    """Render deposit, withdrawal and transfer forms."""
    st.title("💸 Transactions")

    accounts = run_async(account_flow.list_accounts())
    if not accounts:
        st.info("Create an account first.")
        return

    labels = {a.id: f"{a.name} - {a.account_kind.label} ({a.short_id})" for a in accounts}
    account_ids = list(labels)

    deposit_tab, withdraw_tab, transfer_tab = st.tabs(["Deposit", "Withdraw", "Transfer"])

    with deposit_tab:
        with st.form("deposit_form", clear_on_submit=True):
            account_id = st.selectbox("Account", account_ids, format_func=labels.get)
            amount = st.text_input("Amount")
            submitted = st.form_submit_button("Deposit", type="primary")
        if submitted:
            try:
                record = run_async(account_flow.deposit(account_id, amount))
                st.success(f"Deposited. New balance: {format_money(record.balance_after, record.currency)}")
            except (LedgerError, StorageError) as e:
                st.error(str(e))

    with withdraw_tab:
        with st.form("withdraw_form", clear_on_submit=True):
            account_id = st.selectbox("Account", account_ids, format_func=labels.get)
            amount = st.text_input("Amount")
            category = st.selectbox(
                "Category", list(ExpenseCategory), format_func=lambda c: c.label
            )
            submitted = st.form_submit_button("Withdraw", type="primary")
        if submitted:
            try:
                record = run_async(account_flow.withdraw(account_id, amount, category))
                st.success(f"Withdrawn. New balance: {format_money(record.balance_after, record.currency)}")
            except (LedgerError, StorageError) as e:
                st.error(str(e))

    with transfer_tab:
        with st.form("transfer_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                from_id = st.selectbox("From", account_ids, format_func=labels.get)
            with col2:
                to_id = st.selectbox("To", account_ids, format_func=labels.get)
            amount = st.text_input("Amount")
            note = st.text_input("Note (optional)")
            category = st.selectbox(
                "Category", list(ExpenseCategory), format_func=lambda c: c.label
            )
            submitted = st.form_submit_button("Transfer", type="primary")
        if submitted:
            try:
                debit, credit = run_async(
                    account_flow.transfer(from_id, to_id, amount, note=note, category=category)
                )
                st.success(
                    f"Transferred {credit.amount}. "
                    f"{debit.account_name}: {format_money(debit.balance_after, debit.currency)}, "
                    f"{credit.account_name}: {format_money(credit.balance_after, credit.currency)}"
                )
            except (LedgerError, StorageError) as e:
                st.error(str(e))


def render_history_page(history_flow: HistoryFlow):
    """Render the filterable, sortable, paged transaction history."""
    st.title("📜 History")

    app_settings = get_settings().app
    if "history_query" not in st.session_state:
        st.session_state.history_query = HistoryQuery(
            page_size=app_settings.default_page_size
        )
    query: HistoryQuery = st.session_state.history_query

    # Filters
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        date_range = st.date_input("Date range", value=[])
    with col2:
        kind = st.selectbox(
            "Type",
            [None] + list(TransactionKind),
            format_func=lambda k: "All types" if k is None else k.label,
        )
    with col3:
        category = st.selectbox(
            "Category",
            [None] + list(ExpenseCategory),
            format_func=lambda c: "All categories" if c is None else c.label,
        )
    with col4:
        search = st.text_input("Search", placeholder="Account id, currency, type, note")

    date_from = date_range[0] if len(date_range) > 0 else None
    date_to = date_range[1] if len(date_range) > 1 else None
    filters = {
        "date_from": date_from,
        "date_to": date_to,
        "kind": kind,
        "category": category,
        "search": search or None,
    }
    if any(getattr(query, field) != value for field, value in filters.items()):
        query = query.with_filters(**filters)

    # Sort headers
    header = st.columns(len(SORT_COLUMNS))
    for column, (key, label) in zip(header, SORT_COLUMNS):
        with column:
            if st.button(f"{label} {query.sort_indicator(key)}".strip(), key=f"sort_{key.value}"):
                query = query.toggle_sort(key)

    page, error_message = run_async(history_flow.get_page(query))
    if error_message:
        st.error(error_message)

    if page.is_empty:
        st.info("No transactions match the current filters.")
    else:
        st.dataframe(
            [
                {
                    "Date": t.timestamp.strftime("%Y-%m-%d %H:%M"),
                    "Type": t.kind.label,
                    "Account": f"{t.account_name} ({short_id(t.display_account_id)})",
                    "Amount": f"{t.amount:,.2f}",
                    "Currency": t.currency.label,
                    "Balance after": f"{t.balance_after:,.2f}",
                    "Category": t.category.label,
                    "Note": t.note or "",
                }
                for t in page.items
            ],
            use_container_width=True,
            hide_index=True,
        )

    # Pagination
    col1, col2, col3, col4 = st.columns([1, 2, 1, 2])
    with col1:
        if st.button("◀ Previous", disabled=not page.has_previous):
            query = query.with_page(page.page - 1)
            st.session_state.history_query = query
            st.rerun()
    with col2:
        st.markdown(f"Page {page.page} of {page.total_pages} ({page.total_count} results)")
    with col3:
        if st.button("Next ▶", disabled=not page.has_next):
            query = query.with_page(page.page + 1)
            st.session_state.history_query = query
            st.rerun()
    with col4:
        options = app_settings.page_size_options_list
        size = st.selectbox(
            "Rows per page",
            options,
            index=options.index(query.page_size) if query.page_size in options else 0,
        )
        if size != query.page_size:
            query = query.with_page_size(size)
            st.session_state.history_query = query
            st.rerun()

    if st.button("Clear filters"):
        st.session_state.history_query = query.cleared()
        st.rerun()

    st.session_state.history_query = query.with_page(page.page)
    with st.expander("🔍 Query details"):
        st.markdown(page.query_description)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration status")
    status = validate_all_settings()
    for name, key in [("Storage", "storage"), ("Access gate", "gate"), ("Application", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Invalid')}")

    storage = get_settings().storage
    st.markdown(f"**Backend:** {storage.backend}")
    if storage.backend == "json_file":
        st.markdown(f"**Data directory:** `{storage.data_dir}`")


if __name__ == "__main__":
    main()
