import logging
import os
from datetime import date

import pandas as pd
import streamlit as st

from dashboard import (
    category_breakdown,
    category_figure,
    monthly_flow,
    monthly_flow_figure,
    totals,
    transactions_frame,
)
from errors import FinanceError, ScheduleRejection
from ledger import EXPENSE_CATEGORIES, INCOME_CATEGORIES, LedgerStore, error_notification
from loans import covered_through, generate_schedule, payoff_figure, schedule_frame, summarize_schedule
from reminders import PAYMENT_TYPES, ReminderBook
from storage import get_store

# --- Configuration ---
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
st.set_page_config(page_title="FinanceOS", layout="wide", page_icon="💰")

# --- Engine Session ---
if "ledger" not in st.session_state:
    store = get_store()
    st.session_state.ledger = LedgerStore(store)
    st.session_state.reminders = ReminderBook(store)

ledger: LedgerStore = st.session_state.ledger
book: ReminderBook = st.session_state.reminders


def money(value):
    return f"${value:,.2f}"


def run(action, *args):
    """Runs an engine mutation, reporting rejections inline and successes after the rerun."""
    try:
        result = action(*args)
    except FinanceError as e:
        st.error(error_notification(e).message)
        return
    st.session_state["flash"] = (result.notification, result.persisted)
    st.rerun()


# --- Notifications ---
flash = st.session_state.pop("flash", None)
if flash:
    notification, persisted = flash
    if notification.kind == "error":
        st.error(notification.message)
    else:
        st.success(notification.message)
    if not persisted:
        st.warning("Saved for this session only: the snapshot store is unavailable.")

portfolio = ledger.active_portfolio
stats = totals(portfolio)

# --- Sidebar: portfolios ---
with st.sidebar:
    st.header("FinanceOS")
    st.caption("Smart personal finance control")

    ids = [p.id for p in ledger.state.portfolios]
    names = {p.id: p.name for p in ledger.state.portfolios}
    chosen = st.radio("Portfolios", ids, index=ids.index(portfolio.id), format_func=names.get)
    if chosen != portfolio.id:
        run(ledger.switch_portfolio, chosen)

    with st.form("new_portfolio", clear_on_submit=True):
        new_name = st.text_input("New portfolio")
        if st.form_submit_button("➕ Create portfolio"):
            run(ledger.create_portfolio, new_name)

    st.divider()
    st.metric(f"Balance · {portfolio.name}", money(stats["balance"]))

st.title(portfolio.name)
st.caption(date.today().strftime("%A, %B %d, %Y"))

tab1, tab2, tab3, tab4 = st.tabs(["📊 Dashboard", "💳 Transactions", "💸 Debts", "📅 Payments"])

with tab1:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", money(stats["balance"]))
    col2.metric("Income", money(stats["income"]))
    col3.metric("Expenses", money(stats["expense"]))
    col4.metric("Debt", money(stats["total_debt"]))

    for reminder in book.active():
        due = "today" if reminder.due_date == date.today() else reminder.due_date.strftime("%b %d")
        amount = f" · {money(reminder.amount)}" if reminder.amount else ""
        st.warning(f"🔔 {reminder.name} is due {due}{amount}")

    col1, col2 = st.columns([2, 1])
    with col1:
        st.plotly_chart(monthly_flow_figure(monthly_flow(portfolio)), use_container_width=True)
    with col2:
        breakdown = category_breakdown(portfolio)
        if breakdown:
            st.plotly_chart(category_figure(breakdown), use_container_width=True)
        else:
            st.info("No expenses recorded yet.")

    if portfolio.debts:
        st.subheader("Debts")
        for debt in portfolio.debts:
            st.markdown(f"**{debt.name}** · {money(debt.remaining)} remaining")
            st.progress(min(1.0, debt.progress_pct / 100),
                        text=f"{debt.progress_pct:.1f}% paid · {len(debt.plan)} month plan")

with tab2:
    st.subheader("New Transaction")
    tx_type = st.radio("Type", ["expense", "income"], horizontal=True, format_func=str.title)
    with st.form("add_transaction", clear_on_submit=True):
        col1, col2 = st.columns(2)
        amount = col1.number_input("Amount ($)", min_value=0.0, step=10.0)
        category = col2.selectbox("Category", EXPENSE_CATEGORIES if tx_type == "expense" else INCOME_CATEGORIES)
        col3, col4 = st.columns(2)
        description = col3.text_input("Description")
        tx_date = col4.date_input("Date", value=date.today())
        if st.form_submit_button("Add Transaction"):
            run(ledger.add_transaction, {
                "type": tx_type,
                "amount": amount,
                "category": category,
                "description": description,
                "date": tx_date,
            })

    st.subheader("Transaction Log")
    df = transactions_frame(portfolio)
    if df.empty:
        st.info("No transactions.")
    else:
        search_term = st.text_input("Search")
        filt_df = df.copy()
        if search_term:
            filt_df = filt_df[filt_df["Description"].str.contains(search_term, case=False, regex=False)]
        st.dataframe(filt_df[["Date", "Type", "Amount", "Category", "Description"]],
                     hide_index=True, use_container_width=True)

        labels = {row.ID: f"{row.Date:%Y-%m-%d} · {row.Description or row.Category} · {money(row.Amount)}"
                  for row in df.itertuples()}
        to_delete = st.selectbox("Select to Delete", list(labels), format_func=labels.get)
        if st.button("Delete Selected"):
            run(ledger.delete_transaction, to_delete)

with tab3:
    st.header("💸 Debt Management")

    with st.expander("➕ Add New Debt"):
        col1, col2 = st.columns(2)
        debt_name = col1.text_input("Name (e.g., Credit card)")
        debt_total = col2.number_input("Total owed ($)", min_value=0.0, step=100.0)
        col3, col4 = st.columns(2)
        debt_rate = col3.number_input("Annual interest (%)", min_value=0.0, step=0.5)
        debt_payment = col4.number_input("Monthly payment ($)", min_value=0.0, step=50.0)
        col5, col6 = st.columns(2)
        debt_start = col5.date_input("Start date", value=date.today())
        debt_notes = col6.text_input("Notes")

        # Live preview of the payoff plan
        if debt_total > 0 and debt_payment > 0:
            try:
                preview = summarize_schedule(generate_schedule(debt_total, debt_rate, debt_payment))
            except ScheduleRejection as e:
                st.error(f"⚠ {e.reason.capitalize()}.")
            else:
                c1, c2, c3 = st.columns(3)
                c1.metric("Months to pay off", preview["months"])
                c2.metric("Total to pay", money(preview["total_paid"]))
                c3.metric("Total interest", money(preview["total_interest"]))

        if st.button("Add Debt"):
            run(ledger.add_debt, {
                "name": debt_name,
                "total": debt_total,
                "interest": debt_rate,
                "payment": debt_payment,
                "start_date": debt_start,
                "notes": debt_notes,
            })

    if not portfolio.debts:
        st.info("No debts recorded.")

    for debt in portfolio.debts:
        status = "✅ Paid off" if debt.is_settled else f"{money(debt.remaining)} remaining"
        with st.expander(f"{debt.name} · {status}"):
            c1, c2, c3 = st.columns(3)
            c1.metric("Initial debt", money(debt.total))
            c2.metric("Remaining", money(debt.remaining))
            c3.metric("Paid", money(debt.paid))
            st.progress(min(1.0, debt.progress_pct / 100), text=f"{debt.progress_pct:.1f}% complete")
            if debt.notes:
                st.caption(debt.notes)

            if not debt.is_settled:
                col_a, col_b = st.columns([3, 1])
                pay_amount = col_a.number_input("Payment ($)", min_value=0.0, value=float(debt.payment),
                                                step=50.0, key=f"pay_{debt.id}")
                if col_b.button("Record payment", key=f"pay_btn_{debt.id}"):
                    run(ledger.make_payment, debt.id, pay_amount)

            if debt.payments:
                st.markdown("**Payments**")
                st.dataframe(pd.DataFrame([p.model_dump() for p in debt.payments]),
                             hide_index=True, use_container_width=True)

            paid_through = covered_through(debt)
            st.plotly_chart(payoff_figure(debt.plan, paid_through), use_container_width=True)
            plan_df = schedule_frame(debt.plan)
            plan_df["Covered"] = plan_df["Month"] <= paid_through
            st.caption(f"Payment plan · {len(debt.plan)} months. Covered rows follow the original plan and are approximate.")
            st.dataframe(plan_df, hide_index=True, use_container_width=True)

            if st.button("🗑️ Delete debt", key=f"del_{debt.id}"):
                run(ledger.delete_debt, debt.id)

with tab4:
    st.header("📅 Upcoming Payments")

    with st.expander("➕ Add Reminder"):
        with st.form("add_reminder", clear_on_submit=True):
            col1, col2 = st.columns(2)
            rem_name = col1.text_input("Name (e.g., Rent)")
            rem_amount = col2.number_input("Amount ($, optional)", min_value=0.0, step=10.0)
            col3, col4, col5 = st.columns(3)
            rem_due = col3.date_input("Due date", value=date.today())
            rem_type = col4.selectbox("Type", PAYMENT_TYPES)
            rem_days = col5.number_input("Remind days before", min_value=0, max_value=60, value=3)
            rem_notes = st.text_input("Notes")
            if st.form_submit_button("Save Reminder"):
                run(book.add, {
                    "name": rem_name,
                    "amount": rem_amount or None,
                    "due_date": rem_due,
                    "type": rem_type,
                    "reminder_days": rem_days,
                    "notes": rem_notes,
                })

    statuses = book.statuses()
    if not statuses:
        st.info("No upcoming payments yet.")

    badges = {"overdue": "🔴 Overdue", "urgent": "🟠 Urgent", "upcoming": "🟡 Upcoming", "quiet": "⚪"}
    for entry in statuses:
        reminder = entry["reminder"]
        days = entry["days_until"]
        when = f"{-days} days ago" if days < 0 else ("today" if days == 0 else f"in {days} days")
        amount = money(reminder.amount) if reminder.amount else "—"
        col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
        col1.markdown(f"**{reminder.name}** · {reminder.type} · due {reminder.due_date:%b %d} ({when})")
        col2.markdown(f"{amount} · {badges[entry['urgency']]}{' · dismissed' if reminder.dismissed else ''}")
        if reminder.dismissed:
            if col3.button("Reactivate", key=f"react_{reminder.id}"):
                run(book.reactivate, reminder.id)
        elif col3.button("Dismiss", key=f"dismiss_{reminder.id}"):
            run(book.dismiss, reminder.id)
        if col4.button("🗑️", key=f"rem_del_{reminder.id}"):
            run(book.delete, reminder.id)
