# dashboard.py: totals, monthly flow and category breakdown for a portfolio, plus their charts

from datetime import date
from typing import List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from schemas import Portfolio

FLOW_MONTHS = 6
TOP_CATEGORIES = 5


def transactions_frame(portfolio: Portfolio) -> pd.DataFrame:
    """
    One row per transaction, in ledger order (newest first), with a
    ``Month`` column keyed ``YYYY-MM``.
    """
    columns = ["ID", "Date", "Type", "Amount", "Category", "Description", "Month"]
    if not portfolio.transactions:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        [
            {
                "ID": t.id,
                "Date": t.date,
                "Type": t.type,
                "Amount": t.amount,
                "Category": t.category or "Other",
                "Description": t.description,
            }
            for t in portfolio.transactions
        ]
    )
    df["Date"] = pd.to_datetime(df["Date"])
    df["Month"] = df["Date"].dt.to_period("M").astype(str)
    return df[columns]


def totals(portfolio: Portfolio) -> dict:
    """Exact sums over the whole ledger; no display window applies."""
    income = sum(t.amount for t in portfolio.transactions if t.type == "income")
    expense = sum(t.amount for t in portfolio.transactions if t.type == "expense")
    return {
        "income": income,
        "expense": expense,
        "balance": income - expense,
        "total_debt": sum(d.remaining for d in portfolio.debts),
    }


def monthly_flow(portfolio: Portfolio, now: Optional[date] = None) -> List[dict]:
    """
    Income and expense per month for the trailing six calendar months,
    current month included, oldest first. Empty months are zero and
    transactions outside the window are left out.
    """
    current = pd.Period(now or date.today(), freq="M")
    window = [current - i for i in range(FLOW_MONTHS - 1, -1, -1)]
    keys = [str(p) for p in window]

    flow = pd.DataFrame(0.0, index=keys, columns=["income", "expense"])
    df = transactions_frame(portfolio)
    in_window = df[df["Month"].isin(keys)]
    if not in_window.empty:
        sums = in_window.groupby(["Month", "Type"])["Amount"].sum().unstack(fill_value=0.0)
        flow = sums.reindex(index=keys, columns=["income", "expense"], fill_value=0.0)

    return [
        {
            "month": key,
            "label": period.strftime("%b"),
            "income": float(flow.at[key, "income"]),
            "expense": float(flow.at[key, "expense"]),
        }
        for key, period in zip(keys, window)
    ]


def category_breakdown(portfolio: Portfolio, limit: int = TOP_CATEGORIES) -> List[dict]:
    """Top expense categories by total, largest first; ties keep ledger order."""
    df = transactions_frame(portfolio)
    expenses = df[df["Type"] == "expense"]
    if expenses.empty:
        return []

    by_cat = (
        expenses.groupby("Category", sort=False)["Amount"]
        .sum()
        .sort_values(ascending=False, kind="stable")
        .head(limit)
    )
    return [{"name": name, "value": float(value)} for name, value in by_cat.items()]


def monthly_flow_figure(flow: List[dict]):
    """
    Area chart of income vs expenses per month.
    """
    labels = [m["label"] for m in flow]
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=labels, y=[m["income"] for m in flow], name="Income",
                             fill="tozeroy", line=dict(color="#4CAF50")))
    fig.add_trace(go.Scatter(x=labels, y=[m["expense"] for m in flow], name="Expenses",
                             fill="tozeroy", line=dict(color="#FF5252")))
    fig.update_layout(title="Flow, last 6 months", height=350)
    return fig


def category_figure(breakdown: List[dict]):
    """
    Donut chart of the top spending categories.
    """
    by_cat = pd.DataFrame(breakdown, columns=["name", "value"])
    fig = px.pie(by_cat, values="value", names="name", hole=0.4, title="Spending by Category")
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig
