from __future__ import annotations

import math
from typing import List

import pandas as pd
import plotly.express as px

from errors import FormValidationError, ScheduleRejection
from schemas import Debt, ScheduleRow

MAX_MONTHS = 600  # 50 years
EPSILON = 1e-4


def generate_schedule(total: float, annual_interest_pct: float, monthly_payment: float) -> List[ScheduleRow]:
    """
    Builds the month-by-month payoff plan of a fixed-payment debt.

    The last payment is capped to what is still owed. Raises
    ``ScheduleRejection`` when the payment never reduces principal, or would
    need more than ``MAX_MONTHS`` to clear the balance.
    """
    values = (total, annual_interest_pct, monthly_payment)
    if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
        raise FormValidationError("Debt amounts must be numbers")
    if total <= 0:
        raise FormValidationError("Total must be greater than zero")
    if monthly_payment <= 0:
        raise FormValidationError("Monthly payment must be greater than zero")
    if annual_interest_pct < 0:
        raise FormValidationError("Interest rate cannot be negative")

    monthly_rate = (annual_interest_pct / 100.0) / 12.0
    remaining = float(total)
    plan: List[ScheduleRow] = []
    month = 0

    while remaining > 0:
        if month >= MAX_MONTHS:
            raise ScheduleRejection(f"payment does not pay off the debt within {MAX_MONTHS} months")
        month += 1
        interest = remaining * monthly_rate
        if monthly_payment <= interest:
            raise ScheduleRejection("payment does not cover interest")

        payment = min(monthly_payment, remaining + interest)
        principal = payment - interest
        remaining -= principal
        if remaining < EPSILON:
            remaining = 0.0

        plan.append(
            ScheduleRow(
                month=month,
                interest=interest,
                principal=principal,
                payment=payment,
                remaining=remaining,
            )
        )

    return plan


def summarize_schedule(plan: List[ScheduleRow]) -> dict:
    """Months to payoff, total paid and total interest of a plan."""
    return {
        "months": len(plan),
        "total_paid": sum(row.payment for row in plan),
        "total_interest": sum(row.interest for row in plan),
        "final_payment": plan[-1].payment if plan else 0.0,
    }


def covered_through(debt: Debt) -> int:
    """
    Number of leading plan rows whose cumulative payment is covered by what
    has actually been paid. Approximate: irregular payments drift from the
    plan, and ``debt.remaining`` stays the source of truth.
    """
    cumulative = 0.0
    covered = 0
    for row in debt.plan:
        cumulative += row.payment
        if cumulative > debt.paid + EPSILON:
            break
        covered += 1
    return covered


def schedule_frame(plan: List[ScheduleRow]) -> pd.DataFrame:
    columns = ["Month", "Payment", "Principal", "Interest", "Balance"]
    if not plan:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "Month": row.month,
                "Payment": row.payment,
                "Principal": row.principal,
                "Interest": row.interest,
                "Balance": row.remaining,
            }
            for row in plan
        ],
        columns=columns,
    )


def payoff_figure(plan: List[ScheduleRow], paid_through: int = 0):
    """Area chart of the projected balance, with a marker at the last covered month."""
    df = schedule_frame(plan)
    fig = px.area(df, x="Month", y="Balance", title="Projected Balance")
    if paid_through:
        fig.add_vline(x=paid_through, line_dash="dot", line_color="#4CAF50", annotation_text="Paid through")
    fig.update_layout(height=320)
    return fig
