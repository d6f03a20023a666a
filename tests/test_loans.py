"""Amortization schedule generation and plan helpers."""

from __future__ import annotations

from datetime import date

import pytest

from errors import FormValidationError, ScheduleRejection
from loans import MAX_MONTHS, covered_through, generate_schedule, schedule_frame, summarize_schedule
from schemas import Debt


def test_zero_interest_schedule_has_twelve_equal_rows():
    plan = generate_schedule(12000, 0, 1000)

    assert len(plan) == 12
    assert [row.month for row in plan] == list(range(1, 13))
    assert all(row.interest == 0 for row in plan)
    assert all(row.principal == pytest.approx(1000) for row in plan)
    assert plan[-1].remaining == 0


def test_payment_below_first_month_interest_is_rejected():
    with pytest.raises(ScheduleRejection) as exc:
        generate_schedule(1000, 24, 15)

    assert exc.value.reason == "payment does not cover interest"


def test_payment_equal_to_interest_is_rejected():
    # 1200 at 12% accrues exactly 12 in the first month
    with pytest.raises(ScheduleRejection):
        generate_schedule(1200, 12, 12)


def test_slow_payoff_beyond_ceiling_is_rejected_not_truncated():
    with pytest.raises(ScheduleRejection) as exc:
        generate_schedule(1_000_000, 24, 20_000.01)

    assert str(MAX_MONTHS) in exc.value.reason


@pytest.mark.parametrize(
    "total, rate, payment",
    [
        (12000, 0, 1000),
        (10000, 12, 500),
        (2500.5, 18.9, 133.33),
        (350000, 7.25, 2500),
        (999.99, 0.5, 1000),
    ],
)
def test_schedule_rows_are_consistent(total, rate, payment):
    plan = generate_schedule(total, rate, payment)

    assert plan[-1].remaining == pytest.approx(0, abs=1e-4)
    previous = total
    for row in plan:
        assert row.principal + row.interest == pytest.approx(row.payment)
        assert row.remaining == pytest.approx(previous - row.principal, abs=1e-4)
        assert row.remaining < previous
        assert row.payment <= payment + 1e-9
        previous = row.remaining


def test_first_row_splits_interest_and_principal():
    plan = generate_schedule(10000, 12, 500)

    assert plan[0].interest == pytest.approx(100)
    assert plan[0].principal == pytest.approx(400)
    assert plan[0].remaining == pytest.approx(9600)


def test_final_payment_is_capped_to_what_is_owed():
    plan = generate_schedule(1000, 0, 300)

    assert len(plan) == 4
    assert plan[-1].payment == pytest.approx(100)
    assert plan[-1].remaining == 0


def test_schedule_is_deterministic():
    assert generate_schedule(5000, 9.5, 250) == generate_schedule(5000, 9.5, 250)


@pytest.mark.parametrize(
    "total, rate, payment",
    [(0, 5, 100), (1000, -1, 100), (1000, 5, 0), (float("nan"), 5, 100), (1000, 5, float("inf"))],
)
def test_invalid_inputs_raise_validation_error(total, rate, payment):
    with pytest.raises(FormValidationError):
        generate_schedule(total, rate, payment)


def test_summarize_schedule_totals():
    summary = summarize_schedule(generate_schedule(12000, 0, 1000))

    assert summary == {"months": 12, "total_paid": pytest.approx(12000), "total_interest": 0, "final_payment": pytest.approx(1000)}


def test_summarize_empty_plan():
    assert summarize_schedule([])["months"] == 0


def _debt(paid: float) -> Debt:
    return Debt(
        name="Laptop",
        total=3000,
        payment=1000,
        start_date=date(2024, 1, 1),
        remaining=3000 - paid,
        paid=paid,
        plan=generate_schedule(3000, 0, 1000),
    )


@pytest.mark.parametrize("paid, expected", [(0, 0), (999.99, 0), (1000, 1), (2500, 2), (3000, 3)])
def test_covered_through_counts_fully_paid_rows(paid, expected):
    assert covered_through(_debt(paid)) == expected


def test_schedule_frame_columns():
    df = schedule_frame(generate_schedule(3000, 0, 1000))

    assert list(df.columns) == ["Month", "Payment", "Principal", "Interest", "Balance"]
    assert df["Balance"].tolist() == pytest.approx([2000, 1000, 0])
    assert schedule_frame([]).empty
