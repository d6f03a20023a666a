"""Lightweight MCP-aligned server exposing ledger, debt and reminder tools over FastAPI."""

import logging
import os
from datetime import date
from functools import lru_cache
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dashboard import category_breakdown, monthly_flow, totals
from errors import FinanceError
from ledger import LedgerStore
from loans import generate_schedule, summarize_schedule
from reminders import ReminderBook, payment_statuses
from schemas import ScheduleRow, UpcomingPayment
from storage import SnapshotStore, get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="FinanceOS Tool Server", version="0.2.0")


@lru_cache(maxsize=1)
def _configured_store() -> SnapshotStore:
    return get_store()


def get_snapshot_store() -> SnapshotStore:
    return _configured_store()


def get_today() -> date:
    return date.today()


def get_ledger(store: SnapshotStore = Depends(get_snapshot_store), today: date = Depends(get_today)) -> LedgerStore:
    return LedgerStore(store, today=lambda: today)


def get_reminders(store: SnapshotStore = Depends(get_snapshot_store), today: date = Depends(get_today)) -> ReminderBook:
    return ReminderBook(store, today=lambda: today)


@app.exception_handler(FinanceError)
async def finance_error_handler(request: Request, exc: FinanceError):
    logger.info("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


class PortfolioSummary(BaseModel):
    id: str
    name: str
    created_at: date
    transactions: int
    debts: int


class PortfoliosResponse(BaseModel):
    active_id: Optional[str]
    portfolios: List[PortfolioSummary]


@app.get("/portfolios", response_model=PortfoliosResponse)
async def list_portfolios(ledger: LedgerStore = Depends(get_ledger)):
    state = ledger.state
    return PortfoliosResponse(
        active_id=state.active_id,
        portfolios=[
            PortfolioSummary(
                id=p.id,
                name=p.name,
                created_at=p.created_at,
                transactions=len(p.transactions),
                debts=len(p.debts),
            )
            for p in state.portfolios
        ],
    )


class Totals(BaseModel):
    income: float
    expense: float
    balance: float
    total_debt: float


class MonthFlow(BaseModel):
    month: str
    label: str
    income: float
    expense: float


class CategoryTotal(BaseModel):
    name: str
    value: float


class StatsResponse(BaseModel):
    portfolio_id: str
    name: str
    totals: Totals
    monthly_flow: List[MonthFlow]
    categories: List[CategoryTotal]


@app.get("/portfolios/active/stats", response_model=StatsResponse)
async def active_stats(ledger: LedgerStore = Depends(get_ledger), today: date = Depends(get_today)):
    portfolio = ledger.active_portfolio
    return StatsResponse(
        portfolio_id=portfolio.id,
        name=portfolio.name,
        totals=Totals(**totals(portfolio)),
        monthly_flow=[MonthFlow(**m) for m in monthly_flow(portfolio, today)],
        categories=[CategoryTotal(**c) for c in category_breakdown(portfolio)],
    )


class ScheduleRequest(BaseModel):
    total: float = Field(..., gt=0, description="Amount owed")
    interest: float = Field(0.0, ge=0, description="Annual interest rate in percent")
    payment: float = Field(..., gt=0, description="Fixed monthly payment")


class ScheduleResponse(BaseModel):
    months: int
    total_paid: float
    total_interest: float
    final_payment: float
    rows: List[ScheduleRow]


@app.post("/tools/generate_schedule", response_model=ScheduleResponse)
async def schedule_preview(req: ScheduleRequest):
    plan = generate_schedule(req.total, req.interest, req.payment)
    return ScheduleResponse(rows=plan, **summarize_schedule(plan))


class ReminderStatus(BaseModel):
    reminder: UpcomingPayment
    days_until: int
    urgency: Literal["overdue", "urgent", "upcoming", "quiet"]


@app.get("/reminders/active", response_model=List[ReminderStatus])
async def reminders_active(book: ReminderBook = Depends(get_reminders), today: date = Depends(get_today)):
    active_ids = {r.id for r in book.active()}
    return [
        ReminderStatus(**entry)
        for entry in payment_statuses(book.reminders, today)
        if entry["reminder"].id in active_ids
    ]


@app.get("/reminders/statuses", response_model=List[ReminderStatus])
async def reminders_statuses(book: ReminderBook = Depends(get_reminders)):
    return [ReminderStatus(**entry) for entry in book.statuses()]


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run("mcp_server:app", host="0.0.0.0", port=8001, reload=True)
