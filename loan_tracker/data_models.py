"""Data models for the loan tracker.

This module defines dataclasses representing the entities that flow through
the pipeline: raw feed rows, parsed payment records, ledger entries with
running totals, monthly buckets, the loan summary and payoff projections.
Every model is rebuilt from scratch on each reload, so the record-level types
are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

MODE_MANUAL = "manual"
MODE_LAST_MONTH = "last_month"
MODE_ALL_MONTH_AVG = "all_month_avg"
MODE_LAST_MONTH_AVG_6 = "last_month_avg_6"

PROJECTION_MODES = (
    MODE_LAST_MONTH_AVG_6,
    MODE_LAST_MONTH,
    MODE_ALL_MONTH_AVG,
    MODE_MANUAL,
)
DEFAULT_PROJECTION_MODE = MODE_LAST_MONTH_AVG_6


@dataclass(frozen=True)
class RawRow:
    """Verbatim strings of the three target columns of one feed line."""

    date_text: str
    month_text: str
    amount_text: str

    def is_blank(self) -> bool:
        return not (self.date_text or self.month_text or self.amount_text)


@dataclass(frozen=True)
class PaymentRecord:
    """A single payment parsed from the feed.

    Attributes
    ----------
    date: Optional[date]
        The payment date, or ``None`` when the feed value could not be
        parsed. Undated records still count towards the total paid.
    month_label: str
        The free-text month label from the feed (e.g. ``"Enero"``).
    amount: int
        Whole pesos; unparseable amounts are recorded as ``0``.
    date_text, amount_text: str
        The raw feed values, kept for display.
    """

    date: Optional[date]
    month_label: str
    amount: int
    date_text: str = ""
    amount_text: str = ""


@dataclass(frozen=True)
class LedgerEntry:
    """A payment record together with the running totals after it."""

    record: PaymentRecord
    cumulative_paid: int
    remaining_balance: int

    @property
    def date(self) -> Optional[date]:
        return self.record.date

    @property
    def month_label(self) -> str:
        return self.record.month_label

    @property
    def amount(self) -> int:
        return self.record.amount

    @property
    def date_text(self) -> str:
        return self.record.date_text


@dataclass(frozen=True)
class MonthlyTotal:
    """Sum of the dated payments of one calendar month.

    ``date`` is always the first day of the month; ``key`` is ``YYYY-MM``.
    """

    key: str
    total: int
    date: date


@dataclass(frozen=True)
class Summary:
    total_principal: int
    total_paid: int
    remaining_balance: int  # may be negative when overpaid
    last_payment: Optional[LedgerEntry] = None

    @property
    def display_remaining(self) -> int:
        return max(0, self.remaining_balance)

    @property
    def is_paid_off(self) -> bool:
        return self.remaining_balance <= 0


@dataclass(frozen=True)
class ProjectionResult:
    """Outcome of a payoff projection.

    ``months_remaining`` and ``payoff_date`` are both ``None`` when the
    projection is indeterminate. When the loan is already paid off,
    ``months_remaining`` is ``0`` and ``payoff_date`` stays ``None``.
    """

    mode: str
    monthly_estimate: int
    months_remaining: Optional[int] = None
    payoff_date: Optional[date] = None
    paid_off: bool = False

    @property
    def status(self) -> str:
        if self.paid_off:
            return "paid_off"
        if self.months_remaining is None:
            return "indeterminate"
        return "projected"


@dataclass(frozen=True)
class Model:
    """One complete snapshot computed from a feed."""

    entries: Tuple[LedgerEntry, ...]
    monthly_totals: Tuple[MonthlyTotal, ...]
    summary: Summary
    years: Tuple[int, ...]  # newest first


@dataclass
class QueryParams:
    """Parameters supplied by the presentation layer for a derived view."""

    mode: str = DEFAULT_PROJECTION_MODE
    manual_monthly: int = 0
    search_text: str = ""
    year: Optional[int] = None


@dataclass(frozen=True)
class Kpis:
    months_with_payments: int
    avg_monthly_all: int
    avg_monthly_last_6: int
    monthly_goal: Optional[int]
    progress_percent: float


@dataclass
class DashboardView:
    """Filtered ledger plus projection and KPIs for one set of parameters."""

    entries: List[LedgerEntry] = field(default_factory=list)
    projection: Optional[ProjectionResult] = None
    kpis: Optional[Kpis] = None
