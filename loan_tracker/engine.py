"""Core calculation engine for the loan tracker.

This module turns parsed payment records into the dashboard model: a ledger
with running totals, per-month totals, the loan summary and a payoff
projection. Every function here is pure. ``recompute`` builds a complete
``Model`` from feed text and ``build_view`` derives the filtered ledger,
projection and KPIs for one set of query parameters.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import TrackerConfig
from .data_models import (
    MODE_ALL_MONTH_AVG,
    MODE_LAST_MONTH,
    MODE_LAST_MONTH_AVG_6,
    MODE_MANUAL,
    DashboardView,
    Kpis,
    LedgerEntry,
    Model,
    MonthlyTotal,
    PaymentRecord,
    ProjectionResult,
    QueryParams,
    Summary,
)
from .errors import EmptyFeedError
from .formatter import entry_date_text, money
from .parser import parse_feed
from .utils import add_months, ceil_div, rounded_mean

log = logging.getLogger(__name__)

RECENT_MONTHS = 6


def build_ledger(records: Iterable[PaymentRecord], total_principal: int) -> List[LedgerEntry]:
    """Attach cumulative paid and remaining balance to each record.

    The input order is kept as is; records must already be sorted.
    """
    entries: List[LedgerEntry] = []
    cumulative = 0
    for record in records:
        cumulative += record.amount
        entries.append(
            LedgerEntry(
                record=record,
                cumulative_paid=cumulative,
                remaining_balance=total_principal - cumulative,
            )
        )
    return entries


def build_monthly_totals(entries: Iterable) -> List[MonthlyTotal]:
    """Sum amounts per calendar month, oldest month first.

    Accepts ledger entries or payment records. Items without a date are left
    out, since they cannot be attributed to a month.
    """
    buckets: Dict[Tuple[int, int], int] = {}
    for item in entries:
        if item.date is None:
            continue
        key = (item.date.year, item.date.month)
        buckets[key] = buckets.get(key, 0) + item.amount
    return [
        MonthlyTotal(key=f"{year:04d}-{month:02d}", total=total, date=date(year, month, 1))
        for (year, month), total in sorted(buckets.items())
    ]


def build_summary(entries: Sequence[LedgerEntry], total_principal: int) -> Summary:
    total_paid = sum(e.amount for e in entries)
    last_payment = next(
        (e for e in reversed(entries) if e.date is not None and e.amount > 0),
        None,
    )
    return Summary(
        total_principal=total_principal,
        total_paid=total_paid,
        remaining_balance=total_principal - total_paid,
        last_payment=last_payment,
    )


def distinct_years(entries: Iterable[LedgerEntry]) -> Tuple[int, ...]:
    return tuple(sorted({e.date.year for e in entries if e.date is not None}, reverse=True))


def estimate_monthly_payment(
    monthly_totals: Sequence[MonthlyTotal],
    mode: str,
    manual_monthly: int = 0,
) -> int:
    """Return the monthly payment assumed by a projection ``mode``.

    ``manual`` returns ``manual_monthly`` as given. The averaging modes round
    half-up to a whole peso. Modes that need monthly data return 0 when there
    is none.

    Raises
    ------
    ValueError
        If ``mode`` is not a known projection mode.
    """
    if mode == MODE_MANUAL:
        return manual_monthly or 0
    if mode == MODE_LAST_MONTH:
        return monthly_totals[-1].total if monthly_totals else 0
    if mode == MODE_ALL_MONTH_AVG:
        return rounded_mean(m.total for m in monthly_totals)
    if mode == MODE_LAST_MONTH_AVG_6:
        return rounded_mean(m.total for m in monthly_totals[-RECENT_MONTHS:])
    raise ValueError(f"Unknown projection mode: {mode}")


def compute_projection(
    monthly_totals: Sequence[MonthlyTotal],
    summary: Summary,
    mode: str,
    manual_monthly: int = 0,
) -> ProjectionResult:
    """Project the number of months and the month in which the loan ends.

    A loan with nothing left owing is reported as paid off whatever the
    estimate. Without a positive estimate or a dated payment to count from,
    the projection is indeterminate and carries neither months nor a date.
    Otherwise the months are rounded up and counted forward from the later of
    the latest monthly bucket and the last payment date.
    """
    monthly = estimate_monthly_payment(monthly_totals, mode, manual_monthly)
    remaining = summary.remaining_balance

    if remaining <= 0:
        return ProjectionResult(mode=mode, monthly_estimate=monthly, months_remaining=0, paid_off=True)

    last_payment_date: Optional[date] = (
        summary.last_payment.date if summary.last_payment is not None else None
    )
    if monthly <= 0 or last_payment_date is None:
        return ProjectionResult(mode=mode, monthly_estimate=monthly)

    months_remaining = ceil_div(remaining, monthly)
    anchor = last_payment_date
    if monthly_totals:
        anchor = max(anchor, monthly_totals[-1].date)
    return ProjectionResult(
        mode=mode,
        monthly_estimate=monthly,
        months_remaining=months_remaining,
        payoff_date=add_months(anchor, months_remaining),
    )


def recompute(feed_text: str, config: TrackerConfig) -> Model:
    """Build a complete model from feed text.

    Raises
    ------
    SchemaError
        If the header lacks a configured column.
    EmptyFeedError
        If no data rows remain after skipping blank lines.
    """
    records = parse_feed(feed_text, config.columns)
    if not records:
        raise EmptyFeedError("No rows found in the feed.")
    entries = build_ledger(records, config.total_principal)
    model = Model(
        entries=tuple(entries),
        monthly_totals=tuple(build_monthly_totals(entries)),
        summary=build_summary(entries, config.total_principal),
        years=distinct_years(entries),
    )
    log.debug(
        "Recomputed model: %d records, %d months", len(model.entries), len(model.monthly_totals)
    )
    return model


def _matches_search(entry: LedgerEntry, query: str) -> bool:
    haystack = (
        entry_date_text(entry).lower(),
        entry.month_label.lower(),
        money(entry.amount).lower(),
        money(entry.cumulative_paid).lower(),
    )
    return any(query in field for field in haystack)


def filter_entries(
    entries: Iterable[LedgerEntry],
    search_text: str = "",
    year: Optional[int] = None,
) -> List[LedgerEntry]:
    """Filter ledger entries by year and free-text search.

    A year filter drops undated entries. The search is case-insensitive and
    matches the displayed date, month label, amount or cumulative paid.
    """
    query = (search_text or "").strip().lower()
    result = []
    for entry in entries:
        if year is not None and (entry.date is None or entry.date.year != int(year)):
            continue
        if query and not _matches_search(entry, query):
            continue
        result.append(entry)
    return result


def compute_kpis(model: Model, manual_monthly: int = 0) -> Kpis:
    totals = model.monthly_totals
    summary = model.summary
    progress = 0.0
    if summary.total_principal > 0:
        progress = min(100.0, max(0.0, summary.total_paid / summary.total_principal * 100))
    return Kpis(
        months_with_payments=len(totals),
        avg_monthly_all=rounded_mean(m.total for m in totals),
        avg_monthly_last_6=rounded_mean(m.total for m in totals[-RECENT_MONTHS:]),
        monthly_goal=manual_monthly if manual_monthly and manual_monthly > 0 else None,
        progress_percent=progress,
    )


def build_view(model: Model, params: QueryParams) -> DashboardView:
    """Derive the filtered ledger, projection and KPIs for ``params``."""
    return DashboardView(
        entries=filter_entries(model.entries, params.search_text, params.year),
        projection=compute_projection(
            model.monthly_totals, model.summary, params.mode, params.manual_monthly
        ),
        kpis=compute_kpis(model, params.manual_monthly),
    )


def ease_progress(from_percent: float, to_percent: float, fraction: float) -> float:
    """Progress bar position at ``fraction`` of an ease-out cubic animation.

    Both ends are clamped to 0-100 and ``fraction`` to 0-1.
    """
    start = min(100.0, max(0.0, from_percent))
    end = min(100.0, max(0.0, to_percent))
    t = min(1.0, max(0.0, fraction))
    eased = 1 - (1 - t) ** 3
    return start + (end - start) * eased
