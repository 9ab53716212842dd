"""Output helpers for the loan tracker.

This module turns computed values into display strings (Colombian peso
amounts, day-first dates, Spanish month names) and renders the summary,
ledger and monthly totals as simple tab-separated tables for the terminal.
It also writes records back out in the feed format so that exported data can
be parsed again.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence

from .data_models import (
    MODE_ALL_MONTH_AVG,
    MODE_LAST_MONTH,
    MODE_MANUAL,
    Kpis,
    LedgerEntry,
    Model,
    MonthlyTotal,
    PaymentRecord,
    ProjectionResult,
    Summary,
)

MONTH_NAMES = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)

EMPTY = "—"


def money(amount) -> str:
    """Format a peso amount as ``$ 1.274.000``; negatives show as ``$ 0``."""
    value = max(0, int(round(amount or 0)))
    return "$ " + f"{value:,}".replace(",", ".")


def format_date(dt: date) -> str:
    return dt.strftime("%d/%m/%Y")


def format_month_year(dt: date) -> str:
    return f"{MONTH_NAMES[dt.month - 1]} {dt.year}"


def format_pct(pct: float) -> str:
    """One decimal below 10 % so that early progress is visible."""
    if pct < 10:
        return f"{pct:.1f}"
    return str(int(round(pct)))


def entry_date_text(entry: LedgerEntry) -> str:
    return format_date(entry.date) if entry.date else entry.date_text


def mode_label(mode: str) -> str:
    if mode == MODE_MANUAL:
        return "Manual"
    if mode == MODE_LAST_MONTH:
        return "Last month"
    if mode == MODE_ALL_MONTH_AVG:
        return "All-time average"
    return "6-month average"


def projection_note(projection: ProjectionResult) -> str:
    if projection.paid_off:
        return "Paid off according to this data."
    if projection.months_remaining is None:
        return "Not enough data to estimate. Try a manual monthly payment."
    if projection.months_remaining <= 6:
        return "Almost there. Keep it steady."
    if projection.months_remaining <= 18:
        return "Going well. Keeping the pace helps a lot."
    return "A long road, but it is moving step by step."


def payoff_text(projection: ProjectionResult) -> str:
    if projection.paid_off:
        return "Already paid off"
    if projection.payoff_date is None:
        return EMPTY
    return format_month_year(projection.payoff_date)


def months_text(projection: ProjectionResult) -> str:
    if projection.months_remaining is None:
        return EMPTY
    return str(projection.months_remaining)


def status_message(model: Model) -> str:
    return (
        f"Loaded. Records: {len(model.entries)}. "
        f"Months with payments: {len(model.monthly_totals)}."
    )


def error_message(exc: Exception) -> str:
    return f"Error: {exc}"


def format_feed(records: Iterable[PaymentRecord], columns: Sequence[str] = ("Fecha", "Mes", "Valor")) -> str:
    """Render records as feed text that ``parser.parse_feed`` accepts.

    Dated records use ``dd/mm/yyyy``; undated ones keep their raw date text.
    Amounts are written with ``$`` and ``.`` grouping like the spreadsheet.
    """
    lines = ["\t".join(columns)]
    for record in records:
        date_text = format_date(record.date) if record.date else record.date_text
        amount_text = "$" + f"{record.amount:,}".replace(",", ".")
        lines.append("\t".join([date_text, record.month_label, amount_text]))
    return "\n".join(lines) + "\n"


def print_summary(summary: Summary, kpis: Optional[Kpis] = None) -> None:
    """Print the loan totals and, when given, the KPIs."""
    print("Summary")
    print("-" * 72)
    print(f"Total principal    : {money(summary.total_principal)}")
    print(f"Total paid         : {money(summary.total_paid)}")
    print(f"Remaining balance  : {money(summary.display_remaining)}")
    if summary.last_payment is not None:
        last = summary.last_payment
        print(f"Last payment       : {format_date(last.date)} ({money(last.amount)})")
    else:
        print(f"Last payment       : {EMPTY}")
    print(f"Status             : {'Paid off' if summary.is_paid_off else 'In progress'}")
    if kpis is not None:
        print(f"Progress           : {format_pct(kpis.progress_percent)}%")
        print(f"Months with pay    : {kpis.months_with_payments or EMPTY}")
        print(f"Average (all)      : {money(kpis.avg_monthly_all) if kpis.avg_monthly_all else EMPTY}")
        print(f"Average (last 6)   : {money(kpis.avg_monthly_last_6) if kpis.avg_monthly_last_6 else EMPTY}")
        if kpis.monthly_goal:
            print(f"Monthly goal       : {money(kpis.monthly_goal)}")
    print("-" * 72)


def print_projection(projection: ProjectionResult) -> None:
    print(f"Projection ({mode_label(projection.mode)})")
    print("-" * 72)
    print(f"Monthly payment    : {money(projection.monthly_estimate)}")
    print(f"Months remaining   : {months_text(projection)}")
    print(f"Payoff date        : {payoff_text(projection)}")
    print(projection_note(projection))
    print("-" * 72)


def ledger_rows(entries: Iterable[LedgerEntry]) -> List[List[str]]:
    return [
        [
            entry_date_text(e),
            e.month_label,
            money(e.amount),
            money(e.cumulative_paid),
            money(e.remaining_balance),
        ]
        for e in entries
    ]


def print_ledger(entries: Iterable[LedgerEntry]) -> None:
    print("\t".join(["Date", "Month", "Amount", "Paid", "Balance"]))
    for row in ledger_rows(entries):
        print("\t".join(row))


def print_monthly_totals(totals: Iterable[MonthlyTotal]) -> None:
    print("\t".join(["Month", "Total"]))
    for total in totals:
        print("\t".join([total.key, money(total.total)]))
