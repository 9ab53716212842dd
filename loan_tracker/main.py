"""Command‑line interface for the loan tracker.

This module uses the ``click`` library to implement a multi‑command
interface. Users can load the published payment feed (or a local TSV file),
print the loan summary, the ledger, the monthly totals or a payoff
projection, and export the ledger or projection to JSON/CSV files.
"""

from __future__ import annotations

import csv
import functools
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .config import load_config
from .data_models import PROJECTION_MODES, LedgerEntry, Model, ProjectionResult, QueryParams
from .engine import build_view
from .errors import LoanTrackerError
from .feed import load_model
from .formatter import (
    entry_date_text,
    print_ledger,
    print_monthly_totals,
    print_projection,
    print_summary,
    status_message,
)
from .utils import round_half_up

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_amount_option(value: Optional[str]) -> Optional[int]:
    """Parse an amount option such as ``"900000"``, ``"900.000"`` or ``"1.5m"``.

    Without a ``k``/``m`` suffix ``.`` is a thousands separator; with one it
    is the decimal point of the multiplied number.
    """
    if value is None:
        return None
    raw = value.strip().lower().replace(",", "").replace("$", "").replace(" ", "")
    factor = 1
    if raw.endswith("k"):
        factor = 1_000
        raw = raw[:-1]
    elif raw.endswith("m"):
        factor = 1_000_000
        raw = raw[:-1]
    else:
        raw = raw.replace(".", "")
    try:
        amount = round_half_up(Decimal(raw) * factor)
    except (InvalidOperation, ValueError):
        raise click.BadParameter(f"Invalid amount: {value}")
    if amount < 0:
        raise click.BadParameter(f"Amount cannot be negative: {value}")
    return amount


def feed_options(func):
    """Options shared by every command that loads the feed."""

    @click.option("--feed-url", "feed_url", help="URL of the published TSV feed")
    @click.option(
        "--feed-file",
        "feed_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Read the feed from a local TSV file instead of the URL",
    )
    @click.option("--principal", "-p", "principal", help="Total loan amount")
    @click.option("--verbose", "-v", is_flag=True, help="Log debug details")
    @functools.wraps(func)
    def wrapper(*args, feed_url, feed_file, principal, verbose, **kwargs):
        logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
        try:
            config = load_config(
                feed_url=feed_url or None,
                total_principal=parse_amount_option(principal),
            )
            model = load_model(config, feed_file=feed_file)
        except LoanTrackerError as exc:
            raise click.ClickException(str(exc))
        click.echo(status_message(model), err=True)
        return func(*args, config=config, model=model, **kwargs)

    return wrapper


def entry_to_dict(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "date": entry.date.isoformat() if entry.date else None,
        "date_text": entry_date_text(entry),
        "month": entry.month_label,
        "amount": entry.amount,
        "cumulative_paid": entry.cumulative_paid,
        "remaining_balance": entry.remaining_balance,
    }


def projection_to_dict(projection: ProjectionResult) -> Dict[str, Any]:
    return {
        "mode": projection.mode,
        "status": projection.status,
        "monthly_estimate": projection.monthly_estimate,
        "months_remaining": projection.months_remaining,
        "payoff_date": projection.payoff_date.isoformat() if projection.payoff_date else None,
    }


def export_to_json(path: Path, entries: List[LedgerEntry]) -> None:
    """Export ledger entries to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump({"ledger": [entry_to_dict(e) for e in entries]}, f, indent=2)


def export_to_csv(path: Path, entries: List[LedgerEntry]) -> None:
    """Export ledger entries to a CSV file."""
    header = ["Date", "Month", "Amount", "Cumulative_Paid", "Remaining_Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in entries:
            writer.writerow(
                [entry_date_text(e), e.month_label, e.amount, e.cumulative_paid, e.remaining_balance]
            )


@click.group()
def cli() -> None:
    """Track repayments of a loan from a published payment sheet."""
    pass


@cli.command()
@feed_options
@click.option("--mode", "mode", type=click.Choice(PROJECTION_MODES), help="Projection mode")
@click.option("--manual", "manual", help="Monthly payment for the manual mode")
def summary(config, model: Model, mode: Optional[str], manual: Optional[str]) -> None:
    """Print the loan summary, KPIs and payoff projection."""
    params = QueryParams(
        mode=mode or config.default_projection_mode,
        manual_monthly=_manual_value(config, manual),
    )
    view = build_view(model, params)
    print_summary(model.summary, view.kpis)
    print_projection(view.projection)


@cli.command()
@feed_options
@click.option("--search", "-q", "search", default="", help="Free-text filter")
@click.option("--year", "year", type=int, help="Only show payments of this year")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def ledger(config, model: Model, search: str, year: Optional[int], output: Optional[str]) -> None:
    """Print the ledger with running totals."""
    view = build_view(model, QueryParams(search_text=search, year=year))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, view.entries)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, view.entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Ledger exported to {path}")
    else:
        print_ledger(view.entries)


@cli.command()
@feed_options
def months(config, model: Model) -> None:
    """Print the total paid in each calendar month."""
    print_monthly_totals(model.monthly_totals)


@cli.command()
@feed_options
@click.option("--mode", "mode", type=click.Choice(PROJECTION_MODES), help="Projection mode")
@click.option("--manual", "manual", help="Monthly payment for the manual mode")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def project(config, model: Model, mode: Optional[str], manual: Optional[str], output: Optional[str]) -> None:
    """Estimate months remaining and the payoff month."""
    params = QueryParams(
        mode=mode or config.default_projection_mode,
        manual_monthly=_manual_value(config, manual),
    )
    view = build_view(model, params)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Projection export must use .json extension")
        data = {
            "projection": projection_to_dict(view.projection),
            "kpis": {
                "months_with_payments": view.kpis.months_with_payments,
                "avg_monthly_all": view.kpis.avg_monthly_all,
                "avg_monthly_last_6": view.kpis.avg_monthly_last_6,
                "progress_percent": view.kpis.progress_percent,
            },
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        click.echo(f"Projection exported to {path}")
    else:
        print_projection(view.projection)


def _manual_value(config, manual: Optional[str]) -> int:
    value = parse_amount_option(manual)
    return config.default_manual_monthly_payment if value is None else value


if __name__ == "__main__":
    cli()
