import logging
from typing import Optional

from flask import Flask, jsonify, redirect, render_template, request, url_for

from loan_tracker.config import TrackerConfig, load_config
from loan_tracker.data_models import PROJECTION_MODES, QueryParams
from loan_tracker.engine import build_view
from loan_tracker.feed import Fetcher, load_model
from loan_tracker.formatter import (
    entry_date_text,
    format_date,
    format_pct,
    mode_label,
    money,
    months_text,
    payoff_text,
    projection_note,
)
from loan_tracker.main import LOG_FORMAT, entry_to_dict, projection_to_dict
from loan_tracker_web.snapshot import SnapshotStore

log = logging.getLogger(__name__)


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def params_from_args(args, config: TrackerConfig) -> QueryParams:
    """Build query parameters from request arguments, falling back to config."""
    mode = args.get("mode", config.default_projection_mode)
    if mode not in PROJECTION_MODES:
        mode = config.default_projection_mode
    manual = _parse_int(args.get("manual"))
    if manual is None or manual < 0:
        manual = config.default_manual_monthly_payment
    return QueryParams(
        mode=mode,
        manual_monthly=manual,
        search_text=args.get("q", ""),
        year=_parse_int(args.get("year")),
    )


def _serialize_view(snapshot, view) -> dict:
    model = snapshot.model
    summary = model.summary
    return {
        "status": snapshot.status,
        "loaded_at": snapshot.loaded_at.isoformat() if snapshot.loaded_at else None,
        "summary": {
            "total_principal": summary.total_principal,
            "total_paid": summary.total_paid,
            "remaining_balance": summary.remaining_balance,
            "last_payment": entry_to_dict(summary.last_payment) if summary.last_payment else None,
        },
        "ledger": [entry_to_dict(e) for e in view.entries],
        "monthly_totals": [
            {"key": m.key, "total": m.total, "date": m.date.isoformat()} for m in model.monthly_totals
        ],
        "years": list(model.years),
        "projection": projection_to_dict(view.projection),
        "kpis": {
            "months_with_payments": view.kpis.months_with_payments,
            "avg_monthly_all": view.kpis.avg_monthly_all,
            "avg_monthly_last_6": view.kpis.avg_monthly_last_6,
            "monthly_goal": view.kpis.monthly_goal,
            "progress_percent": view.kpis.progress_percent,
        },
    }


def create_app(config: Optional[TrackerConfig] = None, fetcher: Optional[Fetcher] = None) -> Flask:
    app = Flask(__name__)
    tracker_config = config or load_config()
    store = SnapshotStore(lambda: load_model(tracker_config, fetcher=fetcher))
    app.extensions["snapshot_store"] = store

    @app.template_filter("money")
    def _money_filter(value):
        return money(value)

    @app.route("/", methods=["GET"])
    def index():
        snapshot = store.ensure_loaded()
        params = params_from_args(request.args, tracker_config)
        view = build_view(snapshot.model, params) if snapshot.model else None
        progress = view.kpis.progress_percent if view else 0.0
        return render_template(
            "index.html",
            snapshot=snapshot,
            view=view,
            params=params,
            modes=[(m, mode_label(m)) for m in PROJECTION_MODES],
            progress=format_pct(progress),
            progress_width=min(100.0, max(0.0, progress)),
            entry_date_text=entry_date_text,
            format_date=format_date,
            months_text=months_text,
            payoff_text=payoff_text,
            projection_note=projection_note,
        )

    @app.get("/api/dashboard")
    def dashboard():
        snapshot = store.ensure_loaded()
        if snapshot.model is None:
            return jsonify({"status": snapshot.status, "error": snapshot.error}), 503
        view = build_view(snapshot.model, params_from_args(request.args, tracker_config))
        payload = _serialize_view(snapshot, view)
        payload["error"] = snapshot.error
        return jsonify(payload)

    @app.post("/reload")
    def reload():
        snapshot = store.reload()
        if snapshot.error:
            log.info("Reload finished with error: %s", snapshot.error)
        return redirect(url_for("index"))

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    print("Starting Loan Tracker web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
