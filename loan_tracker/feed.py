"""Loading of the published payment feed.

This is the only part of the package that performs I/O. A load is a single
request with no retry: any failure is terminal for that attempt and no model
is returned, so callers can keep showing the previous one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import requests

from .config import TrackerConfig
from .data_models import Model
from .engine import recompute
from .errors import FetchError

log = logging.getLogger(__name__)

Fetcher = Callable[[str, float], str]


def fetch_feed(url: str, timeout: float = 30.0) -> str:
    """Download the feed text from ``url``.

    Caching is disabled so that every reload sees the latest sheet.

    Raises
    ------
    FetchError
        On connection problems or a non-success HTTP status.
    """
    if not url:
        raise FetchError("No feed URL configured.")
    log.info("Fetching feed from %s", url)
    try:
        resp = requests.get(
            url,
            headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        log.error("Feed request failed: %s", exc)
        raise FetchError(f"Could not read the feed ({exc}).") from exc
    if not resp.ok:
        log.error("Feed request returned HTTP %s", resp.status_code)
        raise FetchError(f"Could not read the feed ({resp.status_code}).")
    resp.encoding = "utf-8"
    return resp.text


def read_feed_file(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchError(f"Could not read the feed file {path} ({exc}).") from exc


def load_model(
    config: TrackerConfig,
    fetcher: Optional[Fetcher] = None,
    feed_file: Optional[Path] = None,
) -> Model:
    """Fetch the feed and recompute the model in one step.

    ``feed_file`` takes precedence over the configured URL. ``fetcher``
    replaces ``fetch_feed`` (used by the web app factory and tests).
    """
    if feed_file is not None:
        text = read_feed_file(feed_file)
    else:
        text = (fetcher or fetch_feed)(config.feed_url, config.request_timeout)
    model = recompute(text, config)
    log.info(
        "Loaded %d records across %d months with payments",
        len(model.entries),
        len(model.monthly_totals),
    )
    return model
