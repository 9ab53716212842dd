"""In-memory holder for the latest dashboard model.

The web app keeps exactly one model at a time. A successful reload swaps in a
new snapshot as a whole; a failed one only records the error message, leaving
the previous model in place (stale but intact).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from loan_tracker.data_models import Model
from loan_tracker.errors import LoanTrackerError
from loan_tracker.formatter import error_message, status_message

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    model: Optional[Model]
    loaded_at: Optional[datetime]
    status: str
    error: Optional[str] = None


class SnapshotStore:
    """Holds the current snapshot and replaces it on each reload."""

    def __init__(self, loader: Callable[[], Model], *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._loader = loader
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = Snapshot(model=None, loaded_at=None, status="Not loaded yet.")

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    def reload(self) -> Snapshot:
        with self._lock:
            return self._reload_locked()

    def ensure_loaded(self) -> Snapshot:
        """Load once on first use; concurrent first callers share one fetch."""
        with self._lock:
            if self._snapshot.model is None and self._snapshot.error is None:
                return self._reload_locked()
            return self._snapshot

    def _reload_locked(self) -> Snapshot:
        previous = self._snapshot
        try:
            model = self._loader()
        except LoanTrackerError as exc:
            log.warning("Reload failed, keeping previous model: %s", exc)
            self._snapshot = Snapshot(
                model=previous.model,
                loaded_at=previous.loaded_at,
                status=error_message(exc),
                error=str(exc),
            )
            return self._snapshot
        self._snapshot = Snapshot(model=model, loaded_at=self._clock(), status=status_message(model))
        return self._snapshot
