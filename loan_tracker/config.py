"""Startup configuration for the loan tracker.

Values are read once from environment variables (``LOAN_TRACKER_*``) and may
be overridden by command-line options. The configuration is not re-read
during a session.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .data_models import DEFAULT_PROJECTION_MODE, PROJECTION_MODES
from .errors import ConfigError

ENV_PREFIX = "LOAN_TRACKER_"


@dataclass(frozen=True)
class TrackerConfig:
    total_principal: int
    feed_url: str = ""
    default_projection_mode: str = DEFAULT_PROJECTION_MODE
    default_manual_monthly_payment: int = 0
    date_column: str = "Fecha"
    month_column: str = "Mes"
    amount_column: str = "Valor"
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.total_principal is None or self.total_principal <= 0:
            raise ConfigError("Total principal must be a positive amount")
        if self.default_projection_mode not in PROJECTION_MODES:
            raise ConfigError(
                f"Projection mode must be one of {', '.join(PROJECTION_MODES)}; "
                f"got {self.default_projection_mode}"
            )
        if self.default_manual_monthly_payment < 0:
            raise ConfigError("Manual monthly payment cannot be negative")
        if self.request_timeout <= 0:
            raise ConfigError("Request timeout must be positive")

    @property
    def columns(self):
        return (self.date_column, self.month_column, self.amount_column)


def _int_from_env(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip().replace("_", ""))
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer; got {raw}") from exc


def load_config(env: Optional[Mapping[str, str]] = None, **overrides) -> TrackerConfig:
    """Build a ``TrackerConfig`` from ``env`` (defaults to ``os.environ``).

    Keyword ``overrides`` take precedence over the environment when they are
    not ``None``; the CLI passes its options through here.
    """
    env = os.environ if env is None else env
    values = {
        "total_principal": _int_from_env(env, "TOTAL_PRINCIPAL", None),
        "feed_url": env.get(ENV_PREFIX + "FEED_URL", ""),
        "default_projection_mode": env.get(
            ENV_PREFIX + "PROJECTION_MODE", DEFAULT_PROJECTION_MODE
        ),
        "default_manual_monthly_payment": _int_from_env(env, "MANUAL_MONTHLY_PAYMENT", 0),
        "date_column": env.get(ENV_PREFIX + "DATE_COLUMN", "Fecha"),
        "month_column": env.get(ENV_PREFIX + "MONTH_COLUMN", "Mes"),
        "amount_column": env.get(ENV_PREFIX + "AMOUNT_COLUMN", "Valor"),
    }
    timeout = env.get(ENV_PREFIX + "REQUEST_TIMEOUT")
    if timeout:
        try:
            values["request_timeout"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"{ENV_PREFIX}REQUEST_TIMEOUT must be a number; got {timeout}") from exc
    values.update({k: v for k, v in overrides.items() if v is not None})
    return TrackerConfig(**values)
