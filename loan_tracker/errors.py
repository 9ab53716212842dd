"""Exceptions raised while loading a payment feed.

Any of these aborts the whole load attempt; callers keep whatever model they
had before. Per-row problems (bad dates, bad amounts) are never raised.
"""


class LoanTrackerError(Exception):
    """Base class for terminal load errors."""


class FetchError(LoanTrackerError):
    """The feed could not be retrieved."""


class SchemaError(LoanTrackerError):
    """The header row lacks one or more required columns."""

    def __init__(self, missing):
        self.missing = tuple(missing)
        super().__init__(
            "Feed must have columns: " + ", ".join(self.missing)
        )


class EmptyFeedError(LoanTrackerError):
    """The feed contains no data rows."""


class ConfigError(LoanTrackerError, ValueError):
    """Invalid tracker configuration."""
