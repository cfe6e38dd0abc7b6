from __future__ import annotations


class FetchError(RuntimeError):
    """A single upstream request failed or returned nothing usable."""

    def __init__(self, message: str, *, series_id: str | None = None):
        super().__init__(message)
        self.series_id = series_id


class NoRatesAvailableError(RuntimeError):
    """Every configured benchmark series failed to fetch."""
