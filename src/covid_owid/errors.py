from __future__ import annotations


class CovidDataError(Exception):
    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class ForecastError(Exception):
    """Raised when a forecast cannot be produced for a series."""
