"""
Integrity checks for the cleaned OWID table.

Soft gates (reported, never fatal):
- Missing: no nulls left in the selected columns
- Uniqueness: (location, date) is the natural key but OWID does not enforce it
- Values: cumulative totals must not be negative
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .owid import COUNT_COLUMNS, ID_COLUMNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Results of cleaned-table validation"""
    is_valid: bool
    n_rows: int
    n_locations: int
    n_duplicates: int
    n_missing: int
    n_negative_totals: int
    date_min: Optional[pd.Timestamp]
    date_max: Optional[pd.Timestamp]


def validate_clean_table(df: pd.DataFrame) -> ValidationResult:
    cols = [c for c in ID_COLUMNS + COUNT_COLUMNS if c in df.columns]

    n_missing = int(df[cols].isna().sum().sum())
    n_duplicates = int(df.duplicated(subset=ID_COLUMNS, keep=False).sum())
    n_negative = int(((df["total_cases"] < 0) | (df["total_deaths"] < 0)).sum())

    date_min = df["date"].min() if len(df) else None
    date_max = df["date"].max() if len(df) else None

    return ValidationResult(
        is_valid=(n_missing == 0) and (n_duplicates == 0) and (n_negative == 0),
        n_rows=len(df),
        n_locations=int(df["location"].nunique()),
        n_duplicates=n_duplicates,
        n_missing=n_missing,
        n_negative_totals=n_negative,
        date_min=date_min,
        date_max=date_max,
    )


def log_validation_report(result: ValidationResult) -> None:
    status = "PASS" if result.is_valid else "WARN"
    log = logger.info if result.is_valid else logger.warning
    log(
        "[validate] %s rows=%s locations=%s duplicates=%s missing=%s negative_totals=%s range=%s..%s",
        status,
        result.n_rows,
        result.n_locations,
        result.n_duplicates,
        result.n_missing,
        result.n_negative_totals,
        result.date_min,
        result.date_max,
    )
