"""
Country selection and cross-country rankings.
"""
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from .owid import RECOVERED_COLUMN, has_recovery_data

logger = logging.getLogger(__name__)


def filter_country(df: pd.DataFrame, country: str) -> pd.DataFrame:
    """
    Rows for a single location in chronological order.

    An unknown location yields an empty frame with the same columns.
    """
    subset = df[df["location"] == country]
    if subset.empty:
        logger.warning("[filter] no rows for location=%r", country)
        return df.iloc[0:0].copy()

    subset = subset.sort_values("date", kind="mergesort").reset_index(drop=True)
    logger.info("[filter] %s: %s rows", country, len(subset))
    return subset


def _top_n(summary: pd.DataFrame, metric: str, n: int, keep_ties: bool) -> pd.DataFrame:
    """
    Highest-ranked n rows by metric, descending.

    keep_ties=False truncates to exactly n rows (stable, so earlier rows win
    a tie at the boundary). keep_ties=True keeps every row tied with the
    n-th value and may return more than n rows.
    """
    if keep_ties:
        top = summary.nlargest(n, metric, keep="all")
    else:
        top = summary.sort_values(metric, ascending=False, kind="mergesort").head(n)
    return top.reset_index(drop=True)


def _drop_excluded(summary: pd.DataFrame, excluded: Iterable[str]) -> pd.DataFrame:
    excluded = set(excluded)
    return summary[~summary["location"].isin(excluded)]


def rank_total_cases(
    df: pd.DataFrame,
    excluded: Iterable[str] = (),
    n: int = 10,
    keep_ties: bool = False,
) -> pd.DataFrame:
    """
    Rank locations by the sum of their daily total_cases rows.

    Returns:
        DataFrame [location, total_cases], sorted descending
    """
    summary = df.groupby("location", as_index=False).agg(total_cases=("total_cases", "sum"))
    summary = _drop_excluded(summary, excluded)
    ranked = _top_n(summary, "total_cases", n, keep_ties)

    logger.info("[rank] total_cases: %s of %s locations kept", len(ranked), len(summary))
    return ranked


def add_recovery_rate(df: pd.DataFrame) -> pd.DataFrame:
    """Recovered as a percentage of total cases; NaN where total_cases is 0."""
    out = df.copy()
    cases = out["total_cases"].where(out["total_cases"] != 0, np.nan)
    out["recovery_rate"] = out[RECOVERED_COLUMN] / cases * 100
    return out


def rank_recovery(
    df: pd.DataFrame,
    excluded: Iterable[str] = (),
    n: int = 10,
    keep_ties: bool = False,
) -> pd.DataFrame:
    """
    Locations with the highest mean recovery rate, shown by peak total_cases.

    Selection is on average_recovery_rate; locations whose rate is undefined
    everywhere (no non-zero total_cases) are never selected. The selected
    rows are then ordered by total_cases.

    Returns:
        DataFrame [location, total_cases, average_recovery_rate], sorted
        descending by total_cases

    Raises:
        KeyError: total_recovered is not in the table
    """
    if not has_recovery_data(df):
        raise KeyError(RECOVERED_COLUMN)

    with_rate = add_recovery_rate(df)
    summary = with_rate.groupby("location", as_index=False).agg(
        total_cases=("total_cases", "max"),
        average_recovery_rate=("recovery_rate", "mean"),
    )
    summary = _drop_excluded(summary, excluded)
    summary = summary.dropna(subset=["average_recovery_rate"])
    selected = _top_n(summary, "average_recovery_rate", n, keep_ties)
    ranked = selected.sort_values("total_cases", ascending=False, kind="mergesort").reset_index(drop=True)

    logger.info("[rank] recovery: %s of %s locations kept", len(ranked), len(summary))
    return ranked
