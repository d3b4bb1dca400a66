"""
OWID COVID-19 ingestion + cleaning.

Pulls the Our World in Data CSV (or a local copy) and narrows it to the
per-country daily counts used downstream.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path

import pandas as pd
import requests

from .errors import CovidDataError

logger = logging.getLogger(__name__)

ID_COLUMNS = ["location", "date"]
COUNT_COLUMNS = ["total_cases", "new_cases", "total_deaths", "new_deaths"]
SELECTED_COLUMNS = ID_COLUMNS + COUNT_COLUMNS
RECOVERED_COLUMN = "total_recovered"


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def pull_owid_csv(source: str, timeout: int = 60) -> pd.DataFrame:
    """
    Load the raw OWID table from a URL or a local CSV path.

    A single GET, no retries: HTTP errors and timeouts propagate.
    """
    if _is_remote(source):
        logger.info("[ingest] GET %s", source)
        resp = requests.get(source, timeout=timeout)
        resp.raise_for_status()
        df = pd.read_csv(io.StringIO(resp.text))
    else:
        path = Path(source)
        logger.info("[ingest] reading %s", path)
        df = pd.read_csv(path)

    logger.info("[ingest] %s rows, %s columns", len(df), len(df.columns))
    return df


def has_recovery_data(df: pd.DataFrame) -> bool:
    return RECOVERED_COLUMN in df.columns


def clean_covid_data(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize the raw OWID table.

    Steps:
    1. Check required columns (location, date, counts)
    2. Project to those columns (+ total_recovered when present)
    3. Parse date, fail loud on unparseable values
    4. Coerce counts to numeric and zero-fill missing counts only

    Rows without a location or a date are dropped rather than zero-filled.

    Raises:
        CovidDataError: required columns are absent
    """
    missing = [c for c in SELECTED_COLUMNS if c not in df_raw.columns]
    if missing:
        raise CovidDataError(f"OWID data missing required columns: {missing}", missing_fields=missing)

    numeric_cols = list(COUNT_COLUMNS)
    if has_recovery_data(df_raw):
        numeric_cols.append(RECOVERED_COLUMN)

    df = df_raw[ID_COLUMNS + numeric_cols].copy()

    for key in ID_COLUMNS:
        absent = df[key].isna()
        if absent.any():
            logger.warning("[clean] dropping %s rows without a %s", int(absent.sum()), key)
            df = df.loc[~absent]

    df["location"] = df["location"].astype(str)
    df["date"] = pd.to_datetime(df["date"], errors="raise")

    for col in numeric_cols:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)

    df = df.reset_index(drop=True)
    logger.info(
        "[clean] %s rows, %s locations, %s to %s",
        len(df),
        df["location"].nunique(),
        df["date"].min(),
        df["date"].max(),
    )
    return df
