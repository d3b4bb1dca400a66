from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

import pandas as pd

from .analysis import filter_country, rank_recovery, rank_total_cases
from .charts import (
    plot_cases_vs_deaths,
    plot_daily_new_cases,
    plot_forecast,
    plot_recovery,
    plot_top_countries,
    plot_total_cases,
    save_figure,
)
from .config import CovidPipelineConfig
from .io_utils import atomic_write_csv, atomic_write_json, atomic_write_parquet
from .modeling import ForecastResult, forecast_new_cases, prepare_series
from .owid import SELECTED_COLUMNS, clean_covid_data, has_recovery_data, pull_owid_csv
from .validate import log_validation_report, validate_clean_table

logger = logging.getLogger(__name__)

RECOVERY_MISSING_MESSAGE = (
    "The 'total_recovered' column is missing, so recovery rate analysis can't be performed."
)


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _snapshot_source(config: CovidPipelineConfig) -> Optional[str]:
    meta_path = config.metadata_path()
    if not meta_path.exists():
        return None
    return json.loads(meta_path.read_text(encoding="utf-8")).get("source")


def ingest(config: CovidPipelineConfig) -> pd.DataFrame:
    """Load the raw table, reusing the parquet snapshot of the same source."""
    raw_path = config.raw_path()

    if raw_path.exists() and not config.overwrite and _snapshot_source(config) == config.source:
        logger.info("[ingest] raw snapshot exists, reusing: %s", raw_path)
        return pd.read_parquet(raw_path)

    df_raw = pull_owid_csv(config.source, timeout=config.request_timeout)
    atomic_write_parquet(df_raw, raw_path)
    atomic_write_json(
        {
            "pull_timestamp": _utc_iso(),
            "source": config.source,
            "raw_rows": int(len(df_raw)),
            "columns": list(df_raw.columns),
        },
        config.metadata_path(),
    )
    logger.info("[ingest] wrote raw snapshot: %s (%s rows)", raw_path, len(df_raw))
    return df_raw


def clean(df_raw: pd.DataFrame) -> pd.DataFrame:
    df = clean_covid_data(df_raw)
    log_validation_report(validate_clean_table(df))
    return df


def rank_recovery_stage(df: pd.DataFrame, config: CovidPipelineConfig) -> Optional[pd.DataFrame]:
    """Recovery ranking, or None when the table has no total_recovered column."""
    if not has_recovery_data(df):
        logger.info("[rank] %s", RECOVERY_MISSING_MESSAGE)
        return None
    return rank_recovery(df, config.excluded_locations, n=config.top_n, keep_ties=config.keep_ties)


def forecast_stage(country_df: pd.DataFrame, config: CovidPipelineConfig) -> ForecastResult:
    history = prepare_series(country_df, unique_id=config.series_id())
    result = forecast_new_cases(history, config)
    atomic_write_csv(result.forecast, config.forecast_path())
    logger.info("[forecast] wrote %s", config.forecast_path())
    return result


def export_country_csv(country_df: pd.DataFrame, path: Path) -> Path:
    """Write the country subset (selected columns only), replacing any existing file."""
    atomic_write_csv(country_df[SELECTED_COLUMNS], path)
    logger.info("[export] wrote %s (%s rows)", path, len(country_df))
    return path


def _render(
    name: str,
    build: Callable,
    args: tuple,
    config: CovidPipelineConfig,
    status: Dict[str, str],
    charts: Dict[str, str],
) -> None:
    try:
        fig = build(*args)
        path = save_figure(fig, config.charts_path() / f"{name}.png", show=config.show)
    except Exception as exc:
        logger.warning("[charts] %s failed: %s", name, exc)
        status[f"chart:{name}"] = f"failed: {exc}"
        return
    charts[name] = str(path)
    status[f"chart:{name}"] = "ok"


def render_charts(
    df: pd.DataFrame,
    country_df: pd.DataFrame,
    ranked: pd.DataFrame,
    recovery: Optional[pd.DataFrame],
    forecast: Optional[ForecastResult],
    config: CovidPipelineConfig,
) -> tuple[Dict[str, str], Dict[str, str]]:
    """
    Render every chart whose input is available, each independently.

    Returns:
        (chart name -> written path, chart name -> status)
    """
    status: Dict[str, str] = {}
    charts: Dict[str, str] = {}

    _render("daily_new_cases", plot_daily_new_cases, (country_df, config.country), config, status, charts)
    _render("total_cases", plot_total_cases, (country_df, config.country), config, status, charts)
    _render("top_countries", plot_top_countries, (ranked, config.top_n), config, status, charts)

    if forecast is None:
        status["chart:forecast"] = "skipped: no forecast"
    else:
        _render("forecast", plot_forecast, (forecast,), config, status, charts)

    if recovery is None:
        status["chart:recovery_rate"] = "skipped: no total_recovered column"
    else:
        _render("recovery_rate", plot_recovery, (recovery, config.top_n), config, status, charts)

    _render("cases_vs_deaths", plot_cases_vs_deaths, (df,), config, status, charts)
    return charts, status


def run_full_pipeline(config: CovidPipelineConfig) -> Dict:
    """
    load -> clean -> filter -> rank -> forecast -> charts -> export.

    Load and clean failures propagate. Forecast and chart failures are
    logged and recorded in the returned status map.
    """
    run_id = config.run_id()
    status: Dict[str, str] = {}

    df = clean(ingest(config))
    status["ingest"] = "ok"
    status["clean"] = "ok"

    country_df = filter_country(df, config.country)
    status["filter"] = "ok" if not country_df.empty else "ok: empty"

    ranked = rank_total_cases(df, config.excluded_locations, n=config.top_n, keep_ties=config.keep_ties)
    status["rank"] = "ok"

    recovery = rank_recovery_stage(df, config)
    status["rank_recovery"] = "ok" if recovery is not None else "skipped: no total_recovered column"

    forecast: Optional[ForecastResult] = None
    try:
        forecast = forecast_stage(country_df, config)
        status["forecast"] = "ok (degenerate)" if forecast.degenerate else "ok"
    except Exception as exc:
        logger.warning("[forecast] skipped: %s", exc)
        status["forecast"] = f"failed: {exc}"

    charts, chart_status = render_charts(df, country_df, ranked, recovery, forecast, config)
    status.update(chart_status)

    export_path = export_country_csv(country_df, config.export_file())
    status["export"] = "ok"

    return {
        "run_id": run_id,
        "country": config.country,
        "rows": len(df),
        "country_rows": len(country_df),
        "top_countries": ranked["location"].tolist(),
        "raw_snapshot": str(config.raw_path()),
        "forecast": str(config.forecast_path()) if forecast is not None else None,
        "charts": charts,
        "export": str(export_path),
        "status": status,
    }
