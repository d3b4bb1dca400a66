"""
Daily new-case forecasting with StatsForecast AutoARIMA.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from .config import CovidPipelineConfig
from .errors import ForecastError

logger = logging.getLogger(__name__)

MODEL_NAME = "AutoARIMA"

# Above this period only seasonal differencing is searched, no seasonal AR/MA terms.
MAX_SEASONAL_ARMA_PERIOD = 350


@dataclass(frozen=True)
class ForecastResult:
    """Point forecast + prediction intervals for one series"""
    unique_id: str
    history: pd.DataFrame
    forecast: pd.DataFrame
    horizon: int
    levels: Tuple[int, ...]
    model_name: str
    degenerate: bool = False


def prepare_series(
    country_df: pd.DataFrame,
    unique_id: str,
    value_col: str = "new_cases",
) -> pd.DataFrame:
    """
    Convert one country's rows to StatsForecast format on a gapless daily grid.

    Missing days are zero-filled, consistent with the cleaning step.

    Returns:
        DataFrame with columns [unique_id, ds, y]
    """
    if country_df.empty:
        return pd.DataFrame({
            "unique_id": pd.Series(dtype=str),
            "ds": pd.Series(dtype="datetime64[ns]"),
            "y": pd.Series(dtype=float),
        })

    series = (
        country_df.assign(ds=pd.to_datetime(country_df["date"]).dt.normalize())
        .groupby("ds")[value_col]
        .sum()
        .astype(float)
    )
    full_index = pd.date_range(series.index.min(), series.index.max(), freq="D")
    n_gaps = len(full_index) - len(series)
    if n_gaps:
        logger.info("[forecast] %s: zero-filled %s missing days", unique_id, n_gaps)
    series = series.reindex(full_index, fill_value=0.0)

    return pd.DataFrame({
        "unique_id": unique_id,
        "ds": full_index,
        "y": series.to_numpy(),
    })


def build_arima_model(season_length: int):
    """
    AutoARIMA for a daily series.

    Periods above MAX_SEASONAL_ARMA_PERIOD (annual on daily data) search
    seasonal differencing only: max_P = max_Q = 0.
    """
    from statsforecast.models import AutoARIMA

    if season_length > MAX_SEASONAL_ARMA_PERIOD:
        return AutoARIMA(season_length=season_length, max_P=0, max_Q=0)
    return AutoARIMA(season_length=season_length)


def effective_season_length(n_obs: int, season_length: int) -> int:
    """Seasonal search needs two full periods of history; otherwise go non-seasonal."""
    if season_length > 1 and n_obs < 2 * season_length:
        return 1
    return season_length


def _flat_forecast(history: pd.DataFrame, horizon: int, levels: Tuple[int, ...]) -> pd.DataFrame:
    value = float(history["y"].iloc[-1])
    ds = pd.date_range(history["ds"].iloc[-1] + pd.Timedelta(days=1), periods=horizon, freq="D")
    fc = pd.DataFrame({"unique_id": history["unique_id"].iloc[0], "ds": ds, "yhat": value})
    for level in levels:
        fc[f"yhat_lo_{level}"] = value
        fc[f"yhat_hi_{level}"] = value
    return fc


def _standardize_forecast_columns(
    df: pd.DataFrame,
    model: str,
    levels: Tuple[int, ...],
) -> pd.DataFrame:
    """Rename StatsForecast's <model>, <model>-lo-<L>, <model>-hi-<L> to yhat columns."""
    if "unique_id" not in df.columns:
        df = df.reset_index()

    result = df[["unique_id", "ds"]].copy()
    result["ds"] = pd.to_datetime(result["ds"])
    result["yhat"] = df[model].to_numpy()
    for level in levels:
        result[f"yhat_lo_{level}"] = df[f"{model}-lo-{level}"].to_numpy()
        result[f"yhat_hi_{level}"] = df[f"{model}-hi-{level}"].to_numpy()
    return result.reset_index(drop=True)


def forecast_new_cases(history: pd.DataFrame, config: CovidPipelineConfig) -> ForecastResult:
    """
    Fit AutoARIMA to a daily series and forecast config.horizon days ahead.

    Constant series (all zeros included) are not fitted: the forecast
    repeats the constant with zero-width intervals and degenerate=True.

    Args:
        history: DataFrame [unique_id, ds, y] from prepare_series
        config: horizon, season_length, levels, min_observations

    Raises:
        ForecastError: too few observations, or the model search failed
    """
    levels = tuple(config.levels)
    n_obs = len(history)

    if n_obs < config.min_observations:
        raise ForecastError(
            f"Need at least {config.min_observations} observations to forecast, got {n_obs}"
        )

    unique_id = str(history["unique_id"].iloc[0])
    y = history["y"].to_numpy(dtype=float)

    if not np.isfinite(y).all():
        raise ForecastError(f"Series {unique_id} contains non-finite values")

    if np.ptp(y) == 0:
        logger.warning("[forecast] %s is constant (%s); returning flat forecast", unique_id, y[0])
        return ForecastResult(
            unique_id=unique_id,
            history=history,
            forecast=_flat_forecast(history, config.horizon, levels),
            horizon=config.horizon,
            levels=levels,
            model_name="Constant",
            degenerate=True,
        )

    season_length = effective_season_length(n_obs, config.season_length)
    if season_length != config.season_length:
        logger.info(
            "[forecast] %s: %s obs < 2 x season_length=%s, fitting non-seasonal",
            unique_id,
            n_obs,
            config.season_length,
        )

    from statsforecast import StatsForecast

    sf = StatsForecast(models=[build_arima_model(season_length)], freq="D", n_jobs=1)

    try:
        raw = sf.forecast(df=history, h=config.horizon, level=list(levels))
    except Exception as exc:
        raise ForecastError(f"AutoARIMA failed for {unique_id}: {exc}") from exc

    forecast = _standardize_forecast_columns(raw, MODEL_NAME, levels)
    logger.info("[forecast] %s: %s-day forecast from %s obs", unique_id, config.horizon, n_obs)

    return ForecastResult(
        unique_id=unique_id,
        history=history,
        forecast=forecast,
        horizon=config.horizon,
        levels=levels,
        model_name=MODEL_NAME,
    )
