"""
Static charts for the COVID-19 pipeline.

Each builder takes already-computed inputs and returns a matplotlib Figure:
1. Daily new cases for one country
2. Cumulative cases for one country
3. Top countries by total cases (gradient bar)
4. New-case forecast with prediction bands
5. Top countries by total cases + average recovery rate (dual axis)
6. Total cases vs total deaths, every location
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.colors import LinearSegmentedColormap, Normalize
from matplotlib.figure import Figure
from matplotlib.ticker import StrMethodFormatter

from .modeling import ForecastResult

logger = logging.getLogger(__name__)

warnings.filterwarnings('ignore', category=UserWarning, module='matplotlib')

plt.rcParams['figure.figsize'] = (12, 6)
plt.rcParams['figure.dpi'] = 100

COMMA = StrMethodFormatter("{x:,.0f}")
CASES_CMAP = LinearSegmentedColormap.from_list("cases", ["lightblue", "red"])


def _style(ax, title: str, xlabel: str, ylabel: str) -> None:
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.grid(True, alpha=0.3)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)


def _no_data(ax) -> None:
    ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)


def plot_daily_new_cases(country_df: pd.DataFrame, country: str) -> Figure:
    fig, ax = plt.subplots()
    if country_df.empty:
        _no_data(ax)
    else:
        ax.plot(country_df["date"], country_df["new_cases"], color="blue")
    ax.yaxis.set_major_formatter(COMMA)
    _style(ax, f"Daily COVID-19 Cases in {country}", "Date", "New Cases")
    return fig


def plot_total_cases(country_df: pd.DataFrame, country: str) -> Figure:
    fig, ax = plt.subplots()
    if country_df.empty:
        _no_data(ax)
    else:
        ax.plot(country_df["date"], country_df["total_cases"], color="red")
    ax.yaxis.set_major_formatter(COMMA)
    _style(ax, f"Total COVID-19 Cases in {country}", "Date", "Total Cases")
    return fig


def plot_top_countries(ranked: pd.DataFrame, top_n: int = 10) -> Figure:
    """Horizontal bars, largest at the top, coloured lightblue -> red by value."""
    fig, ax = plt.subplots()
    if ranked.empty:
        _no_data(ax)
    else:
        ordered = ranked.sort_values("total_cases", kind="mergesort")
        values = ordered["total_cases"]
        norm = Normalize(vmin=values.min(), vmax=values.max())
        ax.barh(ordered["location"], values, color=CASES_CMAP(norm(values.to_numpy())))
    ax.xaxis.set_major_formatter(COMMA)
    _style(ax, f"Top {top_n} Countries by Total COVID-19 Cases", "Total Cases", "Country")
    return fig


def plot_forecast(result: ForecastResult) -> Figure:
    """History plus point forecast, widest prediction band drawn first."""
    fig, ax = plt.subplots()
    history, fc = result.history, result.forecast

    ax.plot(history["ds"], history["y"], color="black", linewidth=1, label="Observed")
    for i, level in enumerate(sorted(result.levels, reverse=True)):
        ax.fill_between(
            fc["ds"],
            fc[f"yhat_lo_{level}"],
            fc[f"yhat_hi_{level}"],
            color="steelblue",
            alpha=0.2 + 0.2 * i,
            label=f"{level}% interval",
        )
    ax.plot(fc["ds"], fc["yhat"], color="blue", label=f"{result.model_name} forecast")

    ax.yaxis.set_major_formatter(COMMA)
    ax.legend(loc="upper left")
    _style(ax, f"COVID-19 Case Forecast for Next {result.horizon} Days", "Time", "Predicted Cases")
    return fig


def plot_recovery(ranked: pd.DataFrame, top_n: int = 10) -> Figure:
    """Total-case bars on the left axis, mean recovery rate points on the right."""
    fig, ax = plt.subplots()
    ax_rate = ax.twinx()

    if ranked.empty:
        _no_data(ax)
    else:
        ordered = ranked.sort_values("total_cases", kind="mergesort")
        ax.bar(ordered["location"], ordered["total_cases"], color="blue", alpha=0.6)
        ax_rate.scatter(ordered["location"], ordered["average_recovery_rate"], color="green", s=40, zorder=3)
        ax.tick_params(axis="x", rotation=45)

    ax.yaxis.set_major_formatter(COMMA)
    ax_rate.set_ylabel("Recovery Rate (%)")
    _style(ax, f"Top {top_n} Countries by Total Cases and Recovery Rate", "Country", "Total Cases")
    return fig


def plot_cases_vs_deaths(df: pd.DataFrame) -> Figure:
    fig, ax = plt.subplots()
    if df.empty:
        _no_data(ax)
    else:
        codes = pd.Categorical(df["location"]).codes
        ax.scatter(df["total_cases"], df["total_deaths"], c=codes, cmap="tab20", s=6)
    ax.xaxis.set_major_formatter(COMMA)
    ax.yaxis.set_major_formatter(COMMA)
    _style(ax, "COVID-19 Cases vs Total Deaths by Country", "Total Cases", "Total Deaths")
    return fig


def save_figure(fig: Figure, path: Path, show: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    plt.close(fig)
    logger.info("[charts] wrote %s", path)
    return path
