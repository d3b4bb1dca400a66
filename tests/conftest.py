"""Shared synthetic OWID fixtures (frozen data, no network)."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from src.covid_owid.config import CovidPipelineConfig

LOCATION_SCALES = {
    "India": 10,
    "Brazil": 7,
    "Peru": 3,
    "World": 100,
    "Europe": 50,
}


def make_owid_frame(n_days: int = 40, with_recovered: bool = False) -> pd.DataFrame:
    """OWID-shaped raw table: string dates, extra columns, a few gaps."""
    dates = pd.date_range("2021-01-01", periods=n_days, freq="D").strftime("%Y-%m-%d")
    frames = []
    for location, scale in LOCATION_SCALES.items():
        new_cases = (np.arange(n_days) % 7 + 1) * scale
        total_cases = np.cumsum(new_cases)
        frame = pd.DataFrame({
            "iso_code": location[:3].upper(),
            "continent": np.nan if location in ("World", "Europe") else "Somewhere",
            "location": location,
            "date": dates,
            "total_cases": total_cases.astype(float),
            "new_cases": new_cases.astype(float),
            "total_deaths": (total_cases // 50).astype(float),
            "new_deaths": (new_cases // 50).astype(float),
        })
        if with_recovered:
            frame["total_recovered"] = (total_cases * 0.9).round()
        frames.append(frame)

    df = pd.concat(frames, ignore_index=True)
    # OWID leaves early cumulative cells blank
    df.loc[df.index[:3], ["total_deaths", "new_deaths"]] = np.nan
    return df


@pytest.fixture
def owid_raw() -> pd.DataFrame:
    return make_owid_frame()


@pytest.fixture
def owid_raw_recovered() -> pd.DataFrame:
    return make_owid_frame(with_recovered=True)


@pytest.fixture
def make_config(tmp_path):
    """Config rooted in tmp_path, reading a CSV written from the given frame."""

    def _make(raw: pd.DataFrame, **overrides) -> CovidPipelineConfig:
        csv_path = tmp_path / "owid.csv"
        raw.to_csv(csv_path, index=False)
        values = {
            "source": str(csv_path),
            "data_dir": str(tmp_path / "data"),
            "artifacts_dir": str(tmp_path / "artifacts"),
            "export_path": str(tmp_path / "cleaned_covid_data.csv"),
        }
        values.update(overrides)
        return CovidPipelineConfig(**values)

    return _make
