from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import FrozenSet, Tuple

from dotenv import load_dotenv

OWID_COVID_URL = "https://covid.ourworldindata.org/data/owid-covid-data.csv"

# Aggregate rows in the OWID feed that are not countries.
DEFAULT_EXCLUDED_LOCATIONS: FrozenSet[str] = frozenset(
    {
        "World",
        "High-income countries",
        "Asia",
        "Europe",
        "Upper-middle-income countries",
        "European Union (27)",
        "North America",
        "United States",
        "Lower-middle-income countries",
        "South America",
    }
)


@dataclass(frozen=True)
class CovidPipelineConfig:
    # Source
    source: str = OWID_COVID_URL
    request_timeout: int = 60
    country: str = "India"

    # Ranking
    excluded_locations: FrozenSet[str] = DEFAULT_EXCLUDED_LOCATIONS
    top_n: int = 10
    keep_ties: bool = False

    # Forecasting
    horizon: int = 30
    season_length: int = 365
    levels: Tuple[int, ...] = (80, 95)
    min_observations: int = 3

    # IO
    data_dir: str = "data/covid"
    artifacts_dir: str = "artifacts/covid"
    export_path: str = "cleaned_covid_data.csv"
    overwrite: bool = False
    show: bool = False

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def series_id(self) -> str:
        return f"new_cases_{self.country.lower().replace(' ', '_')}"

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def raw_path(self) -> Path:
        return self.data_path() / "raw.parquet"

    def metadata_path(self) -> Path:
        return self.data_path() / "metadata.json"

    def forecast_path(self) -> Path:
        return self.artifacts_path() / "forecast.csv"

    def charts_path(self) -> Path:
        return self.artifacts_path() / "charts"

    def export_file(self) -> Path:
        return Path(self.export_path)


def load_config(**overrides) -> CovidPipelineConfig:
    """
    Build a config from defaults, environment and explicit overrides.

    Reads COVID_DATA_URL, COVID_COUNTRY, COVID_DATA_DIR and
    COVID_ARTIFACTS_DIR from a .env file or the environment. Keyword
    overrides win over the environment.
    """
    load_dotenv()

    env_fields = {
        "source": os.getenv("COVID_DATA_URL"),
        "country": os.getenv("COVID_COUNTRY"),
        "data_dir": os.getenv("COVID_DATA_DIR"),
        "artifacts_dir": os.getenv("COVID_ARTIFACTS_DIR"),
    }
    values = {k: v for k, v in env_fields.items() if v}
    values.update({k: v for k, v in overrides.items() if v is not None})

    return replace(CovidPipelineConfig(), **values)
