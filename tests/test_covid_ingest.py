"""
Ingestion + cleaning tests.

- Remote and local sources load into a DataFrame
- HTTP failures propagate (no retry, no silent empty frame)
- Cleaning leaves no missing values in the selected columns
- Missing-value fill is scoped to numeric columns
- Missing required columns / bad dates fail loud
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest
import requests

from src.covid_owid.errors import CovidDataError
from src.covid_owid.owid import (
    SELECTED_COLUMNS,
    clean_covid_data,
    has_recovery_data,
    pull_owid_csv,
)
from src.covid_owid.validate import validate_clean_table


class TestPullOwidCsv:

    @patch("src.covid_owid.owid.requests.get")
    def test_remote_csv_parsed(self, mock_get):
        mock_response = MagicMock()
        mock_response.text = "location,date,total_cases\nIndia,2021-01-01,5\nIndia,2021-01-02,7\n"
        mock_get.return_value = mock_response

        df = pull_owid_csv("https://example.org/owid.csv", timeout=5)

        mock_get.assert_called_once_with("https://example.org/owid.csv", timeout=5)
        mock_response.raise_for_status.assert_called_once()
        assert list(df.columns) == ["location", "date", "total_cases"]
        assert len(df) == 2

    @patch("src.covid_owid.owid.requests.get")
    def test_http_error_propagates(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        mock_get.return_value = mock_response

        with pytest.raises(requests.HTTPError):
            pull_owid_csv("https://example.org/missing.csv")

        assert mock_get.call_count == 1

    def test_local_path(self, tmp_path, owid_raw):
        path = tmp_path / "owid.csv"
        owid_raw.to_csv(path, index=False)

        df = pull_owid_csv(str(path))

        assert len(df) == len(owid_raw)
        assert set(SELECTED_COLUMNS).issubset(df.columns)


@pytest.mark.fail_loud
class TestCleanCovidData:

    def test_no_missing_in_selected_columns(self, owid_raw):
        assert owid_raw[SELECTED_COLUMNS].isna().sum().sum() > 0

        df = clean_covid_data(owid_raw)

        assert list(df.columns) == SELECTED_COLUMNS
        assert df.isna().sum().sum() == 0

    def test_missing_counts_become_zero(self, owid_raw):
        df = clean_covid_data(owid_raw)

        assert (df.loc[:2, "total_deaths"] == 0).all()
        assert (df.loc[:2, "new_deaths"] == 0).all()

    def test_date_parsed(self, owid_raw):
        df = clean_covid_data(owid_raw)

        assert pd.api.types.is_datetime64_any_dtype(df["date"])
        assert df["date"].min() == pd.Timestamp("2021-01-01")

    def test_location_not_zero_filled(self, owid_raw):
        raw = owid_raw.copy()
        raw.loc[5, "location"] = np.nan

        df = clean_covid_data(raw)

        assert len(df) == len(raw) - 1
        assert "0" not in set(df["location"])
        assert 0 not in set(df["location"])

    def test_rows_without_date_dropped(self, owid_raw):
        raw = owid_raw.copy()
        raw.loc[7, "date"] = np.nan

        df = clean_covid_data(raw)

        assert len(df) == len(raw) - 1
        assert df[SELECTED_COLUMNS].isna().sum().sum() == 0
        assert df["date"].notna().all()

    def test_non_numeric_counts_coerced(self):
        raw = pd.DataFrame({
            "location": ["India", "India"],
            "date": ["2021-01-01", "2021-01-02"],
            "total_cases": ["10", "n/a"],
            "new_cases": [10, None],
            "total_deaths": [0, 1],
            "new_deaths": [0, 1],
        })

        df = clean_covid_data(raw)

        assert df["total_cases"].tolist() == [10.0, 0.0]
        assert df["new_cases"].tolist() == [10.0, 0.0]

    def test_recovered_kept_when_present(self, owid_raw_recovered):
        df = clean_covid_data(owid_raw_recovered)

        assert has_recovery_data(df)
        assert df["total_recovered"].isna().sum() == 0

    def test_missing_required_column_raises(self, owid_raw):
        raw = owid_raw.drop(columns=["new_deaths"])

        with pytest.raises(CovidDataError) as excinfo:
            clean_covid_data(raw)

        assert excinfo.value.missing_fields == ["new_deaths"]

    def test_invalid_date_raises(self, owid_raw):
        raw = owid_raw.copy()
        raw.loc[0, "date"] = "not-a-date"

        with pytest.raises((ValueError, TypeError)):
            clean_covid_data(raw)


class TestValidateCleanTable:

    def test_clean_table_passes(self, owid_raw):
        result = validate_clean_table(clean_covid_data(owid_raw))

        assert result.is_valid
        assert result.n_locations == 5
        assert result.n_missing == 0
        assert result.date_max == pd.Timestamp("2021-02-09")

    def test_duplicates_and_negatives_reported(self, owid_raw):
        df = clean_covid_data(owid_raw)
        df = pd.concat([df, df.iloc[[0]]], ignore_index=True)
        df.loc[10, "total_cases"] = -1

        result = validate_clean_table(df)

        assert not result.is_valid
        assert result.n_duplicates == 2
        assert result.n_negative_totals == 1
