"""
COVID-19 Pipeline Test Suite

- test_covid_ingest.py — loading, cleaning, validation (fail-loud gates)
- test_covid_analysis.py — country filter + rankings
- test_covid_modeling.py — series preparation + AutoARIMA forecast
- test_covid_pipeline.py — charts, export, stage isolation, CLI
"""
