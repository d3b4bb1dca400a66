"""
COVID-19 country analysis + forecasting pipeline (OWID data).

Modules:
- config: pipeline configuration and paths
- owid: OWID CSV ingestion + cleaning
- validate: cleaned-table integrity report
- analysis: country filter + cross-country rankings
- modeling: AutoARIMA new-case forecast
- charts: matplotlib figures
- tasks: stage functions + run_full_pipeline
- cli: typer entry point
"""
