"""
COVID-19 OWID analysis package root.

Subpackages:
- covid_owid: load, clean, rank, forecast, chart and export OWID data
"""
