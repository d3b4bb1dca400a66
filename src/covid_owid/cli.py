from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .tasks import run_full_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main():
    """COVID-19 country analysis + forecasting (OWID data)."""


@app.command()
def run(
    country: Optional[str] = None,
    source: Optional[str] = None,
    horizon: int = 30,
    top_n: int = 10,
    keep_ties: bool = False,
    overwrite: bool = False,
    show: bool = False,
):
    cfg = load_config(
        country=country,
        source=source,
        horizon=horizon,
        top_n=top_n,
        keep_ties=keep_ties,
        overwrite=overwrite,
        show=show,
    )

    results = run_full_pipeline(cfg)

    table = Table(title=f"COVID-19 Pipeline Results ({cfg.country})")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in results.items():
        if k == "status":
            continue
        table.add_row(str(k), str(v))
    for stage, state in results["status"].items():
        table.add_row(f"status.{stage}", state)

    console.print(table)


if __name__ == "__main__":
    app()
