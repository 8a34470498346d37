from __future__ import annotations

import logging
from enum import Enum

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from .config import TransitAQConfig
from .tasks import ingest_openaq, run_full_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


class BoundaryFill(str, Enum):
    NONE = "none"
    NEAREST = "nearest"


def _fmt(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return "n/a"
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


@app.command()
def fetch(
    data_dir: str = "data",
    start_date: str = "2020-01-01",
    end_date: str = "2020-12-31",
    overwrite: bool = False,
):
    """Download OpenAQ measurements and write the aggregated pollutant file."""
    cfg = TransitAQConfig(
        data_dir=data_dir,
        start_date=start_date,
        end_date=end_date,
        overwrite=overwrite,
    )
    path = ingest_openaq(cfg, run_id=cfg.run_id())
    console.print(f"[green]Pollutant data:[/green] {path}")


@app.command()
def run(
    data_dir: str = "data",
    artifacts_dir: str = "artifacts/transit_aq",
    boundary_fill: BoundaryFill = BoundaryFill.NONE,
    export: bool = False,
):
    """Build the daily series, print per-pair coverage and correlation."""
    cfg = TransitAQConfig(
        data_dir=data_dir,
        artifacts_dir=artifacts_dir,
        boundary_fill=boundary_fill.value,
    )

    results = run_full_pipeline(cfg, export=export)
    summary = results.pop("summary")

    table = Table(title="Transit vs Air Quality Pipeline Results")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for k, v in results.items():
        table.add_row(str(k), str(v))
    console.print(table)

    pairs = Table(title="Pollutant / Transit Correlation")
    for col in summary.columns:
        pairs.add_column(col, style="cyan" if col == "unique_id" else None)
    for record in summary.to_dict(orient="records"):
        pairs.add_row(*[_fmt(record[col]) for col in summary.columns])
    console.print(pairs)


if __name__ == "__main__":
    app()
