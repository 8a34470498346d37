from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pandas as pd
import plotly.graph_objects as go


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _tmp_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".tmp")


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> None:
    """
    Atomic parquet write: write to temp in same directory, then replace.
    """
    ensure_dir(path.parent)
    tmp = _tmp_for(path)
    df.to_parquet(tmp, index=False)
    os.replace(tmp, path)


def atomic_write_json(payload: Any, path: Path) -> None:
    ensure_dir(path.parent)
    tmp = _tmp_for(path)
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str)
    os.replace(tmp, path)


def atomic_write_html(fig: go.Figure, path: Path) -> None:
    ensure_dir(path.parent)
    tmp = _tmp_for(path)
    fig.write_html(tmp, include_plotlyjs="cdn")
    os.replace(tmp, path)
