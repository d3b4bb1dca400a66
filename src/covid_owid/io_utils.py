from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict

import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _replace_via_tmp(path: Path, write: Callable[[Path], None]) -> None:
    """Write to <path>.tmp beside the target, then swap it into place."""
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    write(tmp)
    os.replace(tmp, path)


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> None:
    _replace_via_tmp(path, lambda tmp: df.to_parquet(tmp, index=False))


def atomic_write_csv(df: pd.DataFrame, path: Path, date_format: str = "%Y-%m-%d") -> None:
    """CSV without the index; an existing file at path is overwritten."""
    _replace_via_tmp(path, lambda tmp: df.to_csv(tmp, index=False, date_format=date_format))


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    _replace_via_tmp(
        path,
        lambda tmp: tmp.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8"),
    )
