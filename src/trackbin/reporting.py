from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .table import BinnedTable


def ensure_dir(p: str | Path) -> Path:
    path = Path(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(obj: Any, path: str | Path) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True))


def write_binned_table(table: BinnedTable, out_dir: str | Path) -> dict[str, Path]:
    """Write `average.tsv` and `count.tsv`, each prefixed with bin coordinates.

    Missing averages are written as `NA`.
    """

    out_dir = ensure_dir(out_dir)
    coords = table.bins.to_dataframe()

    paths = {}
    for key, frame in (("average", table.average), ("count", table.count)):
        out = coords.copy()
        for name in frame.columns:
            out[name] = frame[name].array
        path = out_dir / f"{key}.tsv"
        out.to_csv(path, sep="\t", index=False, na_rep="NA")
        paths[key] = path
    return paths
