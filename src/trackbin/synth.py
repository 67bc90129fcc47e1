from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .reporting import ensure_dir, write_json


def make_synthetic_reference(n_chroms: int = 3, *, length: int = 50_000, seed: int = 0) -> pd.DataFrame:
    """chr1..chrN with lengths jittered around `length` (never a multiple of 100)."""
    rng = np.random.default_rng(int(seed))
    lengths = int(length) + rng.integers(-length // 10, length // 10, size=int(n_chroms))
    lengths = lengths + (lengths % 100 == 0)
    return pd.DataFrame({"name": [f"chr{i + 1}" for i in range(int(n_chroms))], "length": lengths.astype(np.int64)})


def make_synthetic_track(
    reference: pd.DataFrame,
    *,
    seed: int = 0,
    mean_width: int = 300,
    missing_frac: float = 0.05,
) -> pd.DataFrame:
    """Create a bedGraph-like tiling of variable-width intervals with a smooth signal.

    Intervals are contiguous within each chromosome; a fraction of values is
    set to NaN to exercise missing-value handling.
    """
    rng = np.random.default_rng(int(seed))
    frames = []
    for name, length in zip(reference["name"], reference["length"]):
        widths = rng.integers(max(1, mean_width // 4), mean_width * 2, size=int(length) // max(1, mean_width // 4) + 1)
        ends = np.cumsum(widths)
        ends = ends[ends < length]
        starts = np.concatenate([[0], ends[:-1]]) if ends.size else np.empty(0, dtype=np.int64)
        x = starts / float(length)
        y = 1.5 * np.sin(2 * np.pi * x) + 0.3 * rng.standard_normal(starts.shape[0])
        y[rng.random(starts.shape[0]) < missing_frac] = np.nan
        frames.append(pd.DataFrame({"chrom": name, "start": starts, "end": ends, "value": y}))
    return pd.concat(frames, ignore_index=True)


def write_bedgraph(df: pd.DataFrame, out_path: str | Path) -> Path:
    out_path = Path(out_path)
    ensure_dir(out_path.parent)
    df[["chrom", "start", "end", "value"]].to_csv(
        out_path, sep="\t", header=False, index=False, na_rep="NA", float_format="%.6f"
    )
    return out_path


def synth_dataset(
    out_dir: str | Path,
    *,
    n_chroms: int = 3,
    length: int = 50_000,
    n_tracks: int = 2,
    seed: int = 0,
) -> dict[str, Path]:
    """Write `chrom.sizes`, `n_tracks` bedGraph tracks and a `config.json` to `out_dir`."""
    out_dir = ensure_dir(out_dir)

    reference = make_synthetic_reference(n_chroms, length=length, seed=seed)
    sizes_path = out_dir / "chrom.sizes"
    reference.to_csv(sizes_path, sep="\t", header=False, index=False)

    paths: dict[str, Path] = {"chrom_sizes": sizes_path}
    tracks = {}
    for t in range(int(n_tracks)):
        name = f"T{t + 1}"
        df = make_synthetic_track(reference, seed=seed + t + 1)
        tracks[name] = write_bedgraph(df, out_dir / f"{name}.bedgraph")
        paths[name] = tracks[name]

    config_path = out_dir / "config.json"
    write_json(
        {
            "chrom_sizes": sizes_path.name,
            "tracks": {k: v.name for k, v in tracks.items()},
            "bin_width": 500,
            "canonical_only": True,
        },
        config_path,
    )
    paths["config"] = config_path
    return paths
