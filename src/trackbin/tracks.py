from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from .binning import DEFAULT_ORIGIN
from .overlap import INTERVAL_COLUMNS, SourceInterval, interval_frame

_logger = logging.getLogger(__name__)

BIGWIG_SUFFIXES = {".bw", ".bigwig"}


@dataclass(frozen=True, eq=False)
class Dataset:
    """A named signal track: chrom/start/end/value rows (value NaN = missing)."""

    name: str
    intervals: pd.DataFrame

    @classmethod
    def from_intervals(cls, name: str, intervals: Iterable[SourceInterval] | pd.DataFrame) -> Dataset:
        return cls(name=str(name), intervals=interval_frame(intervals))

    def __len__(self) -> int:
        return int(self.intervals.shape[0])

    def restrict(self, sequences: Iterable[str]) -> Dataset:
        """Drop rows whose chrom is not in `sequences`."""
        keep = set(sequences)
        mask = self.intervals["chrom"].isin(keep)
        return Dataset(name=self.name, intervals=self.intervals[mask].reset_index(drop=True))


def _to_lattice_coords(df: pd.DataFrame, origin: int) -> pd.DataFrame:
    """Shift 0-based half-open file coordinates onto a lattice starting at `origin`.

    With origin 1 the first base `[0, 1)` becomes `[1, 2)`, the half-open
    form of the 1-based closed position 1.
    """
    if origin:
        df = df.assign(start=df["start"] + int(origin), end=df["end"] + int(origin))
    return df


def read_bedgraph(path: str | Path, *, name: str | None = None, origin: int = DEFAULT_ORIGIN) -> Dataset:
    """Read a bedGraph-like TSV (chrom, start, end, value) into a Dataset.

    File coordinates are 0-based half-open and are shifted by `origin` to
    match a lattice from `generate_bins(..., origin=origin)`. `NA`, `nan` and
    `.` values are read as missing; `#` comments are skipped. An empty file
    gives an empty Dataset.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    try:
        df = pd.read_csv(
            path,
            sep="\t",
            header=None,
            names=INTERVAL_COLUMNS,
            usecols=[0, 1, 2, 3],
            dtype={"chrom": str, "start": np.int64, "end": np.int64, "value": np.float64},
            comment="#",
            na_values=["NA", "nan", "NaN", "."],
        )
    except pd.errors.EmptyDataError:
        df = interval_frame([])

    if df.empty:
        _logger.warning("Signal file has no intervals: %s", path)
        return Dataset(name=name or path.stem, intervals=interval_frame([]))
    if (df["end"] <= df["start"]).any():
        bad = df.index[df["end"] <= df["start"]][0]
        raise ValueError(f"Invalid interval with end<=start at row {bad} in {path}")

    _logger.debug("Read %d intervals from %s", df.shape[0], path)
    return Dataset(name=name or path.stem, intervals=_to_lattice_coords(df, origin))


def _require_pybigwig():
    try:
        import pyBigWig  # type: ignore

        return pyBigWig
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Reading bigWig tracks requires the optional dependency 'pyBigWig'. "
            "Install with: pip install 'trackbin[bigwig]' (or pip install pyBigWig)."
        ) from e


def read_bigwig(
    path: str | Path,
    *,
    name: str | None = None,
    chroms: Iterable[str] | None = None,
    origin: int = DEFAULT_ORIGIN,
) -> Dataset:
    """Read every stored interval of a bigWig track.

    Args:
        path: .bw/.bigWig file
        name: dataset name (defaults to the file stem)
        chroms: restrict to these contigs (defaults to all contigs in the file)
        origin: first lattice coordinate; 0-based file coordinates are shifted by it
    """

    pyBigWig = _require_pybigwig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    bw = pyBigWig.open(str(path))
    try:
        available = bw.chroms()
        wanted = list(available) if chroms is None else [c for c in chroms if c in available]

        frames = []
        for chrom in wanted:
            ivs = bw.intervals(chrom)
            if not ivs:
                continue
            arr = np.asarray(ivs, dtype=np.float64)
            frames.append(
                pd.DataFrame(
                    {
                        "chrom": chrom,
                        "start": arr[:, 0].astype(np.int64),
                        "end": arr[:, 1].astype(np.int64),
                        "value": arr[:, 2],
                    }
                )
            )
    finally:
        try:
            bw.close()
        except Exception:
            pass

    if frames:
        df = _to_lattice_coords(pd.concat(frames, ignore_index=True), origin)
    else:
        df = interval_frame([])

    _logger.debug("Read %d intervals over %d contigs from %s", df.shape[0], len(frames), path)
    return Dataset(name=name or path.stem, intervals=df)


def read_track(path: str | Path, *, name: str | None = None, origin: int = DEFAULT_ORIGIN) -> Dataset:
    """Read a track, choosing bigWig or bedGraph by file suffix."""
    path = Path(path)
    if path.suffix.lower() in BIGWIG_SUFFIXES:
        return read_bigwig(path, name=name, origin=origin)
    return read_bedgraph(path, name=name, origin=origin)


def load_datasets(
    tracks: Mapping[str, str | Path],
    *,
    sequences: Iterable[str] | None = None,
    origin: int = DEFAULT_ORIGIN,
) -> list[Dataset]:
    """Read each named track, keeping the mapping's order.

    Track files hold 0-based half-open coordinates; every reader shifts them
    by `origin`, so pass the same `origin` the bins were generated with. If
    `sequences` is given, rows on other contigs are dropped (e.g. to keep
    only chr1..chr22 before binning).
    """

    keep = None if sequences is None else list(sequences)
    out = []
    for name, path in tracks.items():
        _logger.info("Loading dataset %r from %s", name, path)
        ds = read_track(path, name=name, origin=origin)
        if keep is not None:
            ds = ds.restrict(keep)
        out.append(ds)
    return out
