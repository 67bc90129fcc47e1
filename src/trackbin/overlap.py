from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .binning import GenomicBins
from .errors import InvalidInterval, UnknownSequence

_logger = logging.getLogger(__name__)

INTERVAL_COLUMNS = ["chrom", "start", "end", "value"]


@dataclass(frozen=True)
class SourceInterval:
    """One scored interval of a track; `value` is None (or NaN) when missing."""

    sequence: str
    start: int
    end: int
    value: float | None = None


@dataclass(frozen=True)
class AggregateCell:
    """Mean and count of one dataset in one bin; `mean` is None when count is 0."""

    bin_global_index: int
    dataset_name: str | None
    mean: float | None
    count: int


def interval_frame(intervals: pd.DataFrame | Iterable[SourceInterval]) -> pd.DataFrame:
    """Coerce intervals to a chrom/start/end/value frame (value float64, NaN = missing)."""
    if isinstance(intervals, pd.DataFrame):
        missing = set(INTERVAL_COLUMNS) - set(intervals.columns)
        if missing:
            raise ValueError(f"Interval table is missing columns: {sorted(missing)}")
        df = intervals[INTERVAL_COLUMNS]
    else:
        rows = [
            (iv.sequence, iv.start, iv.end, np.nan if iv.value is None else iv.value)
            for iv in intervals
        ]
        df = pd.DataFrame.from_records(rows, columns=INTERVAL_COLUMNS)

    return pd.DataFrame(
        {
            "chrom": df["chrom"].astype(str).to_numpy(dtype=object),
            "start": df["start"].to_numpy(dtype=np.int64),
            "end": df["end"].to_numpy(dtype=np.int64),
            "value": pd.to_numeric(df["value"], errors="coerce").to_numpy(dtype=np.float64, na_value=np.nan),
        }
    )


@dataclass(frozen=True, eq=False)
class DatasetAggregate:
    """Per-bin sum and count of one dataset over a bin lattice."""

    name: str | None
    sums: np.ndarray
    count: np.ndarray

    @property
    def covered(self) -> np.ndarray:
        return self.count > 0

    @property
    def mean(self) -> pd.arrays.FloatingArray:
        """Per-bin mean as a nullable Float64 array; <NA> where count == 0."""
        m = self.covered
        values = np.zeros(self.count.shape[0], dtype=np.float64)
        values[m] = self.sums[m] / self.count[m]
        return pd.arrays.FloatingArray(values, ~m)

    def mean_values(self, fill: float = np.nan) -> np.ndarray:
        return self.mean.to_numpy(dtype=np.float64, na_value=fill)

    def cells(self) -> Iterator[AggregateCell]:
        mean = self.mean
        for i in range(self.count.shape[0]):
            n = int(self.count[i])
            yield AggregateCell(
                bin_global_index=i,
                dataset_name=self.name,
                mean=float(mean[i]) if n else None,
                count=n,
            )


def _expand_ranges(lo: np.ndarray, span: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Expand [lo, lo + span) ranges into flat indices plus their owning row."""
    total = int(span.sum())
    owner = np.repeat(np.arange(span.shape[0]), span)
    step = np.arange(total, dtype=np.int64) - np.repeat(np.cumsum(span) - span, span)
    return lo[owner] + step, owner


def aggregate_overlaps(
    bins: GenomicBins,
    intervals: pd.DataFrame | Iterable[SourceInterval],
    *,
    name: str | None = None,
) -> DatasetAggregate:
    """Average interval values into every bin they overlap.

    Overlap is half-open: an interval overlaps a bin iff
    `start < bin.start + bin.width` and `end > bin.start`. Every overlapping
    bin receives the interval's full value (no length weighting). Intervals
    with a missing value are skipped.

    Per sequence, intervals are sorted and binary-searched into the sorted
    bin starts/ends, so cost is O((n_intervals + n_bins) log n + overlaps).

    Returns:
        DatasetAggregate with `sums` and `count` of shape (n_bins,)
    """

    df = interval_frame(intervals)
    n = bins.n_bins
    sums = np.zeros(n, dtype=np.float64)
    count = np.zeros(n, dtype=np.int64)

    if df.empty:
        return DatasetAggregate(name=name, sums=sums, count=count)

    if (df["end"] <= df["start"]).any():
        bad = df.index[df["end"] <= df["start"]][0]
        raise InvalidInterval(f"Invalid interval with end<=start at row {bad} of dataset {name!r}")

    for chrom in pd.unique(df["chrom"]):
        if chrom not in bins:
            raise UnknownSequence(chrom, f"referenced by dataset {name!r}")

    df = df[~np.isnan(df["value"].to_numpy())]

    for chrom, grp in df.groupby("chrom", sort=False):
        sl = bins.sequence_slice(chrom)
        bin_starts = bins.starts[sl]
        if bin_starts.shape[0] == 0:
            continue
        bin_ends = bin_starts + bins.binsize

        # Fixed summation order regardless of input order.
        order = np.lexsort((grp["value"].to_numpy(), grp["end"].to_numpy(), grp["start"].to_numpy()))
        s = grp["start"].to_numpy()[order]
        e = grp["end"].to_numpy()[order]
        v = grp["value"].to_numpy()[order]

        # first bin with end > s, one past the last bin with start < e
        lo = np.searchsorted(bin_ends, s, side="right")
        hi = np.searchsorted(bin_starts, e, side="left")
        span = np.maximum(hi - lo, 0)
        if not span.any():
            continue

        local, owner = _expand_ranges(lo, span)
        idx = local + sl.start
        sums += np.bincount(idx, weights=v[owner], minlength=n)
        count += np.bincount(idx, minlength=n)

    _logger.debug(
        "Aggregated dataset %r: %d intervals, %d bins covered",
        name,
        df.shape[0],
        int((count > 0).sum()),
    )
    return DatasetAggregate(name=name, sums=sums, count=count)
