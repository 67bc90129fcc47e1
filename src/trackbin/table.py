from __future__ import annotations

import logging
import multiprocessing
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import pandas as pd

from .binning import GenomicBins
from .errors import DuplicateDatasetName, InvalidConfig
from .overlap import AggregateCell, DatasetAggregate, aggregate_overlaps
from .tracks import Dataset

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class BinnedTable:
    """Per-bin, per-dataset mean and count over one bin lattice.

    `average` (nullable Float64, <NA> where no interval contributed) and
    `count` (int64) share the same index (bin global index) and the same
    columns (dataset names, in input order).
    """

    bins: GenomicBins
    average: pd.DataFrame
    count: pd.DataFrame

    @property
    def datasets(self) -> list[str]:
        return list(self.average.columns)

    def column(self, name: str) -> pd.DataFrame:
        """One dataset as a two-column (mean, count) frame."""
        if name not in self.average.columns:
            raise KeyError(name)
        return pd.DataFrame({"mean": self.average[name], "count": self.count[name]})

    def cells(self) -> Iterator[AggregateCell]:
        """Every cell, dataset by dataset in column order, bins ascending."""
        for name in self.datasets:
            avg = self.average[name]
            cnt = self.count[name]
            for i, (m, n) in enumerate(zip(avg, cnt)):
                yield AggregateCell(
                    bin_global_index=i,
                    dataset_name=name,
                    mean=None if n == 0 else float(m),
                    count=int(n),
                )

    def to_frame(self) -> pd.DataFrame:
        """Bin coordinates followed by `<name>_av` and `<name>_n` columns."""
        out = self.bins.to_dataframe()
        for name in self.datasets:
            out[f"{name}_av"] = self.average[name].array
            out[f"{name}_n"] = self.count[name].array
        return out


def _aggregate_one(args: tuple[GenomicBins, Dataset]) -> DatasetAggregate:
    bins, ds = args
    return aggregate_overlaps(bins, ds.intervals, name=ds.name)


def assemble_table(
    bins: GenomicBins,
    datasets: Sequence[Dataset],
    *,
    processes: int = 1,
) -> BinnedTable:
    """Aggregate every dataset over `bins` and merge into a BinnedTable.

    Args:
        bins: the shared bin lattice
        datasets: named datasets; names must be unique, order sets column order
        processes: >1 aggregates datasets in a process pool

    Returns:
        BinnedTable with rows in bin order and columns in dataset order
    """

    if processes < 1:
        raise InvalidConfig(f"processes must be >= 1; got {processes}")

    seen: set[str] = set()
    for ds in datasets:
        if ds.name in seen:
            raise DuplicateDatasetName(ds.name)
        seen.add(ds.name)

    work = [(bins, ds) for ds in datasets]
    n_workers = min(int(processes), len(work))
    if n_workers > 1:
        _logger.info("Aggregating %d datasets across %d processes", len(work), n_workers)
        ctx = multiprocessing.get_context("fork")
        with ctx.Pool(processes=n_workers) as pool:
            results = pool.map(_aggregate_one, work)
    else:
        results = []
        for item in work:
            _logger.info("Aggregating dataset %r (%d intervals)", item[1].name, len(item[1]))
            results.append(_aggregate_one(item))

    index = pd.RangeIndex(bins.n_bins, name="bin")
    names = [ds.name for ds in datasets]
    average = pd.DataFrame({r.name: r.mean for r in results}, index=index, columns=names)
    count = pd.DataFrame({r.name: r.count for r in results}, index=index, columns=names)

    return BinnedTable(bins=bins, average=average, count=count)
