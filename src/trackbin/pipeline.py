from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .binning import generate_bins
from .config import BinningConfig
from .reference import canonical_sequences, order_sequences, read_chrom_sizes
from .reporting import ensure_dir, write_binned_table, write_json
from .table import BinnedTable, assemble_table
from .tracks import load_datasets

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutputs:
    out_dir: Path
    average_path: Path
    count_path: Path
    meta_path: Path


def build_table(config: BinningConfig) -> BinnedTable:
    """Read the reference and tracks named by `config` and bin them."""
    reference = order_sequences(read_chrom_sizes(config.chrom_sizes), config.sequence_order)
    if config.canonical_only:
        reference = canonical_sequences(reference)
    if not reference:
        raise ValueError(f"No sequences left to bin from {config.chrom_sizes}")

    bins = generate_bins(reference, config.bin_width, origin=config.origin)
    # Without the canonical filter, rows on contigs missing from the reference
    # are left in place and fail the run with UnknownSequence.
    keep = bins.sequence_names if config.canonical_only else None
    datasets = load_datasets(config.tracks, sequences=keep, origin=config.origin)
    return assemble_table(bins, datasets, processes=config.processes)


def run_pipeline(config: BinningConfig, out_dir: str | Path) -> PipelineOutputs:
    out_dir = ensure_dir(out_dir)

    table = build_table(config)
    paths = write_binned_table(table, out_dir)

    meta_path = out_dir / "meta.json"
    meta = dict(config.to_dict())
    meta.update(
        {
            "n_bins": int(table.bins.n_bins),
            "sequences": table.bins.sequence_names,
            "datasets": table.datasets,
            "bins_covered": {name: int((table.count[name] > 0).sum()) for name in table.datasets},
        }
    )
    write_json(meta, meta_path)
    _logger.info("Wrote %d bins x %d datasets to %s", table.bins.n_bins, len(table.datasets), out_dir)

    return PipelineOutputs(
        out_dir=Path(out_dir),
        average_path=paths["average"],
        count_path=paths["count"],
        meta_path=meta_path,
    )
