"""Fixed-width re-binning of genomic signal tracks.

Scored intervals from several named tracks are joined against one bin lattice
over the reference and reduced to a per-bin (mean, count) table per track.
"""

from .binning import Bin, GenomicBins, generate_bins
from .config import BinningConfig
from .errors import DuplicateDatasetName, InvalidConfig, InvalidInterval, TrackBinError, UnknownSequence
from .overlap import AggregateCell, DatasetAggregate, SourceInterval, aggregate_overlaps
from .reference import Sequence, canonical_sequences, read_chrom_sizes
from .table import BinnedTable, assemble_table
from .tracks import Dataset, load_datasets, read_bedgraph, read_bigwig

__all__ = [
    "AggregateCell",
    "Bin",
    "BinnedTable",
    "BinningConfig",
    "Dataset",
    "DatasetAggregate",
    "DuplicateDatasetName",
    "GenomicBins",
    "InvalidConfig",
    "InvalidInterval",
    "Sequence",
    "SourceInterval",
    "TrackBinError",
    "UnknownSequence",
    "aggregate_overlaps",
    "assemble_table",
    "canonical_sequences",
    "generate_bins",
    "load_datasets",
    "read_bedgraph",
    "read_bigwig",
    "read_chrom_sizes",
]
