from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .errors import InvalidConfig, UnknownSequence
from .reference import ReferenceLike, Sequence, order_sequences

_logger = logging.getLogger(__name__)

# 1-based, as in the reference binning tool: the first bin of chr1 is [1, 500].
DEFAULT_ORIGIN = 1


@dataclass(frozen=True)
class Bin:
    """One fixed-width bin, half-open `[start, start + width)`."""

    sequence: str
    start: int
    width: int
    global_index: int

    @property
    def end(self) -> int:
        """Exclusive end coordinate."""
        return self.start + self.width


@dataclass(frozen=True, eq=False)
class GenomicBins:
    """Fixed-width bin lattice over an ordered list of sequences.

    Stored columnar: `starts` holds every bin start in global order and
    `offsets[i]:offsets[i + 1]` is the slice of bins belonging to
    `sequences[i]`. The last bin of a sequence may end past its length.
    """

    sequences: tuple[Sequence, ...]
    binsize: int
    starts: np.ndarray
    offsets: np.ndarray
    _index: dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {s.name: i for i, s in enumerate(self.sequences)})
        self.starts.setflags(write=False)
        self.offsets.setflags(write=False)

    @property
    def n_bins(self) -> int:
        return int(self.starts.shape[0])

    @property
    def ends(self) -> np.ndarray:
        return self.starts + self.binsize

    @property
    def sequence_names(self) -> list[str]:
        return [s.name for s in self.sequences]

    def __len__(self) -> int:
        return self.n_bins

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def sequence_slice(self, name: str) -> slice:
        """Global-index slice of the bins on sequence `name`."""
        try:
            i = self._index[name]
        except KeyError:
            raise UnknownSequence(name, "not in bin lattice") from None
        return slice(int(self.offsets[i]), int(self.offsets[i + 1]))

    def bin_index(self, sequence: str, pos: int) -> int:
        """Global index of the bin containing `pos` on `sequence`."""
        sl = self.sequence_slice(sequence)
        first = int(self.starts[sl.start]) if sl.stop > sl.start else 0
        local = (int(pos) - first) // self.binsize
        if sl.stop <= sl.start or local < 0 or sl.start + local >= sl.stop:
            raise IndexError(f"Position {pos} is outside the bins of {sequence!r}")
        return int(sl.start + local)

    def __getitem__(self, i: int) -> Bin:
        n = self.n_bins
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError(f"Bin index {i} out of range for {n} bins")
        seq = int(np.searchsorted(self.offsets, i, side="right")) - 1
        return Bin(
            sequence=self.sequences[seq].name,
            start=int(self.starts[i]),
            width=self.binsize,
            global_index=i,
        )

    def __iter__(self) -> Iterator[Bin]:
        for k, s in enumerate(self.sequences):
            for i in range(int(self.offsets[k]), int(self.offsets[k + 1])):
                yield Bin(sequence=s.name, start=int(self.starts[i]), width=self.binsize, global_index=i)

    def chrom_labels(self) -> np.ndarray:
        counts = np.diff(self.offsets)
        return np.repeat(np.asarray(self.sequence_names, dtype=object), counts)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per bin: chrom, start, end (exclusive), bin (global index)."""
        return pd.DataFrame(
            {
                "chrom": self.chrom_labels(),
                "start": self.starts,
                "end": self.ends,
                "bin": np.arange(self.n_bins, dtype=np.int64),
            }
        )


def _check_bin_width(bin_width: int) -> int:
    if isinstance(bin_width, bool) or not isinstance(bin_width, (int, np.integer)):
        raise InvalidConfig(f"bin_width must be an integer; got {bin_width!r}")
    if bin_width <= 0:
        raise InvalidConfig(f"bin_width must be positive; got {bin_width}")
    return int(bin_width)


def generate_bins(
    reference: ReferenceLike,
    bin_width: int,
    *,
    order: Iterable[str] | None = None,
    origin: int = DEFAULT_ORIGIN,
) -> GenomicBins:
    """Build the bin lattice for `reference`.

    Each sequence is tiled from `origin` in steps of `bin_width` while the bin
    start still lies on the sequence, giving ceil(length / bin_width) bins.
    Bins are not clipped, so the last one may extend past the sequence end.

    Args:
        reference: sequences with lengths (list of Sequence, name -> length
            mapping, or a chrom-sizes DataFrame)
        bin_width: bin size in bp, > 0
        order: sequence names in the order to concatenate; defaults to the
            reference's own order
        origin: first coordinate of every sequence (1 for 1-based)

    Returns:
        GenomicBins, global index ascending across `order`
    """

    width = _check_bin_width(bin_width)
    seqs = order_sequences(reference, order)

    names = [s.name for s in seqs]
    if len(set(names)) != len(names):
        raise InvalidConfig(f"Sequence order contains duplicates: {names}")

    chunks: list[np.ndarray] = []
    offsets = [0]
    for s in seqs:
        if s.length is None:
            raise UnknownSequence(s.name, "no recorded length")
        if s.length < 0:
            raise InvalidConfig(f"Sequence {s.name!r} has negative length {s.length}")
        starts = np.arange(origin, origin + int(s.length), width, dtype=np.int64)
        chunks.append(starts)
        offsets.append(offsets[-1] + starts.shape[0])

    all_starts = np.concatenate(chunks) if chunks else np.empty(0, dtype=np.int64)
    bins = GenomicBins(
        sequences=tuple(seqs),
        binsize=width,
        starts=all_starts,
        offsets=np.asarray(offsets, dtype=np.int64),
    )
    _logger.info("Generated %d bins of %d bp over %d sequences", bins.n_bins, width, len(seqs))
    return bins
