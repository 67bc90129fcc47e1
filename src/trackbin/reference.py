from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd

from .errors import UnknownSequence

_logger = logging.getLogger(__name__)

CANONICAL_SEQUENCES = tuple(f"chr{i}" for i in range(1, 23))


@dataclass(frozen=True)
class Sequence:
    """One reference sequence (chromosome) and its length in bp."""

    name: str
    length: int | None


ReferenceLike = Union[Iterable[Sequence], Mapping[str, int], pd.DataFrame]


def as_sequences(reference: ReferenceLike) -> list[Sequence]:
    """Normalize a reference to a list of `Sequence`, keeping its order.

    Accepts a list of `Sequence`, a mapping name -> length, or a DataFrame with
    `name` and `length` columns (as returned by `read_chrom_sizes`).
    """

    if isinstance(reference, pd.DataFrame):
        missing = {"name", "length"} - set(reference.columns)
        if missing:
            raise ValueError(f"Reference table is missing columns: {sorted(missing)}")
        return [
            Sequence(str(n), None if pd.isna(l) else int(l))
            for n, l in zip(reference["name"], reference["length"])
        ]
    if isinstance(reference, Mapping):
        return [Sequence(str(n), None if l is None else int(l)) for n, l in reference.items()]

    out: list[Sequence] = []
    for s in reference:
        if not isinstance(s, Sequence):
            raise TypeError(f"Expected Sequence, got {type(s).__name__}")
        out.append(s)
    return out


def order_sequences(reference: ReferenceLike, order: Iterable[str] | None = None) -> list[Sequence]:
    """Return the sequences in `order` (defaults to the reference's own order)."""
    seqs = as_sequences(reference)
    if order is None:
        return seqs

    by_name = {s.name: s for s in seqs}
    out = []
    for name in order:
        if name not in by_name:
            raise UnknownSequence(name, "not in reference")
        out.append(by_name[name])
    return out


def canonical_sequences(reference: ReferenceLike) -> list[Sequence]:
    """Keep only the autosomes chr1..chr22, in reference order."""
    seqs = [s for s in as_sequences(reference) if s.name in CANONICAL_SEQUENCES]
    _logger.debug("Kept %d canonical sequences", len(seqs))
    return seqs


def read_chrom_sizes(path: str | Path) -> pd.DataFrame:
    """Read a UCSC-style chrom.sizes file (name<TAB>length, no header)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    df = pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=["name", "length"],
        usecols=[0, 1],
        dtype={"name": str, "length": np.int64},
        comment="#",
    )
    if df["name"].duplicated().any():
        dup = df.loc[df["name"].duplicated(), "name"].iloc[0]
        raise ValueError(f"Duplicate sequence {dup!r} in {path}")
    return df
