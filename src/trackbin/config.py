from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .binning import DEFAULT_ORIGIN
from .errors import InvalidConfig

DEFAULT_BIN_WIDTH = 500


@dataclass(frozen=True)
class BinningConfig:
    """Inputs of one binning run.

    `tracks` maps dataset name -> track path; its order is the column order of
    the output table.
    """

    chrom_sizes: Path
    tracks: dict[str, Path] = field(default_factory=dict)
    bin_width: int = DEFAULT_BIN_WIDTH
    sequence_order: tuple[str, ...] | None = None
    canonical_only: bool = True
    origin: int = DEFAULT_ORIGIN
    processes: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.bin_width, bool) or not isinstance(self.bin_width, int) or self.bin_width <= 0:
            raise InvalidConfig(f"bin_width must be a positive integer; got {self.bin_width!r}")
        if not isinstance(self.processes, int) or self.processes < 1:
            raise InvalidConfig(f"processes must be >= 1; got {self.processes!r}")
        if not self.tracks:
            raise InvalidConfig("At least one track is required")

        object.__setattr__(self, "chrom_sizes", Path(self.chrom_sizes))
        object.__setattr__(self, "tracks", {str(k): Path(v) for k, v in self.tracks.items()})
        if self.sequence_order is not None:
            object.__setattr__(self, "sequence_order", tuple(str(s) for s in self.sequence_order))

    @classmethod
    def from_dict(cls, obj: dict[str, Any], *, base_dir: str | Path | None = None) -> BinningConfig:
        """Build a config from a plain dict; relative paths resolve against `base_dir`."""
        known = {"chrom_sizes", "tracks", "bin_width", "sequence_order", "canonical_only", "origin", "processes"}
        unknown = set(obj) - known
        if unknown:
            raise InvalidConfig(f"Unknown config keys: {sorted(unknown)}")
        if "chrom_sizes" not in obj:
            raise InvalidConfig("Config is missing 'chrom_sizes'")

        tracks = obj.get("tracks") or {}
        if not isinstance(tracks, dict):
            raise InvalidConfig("'tracks' must be a mapping of dataset name -> path")

        def _resolve(p: str) -> Path:
            path = Path(p)
            if base_dir is not None and not path.is_absolute():
                path = Path(base_dir) / path
            return path

        kwargs = dict(obj)
        kwargs["chrom_sizes"] = _resolve(obj["chrom_sizes"])
        kwargs["tracks"] = {k: _resolve(v) for k, v in tracks.items()}
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str | Path) -> BinningConfig:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(str(path))
        try:
            obj = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise InvalidConfig(f"Config {path} is not valid JSON: {e}") from e
        if not isinstance(obj, dict):
            raise InvalidConfig(f"Config {path} must be a JSON object")
        return cls.from_dict(obj, base_dir=path.parent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chrom_sizes": str(self.chrom_sizes),
            "tracks": {k: str(v) for k, v in self.tracks.items()},
            "bin_width": int(self.bin_width),
            "sequence_order": list(self.sequence_order) if self.sequence_order is not None else None,
            "canonical_only": bool(self.canonical_only),
            "origin": int(self.origin),
            "processes": int(self.processes),
        }
