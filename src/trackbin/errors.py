from __future__ import annotations


class TrackBinError(ValueError):
    """Base class for errors raised by the binning engine."""


class InvalidConfig(TrackBinError):
    """Raised for an unusable configuration, e.g. a non-positive bin width."""


class UnknownSequence(TrackBinError):
    """Raised when a bin or interval names a sequence with no recorded length."""

    def __init__(self, name: str, context: str = "") -> None:
        self.name = name
        msg = f"Unknown sequence {name!r}"
        if context:
            msg = f"{msg} ({context})"
        super().__init__(msg)


class DuplicateDatasetName(TrackBinError):
    """Raised when two input datasets share a name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Dataset name {name!r} appears more than once")


class InvalidInterval(TrackBinError):
    """Raised for a source interval with end <= start."""
