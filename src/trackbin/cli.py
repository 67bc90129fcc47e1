from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import DEFAULT_BIN_WIDTH, BinningConfig
from .errors import TrackBinError
from .pipeline import run_pipeline
from .synth import synth_dataset

_logger = logging.getLogger(__name__)


def _parse_track(spec: str) -> tuple[str, str]:
    name, sep, path = spec.partition("=")
    if not sep or not name or not path:
        raise argparse.ArgumentTypeError(f"Expected NAME=PATH; got {spec!r}")
    return name, path


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="trackbin")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    ps = sub.add_parser("synth", help="Write a small synthetic chrom.sizes, bedGraph tracks and config")
    ps.add_argument("--out_dir", type=str, default="data/synthetic")
    ps.add_argument("--n_chroms", type=int, default=3)
    ps.add_argument("--length", type=int, default=50_000)
    ps.add_argument("--n_tracks", type=int, default=2)
    ps.add_argument("--seed", type=int, default=0)

    pr = sub.add_parser("run", help="Bin tracks onto a fixed-width lattice and write average/count tables")
    pr.add_argument("--config", type=str, default=None, help="JSON config; other options override it")
    pr.add_argument("--chrom_sizes", type=str, default=None)
    pr.add_argument(
        "--track",
        type=_parse_track,
        action="append",
        default=None,
        metavar="NAME=PATH",
        help="Named bedGraph/bigWig track; repeat for each dataset",
    )
    pr.add_argument("--bin_width", type=int, default=None)
    pr.add_argument("--sequence_order", type=str, default=None, help="Comma-separated sequence names")
    pr.add_argument("--canonical_only", action=argparse.BooleanOptionalAction, default=None)
    pr.add_argument("--processes", type=int, default=None)
    pr.add_argument("--out_dir", type=str, required=True)

    return p


def _config_from_args(args: argparse.Namespace) -> BinningConfig:
    obj: dict = {}
    base = None
    if args.config is not None:
        base = BinningConfig.from_json(args.config).to_dict()
        obj.update(base)

    if args.chrom_sizes is not None:
        obj["chrom_sizes"] = args.chrom_sizes
    if args.track:
        obj["tracks"] = dict(args.track)
    if args.bin_width is not None:
        obj["bin_width"] = args.bin_width
    elif base is None:
        obj["bin_width"] = DEFAULT_BIN_WIDTH
    if args.sequence_order is not None:
        obj["sequence_order"] = [s for s in args.sequence_order.split(",") if s]
    if args.canonical_only is not None:
        obj["canonical_only"] = args.canonical_only
    if args.processes is not None:
        obj["processes"] = args.processes

    if "chrom_sizes" not in obj:
        raise SystemExit("run: --chrom_sizes or --config is required")
    return BinningConfig.from_dict(obj)


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "synth":
        paths = synth_dataset(
            out_dir=args.out_dir,
            n_chroms=int(args.n_chroms),
            length=int(args.length),
            n_tracks=int(args.n_tracks),
            seed=int(args.seed),
        )
        print("Wrote:")
        for k, v in paths.items():
            print(f"  {k}: {Path(v).as_posix()}")
        return

    if args.cmd == "run":
        config = _config_from_args(args)
        _logger.debug("Config: %s", config.to_dict())
        try:
            out = run_pipeline(config, args.out_dir)
        except TrackBinError as e:
            _logger.error("Binning failed: %s", e)
            raise
        print("Wrote outputs to:", out.out_dir.as_posix())
        print("  average:", out.average_path.as_posix())
        print("  count  :", out.count_path.as_posix())
        return

    raise SystemExit(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    main()
