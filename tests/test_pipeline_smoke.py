import json
import logging

import pandas as pd
import pytest

from trackbin.cli import main
from trackbin.config import BinningConfig
from trackbin.errors import InvalidConfig, UnknownSequence
from trackbin.pipeline import build_table, run_pipeline
from trackbin.synth import synth_dataset


def test_pipeline_smoke(tmp_path):
    synth_dir = tmp_path / "synth"
    paths = synth_dataset(synth_dir, n_chroms=2, length=5_000, n_tracks=2, seed=0)

    config = BinningConfig.from_json(paths["config"])
    out = run_pipeline(config, tmp_path / "out")

    avg = pd.read_csv(out.average_path, sep="\t")
    cnt = pd.read_csv(out.count_path, sep="\t")
    meta = json.loads(out.meta_path.read_text())

    assert list(avg.columns) == ["chrom", "start", "end", "bin", "T1", "T2"]
    assert avg.shape[0] == cnt.shape[0] == meta["n_bins"]
    assert set(avg["chrom"]) == {"chr1", "chr2"}
    # count == 0 exactly where the average is missing
    for name in ("T1", "T2"):
        assert ((cnt[name] == 0) == avg[name].isna()).all()
    assert (cnt[["T1", "T2"]].to_numpy() > 0).any()


def test_non_canonical_contigs_fail_without_filter(tmp_path):
    sizes = tmp_path / "chrom.sizes"
    sizes.write_text("chr1\t1500\n")
    track = tmp_path / "G1.bedgraph"
    track.write_text("chr1\t100\t300\t2.0\nchrM\t1\t10\t1.0\n")

    table = build_table(BinningConfig(chrom_sizes=sizes, tracks={"G1": track}))
    assert list(table.count["G1"]) == [1, 0, 0]

    with pytest.raises(UnknownSequence):
        build_table(BinningConfig(chrom_sizes=sizes, tracks={"G1": track}, canonical_only=False))


def test_config_validation(tmp_path):
    with pytest.raises(InvalidConfig):
        BinningConfig(chrom_sizes=tmp_path / "x", tracks={"G1": tmp_path / "g"}, bin_width=0)
    with pytest.raises(InvalidConfig):
        BinningConfig(chrom_sizes=tmp_path / "x", tracks={})
    with pytest.raises(InvalidConfig):
        BinningConfig.from_dict({"chrom_sizes": "x", "tracks": {"G1": "g"}, "binwidth": 500})


def test_cli_run(tmp_path, capsys):
    sizes = tmp_path / "chrom.sizes"
    sizes.write_text("chr1\t1500\n")
    track = tmp_path / "G1.bedgraph"
    track.write_text("chr1\t400\t650\t2.0\nchr1\t640\t900\t6.0\n")

    main(
        [
            "run",
            "--chrom_sizes",
            str(sizes),
            "--track",
            f"G1={track}",
            "--bin_width",
            "500",
            "--out_dir",
            str(tmp_path / "out"),
        ]
    )
    assert "Wrote outputs to" in capsys.readouterr().out

    avg = pd.read_csv(tmp_path / "out" / "average.tsv", sep="\t")
    cnt = pd.read_csv(tmp_path / "out" / "count.tsv", sep="\t")
    assert list(cnt["G1"]) == [1, 2, 0]
    assert avg["G1"].iloc[1] == pytest.approx(4.0)
    assert pd.isna(avg["G1"].iloc[2])


def test_bedgraph_boundaries_land_in_one_based_bins(tmp_path):
    sizes = tmp_path / "chrom.sizes"
    sizes.write_text("chr1\t1500\n")
    track = tmp_path / "G1.bedgraph"
    # first base of chr1 and base 501 (first base of bin [501, 1000])
    track.write_text("chr1\t0\t1\t5.0\nchr1\t500\t501\t7.0\n")

    table = build_table(BinningConfig(chrom_sizes=sizes, tracks={"G1": track}))
    assert list(table.count["G1"]) == [1, 1, 0]
    assert table.average["G1"].iloc[0] == 5.0
    assert table.average["G1"].iloc[1] == 7.0

    zero_based = build_table(BinningConfig(chrom_sizes=sizes, tracks={"G1": track}, origin=0))
    assert list(zero_based.bins.starts) == [0, 500, 1000]
    assert list(zero_based.count["G1"]) == [1, 1, 0]


def test_empty_track_gives_zero_counts(tmp_path):
    sizes = tmp_path / "chrom.sizes"
    sizes.write_text("chr1\t1500\n")
    empty = tmp_path / "E.bedgraph"
    empty.write_text("")
    track = tmp_path / "G1.bedgraph"
    track.write_text("chr1\t100\t300\t2.0\n")

    table = build_table(BinningConfig(chrom_sizes=sizes, tracks={"G1": track, "E": empty}))
    assert table.datasets == ["G1", "E"]
    assert list(table.count["E"]) == [0, 0, 0]
    assert table.average["E"].isna().all()


def test_cli_logs_engine_errors(tmp_path, caplog):
    sizes = tmp_path / "chrom.sizes"
    sizes.write_text("chr1\t1500\n")
    track = tmp_path / "G1.bedgraph"
    track.write_text("chrM\t1\t10\t1.0\n")

    with caplog.at_level(logging.ERROR, logger="trackbin.cli"):
        with pytest.raises(UnknownSequence):
            main(
                [
                    "run",
                    "--chrom_sizes",
                    str(sizes),
                    "--track",
                    f"G1={track}",
                    "--no-canonical_only",
                    "--out_dir",
                    str(tmp_path / "out"),
                ]
            )
    assert "Binning failed" in caplog.text
