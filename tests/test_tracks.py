import numpy as np
import pytest

from trackbin.binning import generate_bins
from trackbin.overlap import aggregate_overlaps
from trackbin.reference import Sequence, canonical_sequences, read_chrom_sizes
from trackbin.tracks import load_datasets, read_bedgraph, read_bigwig, read_track


def test_read_bedgraph_missing_values(tmp_path):
    p = tmp_path / "G1.bedgraph"
    p.write_text("# comment\nchr1\t100\t300\t2.0\nchr1\t300\t400\tNA\nchrM\t1\t10\t1.5\n")

    ds = read_bedgraph(p)
    assert ds.name == "G1"
    assert len(ds) == 3
    assert np.isnan(ds.intervals["value"].iloc[1])
    assert ds.intervals["start"].dtype == np.int64


def test_read_bedgraph_rejects_bad_rows(tmp_path):
    p = tmp_path / "bad.tsv"
    p.write_text("chr1\t300\t100\t2.0\n")
    with pytest.raises(ValueError):
        read_bedgraph(p)


def test_read_bedgraph_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_bedgraph(tmp_path / "nope.bedgraph")


def test_load_datasets_keeps_order_and_restricts(tmp_path):
    a = tmp_path / "a.tsv"
    b = tmp_path / "b.tsv"
    a.write_text("chr1\t1\t10\t1\nchrY\t1\t10\t2\n")
    b.write_text("chr2\t1\t10\t3\n")

    datasets = load_datasets({"S2": b, "G1": a}, sequences=["chr1", "chr2"])
    assert [d.name for d in datasets] == ["S2", "G1"]
    assert list(datasets[1].intervals["chrom"]) == ["chr1"]


def test_chrom_sizes_and_canonical_filter(tmp_path):
    p = tmp_path / "hg38.chrom.sizes"
    p.write_text("chr1\t1500\nchrM\t16569\nchr2\t700\nchr22_KI270731v1_random\t150754\n")

    ref = read_chrom_sizes(p)
    assert list(ref["name"]) == ["chr1", "chrM", "chr2", "chr22_KI270731v1_random"]
    assert canonical_sequences(ref) == [Sequence("chr1", 1500), Sequence("chr2", 700)]


def test_read_bedgraph_shifts_to_origin(tmp_path):
    p = tmp_path / "G1.bedgraph"
    p.write_text("chr1\t0\t1\t5.0\nchr1\t500\t501\t7.0\n")

    one_based = read_bedgraph(p)
    assert list(one_based.intervals["start"]) == [1, 501]
    assert list(one_based.intervals["end"]) == [2, 502]

    zero_based = read_bedgraph(p, origin=0)
    assert list(zero_based.intervals["start"]) == [0, 500]


@pytest.mark.parametrize("text", ["", "# only a comment\n"])
def test_read_bedgraph_empty_file(tmp_path, text):
    p = tmp_path / "E.bedgraph"
    p.write_text(text)

    ds = read_bedgraph(p)
    assert ds.name == "E"
    assert len(ds) == 0
    assert list(ds.intervals.columns) == ["chrom", "start", "end", "value"]


def test_read_bigwig(tmp_path):
    pyBigWig = pytest.importorskip("pyBigWig")

    p = tmp_path / "G1.bw"
    bw = pyBigWig.open(str(p), "w")
    bw.addHeader([("chr1", 1500), ("chr2", 700)])
    bw.addEntries(["chr1", "chr1", "chr1"], [0, 500, 600], ends=[1, 501, 700], values=[5.0, 7.0, float("nan")])
    bw.close()

    ds = read_track(p)
    assert ds.name == "G1"
    rows = ds.intervals
    assert set(rows["chrom"]) == {"chr1"}
    assert list(rows["start"][:2]) == [1, 501]
    assert list(rows["value"][:2]) == [5.0, 7.0]
    assert rows["value"][2:].isna().all()

    bins = generate_bins({"chr1": 1500, "chr2": 700}, 500)
    agg = aggregate_overlaps(bins, rows)
    assert list(agg.count) == [1, 1, 0, 0, 0]

    only_chr2 = read_bigwig(p, chroms=["chr2", "chrX"])
    assert len(only_chr2) == 0

    raw = read_bigwig(p, chroms=["chr1"], origin=0)
    assert list(raw.intervals["start"][:2]) == [0, 500]
