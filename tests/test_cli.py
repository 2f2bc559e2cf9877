from __future__ import annotations

import csv
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from happy_moments import cli

COMMON_FLAGS = [
    "--stopword-lexicon",
    "none",
    "--extra-stopwords",
    "i",
    "my",
    "me",
    "a",
    "--min-doc-fraction",
    "0",
]


def _write_corpus(path: Path) -> Path:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["hmid", "cleaned_hm"])
        writer.writerow(["1", "I love my dog"])
        writer.writerow(["2", "My dog loves me"])
        writer.writerow(["3", "I bought a new car"])
        writer.writerow(["4", "me"])
    return path


def test_run_writes_every_table(tmp_path, capsys):
    raw = _write_corpus(tmp_path / "hm.csv")
    out_dir = tmp_path / "out"

    code = cli.main(
        ["--no-progress", "--seed", "3", "run", "--input", str(raw), "--out-dir", str(out_dir)]
        + COMMON_FLAGS
        + ["--clusters", "2", "--topics", "2"]
    )

    assert code == 0
    for name in (
        "processed_moments.csv",
        "cluster_assignments.csv",
        "cluster_terms.csv",
        "cluster_summary.json",
        "topic_terms.csv",
        "topic_top_terms.csv",
        "doc_topics.csv",
        "topic_summary.json",
        "term_frequencies.csv",
        "bigrams.csv",
    ):
        assert (out_dir / name).exists(), name

    summary = json.loads((out_dir / "cluster_summary.json").read_text(encoding="utf-8"))
    assert summary["unassigned"] == 1
    assert summary["seed"] == 3

    output = capsys.readouterr().out
    assert "Processed 4 moments" in output
    assert "Clustered 3 moments into 2 clusters" in output


def test_process_then_cluster_subcommands(tmp_path):
    raw = _write_corpus(tmp_path / "hm.csv")
    processed = tmp_path / "processed.csv"

    assert cli.main(["--no-progress", "process", "--input", str(raw), "--output", str(processed)] + COMMON_FLAGS[:7]) == 0
    assert cli.main(
        [
            "cluster",
            "--input",
            str(processed),
            "--out-dir",
            str(tmp_path),
            "--clusters",
            "2",
            "--min-doc-fraction",
            "0",
        ]
    ) == 0

    with (tmp_path / "cluster_assignments.csv").open(encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["cluster"] for row in rows] == ["1", "1", "2", "unassigned"]


def test_missing_input_returns_error_code(tmp_path):
    code = cli.main(["process", "--input", str(tmp_path / "absent.csv"), "--output", str(tmp_path / "out.csv")])

    assert code == 2


def test_empty_vocabulary_returns_error_code(tmp_path):
    raw = _write_corpus(tmp_path / "hm.csv")
    processed = tmp_path / "processed.csv"
    cli.main(["--no-progress", "process", "--input", str(raw), "--output", str(processed)] + COMMON_FLAGS[:7])

    code = cli.main(["topics", "--input", str(processed), "--out-dir", str(tmp_path), "--min-doc-fraction", "1"])

    assert code == 2


def test_config_from_args_overrides_only_given_flags():
    parser = cli._build_parser()
    args = parser.parse_args(["cluster", "--clusters", "4", "--idf-floor", "0.5"])
    config = cli._config_from_args(args)

    assert config.n_clusters == 4
    assert config.idf_floor == 0.5
    assert config.n_topics == 6
    assert config.min_doc_fraction == 0.01
    assert args.handler == cli._run_cluster
