"""Command line interface for the happy moments analysis pipeline."""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from .common.config import PipelineConfig, get_config_paths
from .pipeline import (
    cluster_corpus,
    load_corpus,
    load_processed,
    model_topics,
    process_corpus,
    write_cluster_outputs,
    write_processed,
    write_term_tables,
    write_topic_outputs,
)
from .text.completion import TIE_BREAKS
from .text.stemming import SUPPORTED_STEMMERS
from .text.stopwords import SUPPORTED_LEXICONS
from .utils.text import set_global_seeds, utcnow_iso

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _config_from_args(args: argparse.Namespace) -> PipelineConfig:
    """Overlay the CLI flags that were given onto the default configuration."""

    overrides: dict[str, object] = {"seed": args.seed, "progress": not args.no_progress}
    for name in (
        "id_column",
        "text_column",
        "stemmer",
        "tie_break",
        "stopword_lexicon",
        "min_doc_fraction",
        "max_doc_fraction",
        "n_init",
        "max_iter",
        "idf_floor",
        "lda_max_iter",
        "top_n",
    ):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if getattr(args, "extra_stopwords", None) is not None:
        overrides["extra_stopwords"] = tuple(args.extra_stopwords)
    if getattr(args, "clusters", None) is not None:
        overrides["n_clusters"] = args.clusters
    if getattr(args, "topics", None) is not None:
        overrides["n_topics"] = args.topics
    return dataclasses.replace(PipelineConfig(), **overrides)


def _run_process(args: argparse.Namespace) -> Path:
    config = _config_from_args(args)
    input_path = Path(args.input)
    output_path = Path(args.output)
    logger.info(
        "Processing corpus",
        extra={"input": str(input_path), "stemmer": config.stemmer, "tie_break": config.tie_break},
    )

    records = load_corpus(input_path, id_column=config.id_column, text_column=config.text_column)
    outcome = process_corpus(records, config)
    rows = write_processed(output_path, outcome.documents)

    empty = sum(1 for document in outcome.documents if not document.text)
    print(
        "[{}] Processed {} moments ({} → {} tokens, {} stems, {} empty) → {}".format(
            utcnow_iso(),
            rows,
            outcome.input_tokens,
            outcome.output_tokens,
            len(outcome.table),
            empty,
            output_path,
        )
    )
    return output_path


def _run_cluster(args: argparse.Namespace) -> dict[str, object]:
    config = _config_from_args(args)
    documents = load_processed(Path(args.input))
    outcome = cluster_corpus(documents, config)
    summary = write_cluster_outputs(Path(args.out_dir), documents, outcome, config)

    print(
        "[{}] Clustered {} moments into {} clusters ({} unassigned, inertia = {:.3f}, converged = {})".format(
            summary["timestamp"],
            summary["clustered"],
            summary["k"],
            summary["unassigned"],
            float(summary["inertia"]),
            summary["converged"],
        )
    )
    _print_term_table("Cluster", [(cluster, term) for cluster, _, term, _ in outcome.top_terms])
    return summary


def _run_topics(args: argparse.Namespace) -> dict[str, object]:
    config = _config_from_args(args)
    documents = load_processed(Path(args.input))
    outcome = model_topics(documents, config)
    summary = write_topic_outputs(Path(args.out_dir), documents, outcome, config)

    print(
        "[{}] Fitted {} topics on {} moments ({} unassigned, {} terms)".format(
            summary["timestamp"],
            summary["k"],
            summary["fitted"],
            summary["unassigned"],
            summary["terms"],
        )
    )
    _print_term_table("Topic", [(topic, term) for topic, term, _ in outcome.top_terms])
    return summary


def _run_terms(args: argparse.Namespace) -> dict[str, object]:
    documents = load_processed(Path(args.input))
    summary = write_term_tables(Path(args.out_dir), documents, top=args.top)
    print(
        "[{}] Wrote {} term and {} bigram counts".format(
            summary["timestamp"], summary["terms"], summary["bigrams"]
        )
    )
    return summary


def _run_all(args: argparse.Namespace) -> None:
    out_dir = Path(args.out_dir)
    args.output = str(out_dir / "processed_moments.csv")
    processed = _run_process(args)

    args.input = str(processed)
    _run_terms(args)
    _run_cluster(args)
    _run_topics(args)


def _print_term_table(label: str, rows: list[tuple[int, str]]) -> None:
    if not rows:
        print("No terms to display.")
        return
    grouped: dict[int, list[str]] = {}
    for group, term in rows:
        grouped.setdefault(group, []).append(term)

    header = f"{label:>7} | Top Terms"
    divider = "-" * 60
    print(divider)
    print(header)
    print(divider)
    for group in sorted(grouped):
        print(f"{group:>7} | {', '.join(grouped[group])}")


def _add_process_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--id-column", help="Identifier column carried through to every output")
    parser.add_argument("--text-column", help="Column holding the raw narrative text")
    parser.add_argument("--stemmer", choices=list(SUPPORTED_STEMMERS), help="Stemming algorithm")
    parser.add_argument("--tie-break", choices=list(TIE_BREAKS), help="Representative word tie break")
    parser.add_argument("--stopword-lexicon", choices=list(SUPPORTED_LEXICONS), help="Base stopword lexicon")
    parser.add_argument(
        "--extra-stopwords",
        nargs="*",
        metavar="WORD",
        help="Corpus-specific stopwords (replaces the built-in addendum)",
    )


def _add_vocabulary_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--min-doc-fraction", type=float, help="Minimum share of documents a term must appear in")
    parser.add_argument("--max-doc-fraction", type=float, help="Maximum share of documents a term may appear in")
    parser.add_argument("--top-n", type=int, help="Terms listed per cluster or topic")


def _add_cluster_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--clusters", type=int, help="Number of k-means clusters")
    parser.add_argument("--n-init", type=int, help="k-means random restarts")
    parser.add_argument("--max-iter", type=int, help="k-means iteration cap per restart")
    parser.add_argument("--idf-floor", type=float, help="Lower bound applied to IDF weights")


def _add_topic_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--topics", type=int, help="Number of LDA topics")
    parser.add_argument("--lda-max-iter", type=int, help="LDA variational iterations")


def _build_parser() -> argparse.ArgumentParser:
    paths = get_config_paths()
    parser = argparse.ArgumentParser(
        prog="happy-moments",
        description="Happy moments text analysis CLI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--seed", type=int, default=PipelineConfig.seed, help="Global seed")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")

    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser("process", help="Normalize, stem and complete the raw corpus")
    process_parser.add_argument("--input", default=str(paths["raw_corpus"]), help="Raw corpus CSV")
    process_parser.add_argument("--output", default=str(paths["processed"]), help="Processed corpus CSV")
    _add_process_arguments(process_parser)
    process_parser.set_defaults(handler=_run_process)

    cluster_parser = subparsers.add_parser("cluster", help="k-means over TF-IDF vectors")
    cluster_parser.add_argument("--input", default=str(paths["processed"]), help="Processed corpus CSV")
    cluster_parser.add_argument("--out-dir", default=str(paths["output_dir"]), help="Output directory")
    cluster_parser.add_argument("--id-column", help="Identifier column carried into the assignment table")
    _add_vocabulary_arguments(cluster_parser)
    _add_cluster_arguments(cluster_parser)
    cluster_parser.set_defaults(handler=_run_cluster)

    topics_parser = subparsers.add_parser("topics", help="LDA topic model over raw term counts")
    topics_parser.add_argument("--input", default=str(paths["processed"]), help="Processed corpus CSV")
    topics_parser.add_argument("--out-dir", default=str(paths["output_dir"]), help="Output directory")
    _add_vocabulary_arguments(topics_parser)
    _add_topic_arguments(topics_parser)
    topics_parser.set_defaults(handler=_run_topics)

    terms_parser = subparsers.add_parser("terms", help="Term frequency and bigram tables")
    terms_parser.add_argument("--input", default=str(paths["processed"]), help="Processed corpus CSV")
    terms_parser.add_argument("--out-dir", default=str(paths["output_dir"]), help="Output directory")
    terms_parser.add_argument("--top", type=int, default=None, help="Keep only the most frequent rows")
    terms_parser.set_defaults(handler=_run_terms)

    run_parser = subparsers.add_parser("run", help="Process, count, cluster and model topics in sequence")
    run_parser.add_argument("--input", default=str(paths["raw_corpus"]), help="Raw corpus CSV")
    run_parser.add_argument("--out-dir", default=str(paths["output_dir"]), help="Output directory")
    run_parser.add_argument("--top", type=int, default=None, help="Keep only the most frequent term rows")
    _add_process_arguments(run_parser)
    _add_vocabulary_arguments(run_parser)
    _add_cluster_arguments(run_parser)
    _add_topic_arguments(run_parser)
    run_parser.set_defaults(handler=_run_all)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - delegated to argparse
        return exc.code

    _configure_logging(args.verbose)
    set_global_seeds(args.seed)

    try:
        args.handler(args)
    except (FileNotFoundError, OSError, ValueError) as error:
        logger.error(f"Command failed. Reason: {str(error)}", exc_info=False, extra={"error": str(error)})
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
