"""End-to-end orchestration: corpus → completed text → clusters and topics.

Every stage keeps one row per input document. Documents that lose all of
their terms stay in every table, marked unassigned instead of dropped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .analysis.dtm import DocumentTermMatrix, build_dtm
from .analysis.frequencies import bigram_counts, term_frequencies
from .analysis.kmeans import KMeansResult, cluster_top_terms, kmeans
from .analysis.tfidf import tfidf
from .analysis.topics import TopicModel, beta_rows, lda, top_terms
from .common.config import PipelineConfig
from .text.completion import complete_corpus
from .text.stopwords import build_stopwords
from .utils.io import clean_cell, read_table, write_csv, write_json
from .utils.text import utcnow_iso

logger = logging.getLogger(__name__)

UNASSIGNED = "unassigned"
DOC_ID_COLUMN = "doc_id"
TEXT_COLUMN = "text"


@dataclass(frozen=True)
class CorpusRecord:
    doc_id: int
    raw_text: str | None
    metadata: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessedDocument:
    doc_id: int
    text: str
    metadata: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessingOutcome:
    documents: list[ProcessedDocument]
    table: dict[str, str]
    input_tokens: int
    output_tokens: int


@dataclass(frozen=True)
class ClusterOutcome:
    dtm: DocumentTermMatrix
    result: KMeansResult
    assignments: dict[int, int | None]
    unassigned: list[int]
    top_terms: list[tuple[int, int, str, float]]


@dataclass(frozen=True)
class TopicOutcome:
    dtm: DocumentTermMatrix
    model: TopicModel
    doc_topic: dict[int, list[float] | None]
    unassigned: list[int]
    top_terms: list[tuple[int, str, float]]


def load_corpus(path: Path, *, id_column: str = "hmid", text_column: str = "cleaned_hm") -> list[CorpusRecord]:
    """Read the raw corpus; document ids are 1-based input row numbers."""

    header, rows = read_table(Path(path), required=(id_column, text_column))
    records: list[CorpusRecord] = []
    for doc_id, row in enumerate(rows, start=1):
        metadata = {column: row.get(column) for column in header}
        records.append(CorpusRecord(doc_id=doc_id, raw_text=clean_cell(row.get(text_column)), metadata=metadata))
    missing_text = sum(1 for record in records if record.raw_text is None)
    if missing_text:
        logger.warning("Rows with missing text treated as empty", extra={"rows": missing_text})
    return records


def load_processed(path: Path) -> list[ProcessedDocument]:
    """Read a table written by :func:`write_processed`."""

    header, rows = read_table(Path(path), required=(DOC_ID_COLUMN, TEXT_COLUMN))
    documents: list[ProcessedDocument] = []
    for row in rows:
        raw_id = row.get(DOC_ID_COLUMN)
        try:
            doc_id = int(raw_id) if raw_id is not None else None
        except ValueError:
            doc_id = None
        if doc_id is None:
            raise ValueError(f"Processed table '{path}' has a row with invalid doc_id {raw_id!r}")
        metadata = {column: row.get(column) for column in header if column not in (DOC_ID_COLUMN, TEXT_COLUMN)}
        documents.append(ProcessedDocument(doc_id=doc_id, text=row.get(TEXT_COLUMN) or "", metadata=metadata))
    return documents


def process_corpus(records: Sequence[CorpusRecord], config: PipelineConfig = PipelineConfig()) -> ProcessingOutcome:
    """Normalize, stem, complete and stopword-filter every record."""

    stopwords = build_stopwords(config.extra_stopwords, lexicon=config.stopword_lexicon)
    completion = complete_corpus(
        [(record.doc_id, record.raw_text) for record in records],
        stopwords,
        stemmer=config.stemmer,
        tie_break=config.tie_break,
        progress=config.progress,
    )

    documents = [
        ProcessedDocument(doc_id=record.doc_id, text=completion.texts[record.doc_id], metadata=dict(record.metadata))
        for record in records
    ]

    input_tokens = sum(completion.input_tokens.values())
    output_tokens = sum(len(document.text.split()) for document in documents)
    logger.info(
        "Processed corpus",
        extra={
            "documents": len(documents),
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "stems": len(completion.table),
        },
    )
    return ProcessingOutcome(
        documents=documents,
        table=completion.table,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


def _build_corpus_dtm(documents: Sequence[ProcessedDocument], config: PipelineConfig) -> DocumentTermMatrix:
    return build_dtm(
        [document.text for document in documents],
        config.min_doc_fraction,
        doc_ids=[document.doc_id for document in documents],
        max_doc_fraction=config.max_doc_fraction,
    )


def cluster_corpus(documents: Sequence[ProcessedDocument], config: PipelineConfig = PipelineConfig()) -> ClusterOutcome:
    """TF-IDF weight the corpus and k-means cluster its non-empty documents."""

    dtm = _build_corpus_dtm(documents, config)
    weights = tfidf(dtm, normalize_rows=True, idf_floor=config.idf_floor)
    keep = [index for index, empty in enumerate(dtm.empty_mask) if not empty]
    if not keep:
        raise ValueError("Every document is empty after vocabulary bounds; nothing to cluster")

    clustered = weights[keep]
    result = kmeans(clustered, config.n_clusters, n_init=config.n_init, max_iter=config.max_iter, seed=config.seed)

    assignments: dict[int, int | None] = {document.doc_id: None for document in documents}
    for index, cluster_id in zip(keep, result.assignment):
        assignments[dtm.doc_ids[index]] = cluster_id
    unassigned = [doc_id for doc_id, cluster_id in assignments.items() if cluster_id is None]
    if unassigned:
        logger.info("Documents left unassigned", extra={"unassigned": len(unassigned)})

    summary_terms = cluster_top_terms(clustered, result.assignment, dtm.terms, n=config.top_n)
    return ClusterOutcome(
        dtm=dtm,
        result=result,
        assignments=assignments,
        unassigned=unassigned,
        top_terms=summary_terms,
    )


def model_topics(documents: Sequence[ProcessedDocument], config: PipelineConfig = PipelineConfig()) -> TopicOutcome:
    """Fit LDA on raw counts; empty documents get no mixture."""

    dtm = _build_corpus_dtm(documents, config)
    model = lda(dtm, config.n_topics, seed=config.seed, max_iter=config.lda_max_iter)

    doc_topic: dict[int, list[float] | None] = {document.doc_id: None for document in documents}
    for doc_id, mixture in zip(model.doc_ids, model.doc_topic):
        doc_topic[doc_id] = [float(value) for value in mixture]
    unassigned = [doc_id for doc_id, mixture in doc_topic.items() if mixture is None]

    return TopicOutcome(
        dtm=dtm,
        model=model,
        doc_topic=doc_topic,
        unassigned=unassigned,
        top_terms=top_terms(model, n=config.top_n),
    )


def write_processed(path: Path, documents: Sequence[ProcessedDocument]) -> int:
    columns: list[str] = []
    for document in documents:
        for column in document.metadata:
            if column not in columns and column not in (DOC_ID_COLUMN, TEXT_COLUMN):
                columns.append(column)
    rows = (
        [document.doc_id, document.text, *(document.metadata.get(column) for column in columns)]
        for document in documents
    )
    return write_csv(Path(path), [DOC_ID_COLUMN, TEXT_COLUMN, *columns], rows)


def write_cluster_outputs(
    out_dir: Path,
    documents: Sequence[ProcessedDocument],
    outcome: ClusterOutcome,
    config: PipelineConfig,
) -> dict[str, object]:
    out_dir = Path(out_dir)
    assignment_rows = (
        [
            document.doc_id,
            document.metadata.get(config.id_column),
            UNASSIGNED if outcome.assignments[document.doc_id] is None else outcome.assignments[document.doc_id],
        ]
        for document in documents
    )
    write_csv(out_dir / "cluster_assignments.csv", [DOC_ID_COLUMN, config.id_column, "cluster"], assignment_rows)
    write_csv(out_dir / "cluster_terms.csv", ["cluster", "rank", "term", "weight"], outcome.top_terms)

    summary: dict[str, object] = {
        "timestamp": utcnow_iso(),
        "documents": len(documents),
        "clustered": len(documents) - len(outcome.unassigned),
        "unassigned": len(outcome.unassigned),
        "terms": outcome.dtm.shape[1],
        "k": config.n_clusters,
        "n_init": config.n_init,
        "max_iter": config.max_iter,
        "seed": config.seed,
        "inertia": round(outcome.result.inertia, 6),
        "n_iter": outcome.result.n_iter,
        "converged": outcome.result.converged,
        "sizes": outcome.result.sizes(),
    }
    write_json(out_dir / "cluster_summary.json", summary)
    return summary


def write_topic_outputs(
    out_dir: Path,
    documents: Sequence[ProcessedDocument],
    outcome: TopicOutcome,
    config: PipelineConfig,
) -> dict[str, object]:
    out_dir = Path(out_dir)
    k = outcome.model.k
    write_csv(out_dir / "topic_terms.csv", ["topic", "term", "beta"], beta_rows(outcome.model))
    write_csv(out_dir / "topic_top_terms.csv", ["topic", "term", "beta"], outcome.top_terms)

    def doc_rows():
        for document in documents:
            mixture = outcome.doc_topic[document.doc_id]
            cells = [None] * k if mixture is None else [round(value, 6) for value in mixture]
            yield [document.doc_id, *cells]

    write_csv(out_dir / "doc_topics.csv", [DOC_ID_COLUMN, *(f"topic_{index}" for index in range(1, k + 1))], doc_rows())

    summary: dict[str, object] = {
        "timestamp": utcnow_iso(),
        "documents": len(documents),
        "fitted": len(outcome.model.doc_ids),
        "unassigned": len(outcome.unassigned),
        "terms": outcome.dtm.shape[1],
        "k": k,
        "seed": config.seed,
        "max_iter": config.lda_max_iter,
    }
    write_json(out_dir / "topic_summary.json", summary)
    return summary


def write_term_tables(out_dir: Path, documents: Sequence[ProcessedDocument], top: int | None = None) -> dict[str, object]:
    out_dir = Path(out_dir)
    texts = [document.text for document in documents]
    terms = term_frequencies(texts, top=top)
    bigrams = bigram_counts(texts, top=top)
    write_csv(out_dir / "term_frequencies.csv", ["term", "count"], terms)
    write_csv(out_dir / "bigrams.csv", ["word1", "word2", "count"], bigrams)
    return {"timestamp": utcnow_iso(), "terms": len(terms), "bigrams": len(bigrams)}


__all__ = [
    "ClusterOutcome",
    "CorpusRecord",
    "ProcessedDocument",
    "ProcessingOutcome",
    "TopicOutcome",
    "UNASSIGNED",
    "cluster_corpus",
    "load_corpus",
    "load_processed",
    "model_topics",
    "process_corpus",
    "write_cluster_outputs",
    "write_processed",
    "write_term_tables",
    "write_topic_outputs",
]
