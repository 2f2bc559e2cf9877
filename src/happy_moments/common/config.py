from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

CORPUS_STOPWORDS: tuple[str, ...] = (
    "happy",
    "ago",
    "yesterday",
    "lot",
    "today",
    "months",
    "month",
    "happier",
    "happiest",
    "last",
    "week",
    "past",
)


def get_config_paths() -> dict[str, Path]:
    """Return canonical on-disk locations for the corpus and derived tables."""

    project_root = Path(__file__).resolve().parents[3]
    data_dir = project_root / "data"
    output_dir = project_root / "output"

    return {
        "data_dir": data_dir,
        "raw_corpus": data_dir / "cleaned_hm.csv",
        "output_dir": output_dir,
        "processed": output_dir / "processed_moments.csv",
        "cluster_assignments": output_dir / "cluster_assignments.csv",
        "cluster_terms": output_dir / "cluster_terms.csv",
        "topic_terms": output_dir / "topic_terms.csv",
        "doc_topics": output_dir / "doc_topics.csv",
        "term_frequencies": output_dir / "term_frequencies.csv",
        "bigrams": output_dir / "bigrams.csv",
    }


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for every stage; immutable so stages cannot share edits."""

    id_column: str = "hmid"
    text_column: str = "cleaned_hm"
    stemmer: str = "porter"
    tie_break: str = "lexicographic"
    extra_stopwords: tuple[str, ...] = CORPUS_STOPWORDS
    stopword_lexicon: str = "nltk"
    min_doc_fraction: float = 0.01
    max_doc_fraction: float | None = None
    n_clusters: int = 6
    n_init: int = 20
    max_iter: int = 25
    idf_floor: float = 0.0
    n_topics: int = 6
    lda_max_iter: int = 20
    top_n: int = 10
    seed: int = 93
    progress: bool = False


__all__ = ["CORPUS_STOPWORDS", "PipelineConfig", "get_config_paths"]
