"""Delimited-file helpers: corpus loading and atomic table writes."""
from __future__ import annotations

import csv
import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)

MISSING_MARKERS = frozenset({"", "NA", "N/A", "NaN", "nan", "null", "NULL", "None"})


def _validate_input_file(path: Path, description: str) -> None:
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"{description} '{path}' does not exist or is not a file")


def _atomic_write(path: Path, write_fn: Callable[[NamedTemporaryFile], None], *, newline: str | None = "\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile("w", delete=False, dir=str(path.parent), encoding="utf-8", newline=newline) as tmp:
        write_fn(tmp)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def write_csv(path: Path, header: Sequence[str], rows: Iterable[Sequence[object]]) -> int:
    """Write *rows* under *header* to *path* atomically and return the row count."""

    written = 0

    def writer(tmp: NamedTemporaryFile) -> None:
        nonlocal written
        csv_writer = csv.writer(tmp)
        csv_writer.writerow(list(header))
        for row in rows:
            csv_writer.writerow(["" if value is None else value for value in row])
            written += 1

    _atomic_write(Path(path), writer, newline="")
    logger.debug("Wrote CSV", extra={"path": str(path), "rows": written})
    return written


def write_json(path: Path, payload: dict[str, object]) -> None:
    def writer(tmp: NamedTemporaryFile) -> None:
        json.dump(payload, tmp, indent=2, ensure_ascii=False)
        tmp.write("\n")

    _atomic_write(Path(path), writer)


def _delimiter_for(path: Path) -> str:
    return "\t" if path.suffix.lower() in {".tsv", ".tab"} else ","


def read_table(
    path: Path,
    *,
    required: Sequence[str] = (),
    delimiter: str | None = None,
) -> tuple[list[str], list[dict[str, str]]]:
    """Read a delimited file into (header, rows), checking *required* columns.

    The delimiter defaults to a tab for ``.tsv``/``.tab`` files and a comma
    otherwise.
    """

    path = Path(path)
    _validate_input_file(path, "Input table")
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter or _delimiter_for(path))
        header = list(reader.fieldnames or [])
        missing = [column for column in required if column not in header]
        if missing:
            raise ValueError(f"Input table '{path}' is missing required column(s): {', '.join(missing)}")
        rows = [dict(row) for row in reader]

    logger.info("Loaded table", extra={"path": str(path), "rows": len(rows), "columns": len(header)})
    return header, rows


def clean_cell(value: str | None) -> str | None:
    """Return *value* or ``None`` when the cell holds a missing-value marker."""

    if value is None:
        return None
    if value.strip() in MISSING_MARKERS:
        return None
    return value


__all__ = ["MISSING_MARKERS", "clean_cell", "read_table", "write_csv", "write_json"]
