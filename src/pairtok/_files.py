"""Readers and writers for ``vocab.json`` and ``merges.txt`` model files."""

import json
import logging
from pathlib import Path
from typing import Final

from .errors import ModelLoadError, ModelSaveError
from .types import TokenId
from .vocab import MergeTable, Vocabulary

log = logging.getLogger(__name__)

MERGES_HEADER: Final[str] = "#version: 0.2 - Trained by `huggingface/tokenizers`"
VOCAB_FILENAME: Final[str] = "vocab.json"
MERGES_FILENAME: Final[str] = "merges.txt"


def read_vocab(vocab_file: str | Path) -> dict[str, TokenId]:
    """
    Read a JSON vocabulary file mapping token strings to ids.

    :raises ModelLoadError: If the file cannot be read or parsed, or if it
        does not map strings to unique non-negative integers.
    """
    path = Path(vocab_file)
    log.debug(f"reading vocabulary from {path}")

    try:
        with path.open("r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ModelLoadError("cannot read vocabulary file", model_path=str(path)) from e
    except json.JSONDecodeError as e:
        raise ModelLoadError(
            f"invalid vocabulary json: {e.msg}", model_path=str(path), line_number=e.lineno
        ) from e

    if not isinstance(data, dict):
        raise ModelLoadError("vocabulary must be a json object", model_path=str(path))

    seen: dict[TokenId, str] = {}
    for tok, tok_id in data.items():
        # bool is an int subclass but never a valid id
        if not isinstance(tok_id, int) or isinstance(tok_id, bool) or tok_id < 0:
            raise ModelLoadError(
                f"token {tok!r} has invalid id {tok_id!r}", model_path=str(path)
            )
        if tok_id in seen:
            raise ModelLoadError(
                f"id {tok_id} is assigned to both {seen[tok_id]!r} and {tok!r}",
                model_path=str(path),
            )
        seen[tok_id] = tok

    log.debug(f"read {len(data)} vocabulary entries")
    return data


def read_merges(merges_file: str | Path | None) -> list[tuple[str, str]]:
    """
    Read merge rules, one ``"{left} {right}"`` pair per line.

    Blank lines and ``#`` comment lines are skipped. A missing file argument
    yields no rules.

    :raises ModelLoadError: If the file cannot be read or a line does not
        contain exactly one separating space.
    """
    if merges_file is None:
        return []

    path = Path(merges_file)
    log.debug(f"reading merges from {path}")

    rules: list[tuple[str, str]] = []
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.rstrip("\r\n")
                if not line or line.startswith("#"):
                    continue
                left, sep, right = line.partition(" ")
                if not sep or not right or " " in right:
                    raise ModelLoadError(
                        "invalid merges file format",
                        model_path=str(path),
                        line_number=line_number,
                    )
                rules.append((left, right))
    except (OSError, UnicodeDecodeError) as e:
        raise ModelLoadError("cannot read merges file", model_path=str(path)) from e

    log.debug(f"read {len(rules)} merge rules")
    return rules


def write_vocab(path: Path, vocab: Vocabulary) -> None:
    """
    Write ``vocab`` as a compact JSON object in ascending id order.

    :raises ModelSaveError: If a token is not encodable as UTF-8 or the file
        cannot be written.
    """
    ordered = {tok: tok_id for tok_id, tok in vocab.sorted_items()}
    _write_utf8(path, json.dumps(ordered, ensure_ascii=False, separators=(",", ":")))
    log.debug(f"wrote {len(ordered)} vocabulary entries to {path}")


def write_merges(path: Path, vocab: Vocabulary, merges: MergeTable) -> None:
    """
    Write the merges header followed by one rule per line in rank order.

    :raises ModelSaveError: If a token is not encodable as UTF-8 or the file
        cannot be written.
    """
    lines = [MERGES_HEADER]
    for left_id, right_id in merges.ranked_pairs():
        lines.append(f"{vocab.id_to_token(left_id)} {vocab.id_to_token(right_id)}")
    _write_utf8(path, "\n".join(lines) + "\n")
    log.debug(f"wrote {len(merges)} merge rules to {path}")


def _write_utf8(path: Path, text: str) -> None:
    """Encode ``text`` as UTF-8 and write it, leaving ``path`` untouched on encoding errors."""
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        # lone surrogates have no utf-8 form
        bad = e.object[e.start : e.end]
        raise ModelSaveError(
            f"token text {bad!r} cannot be encoded as utf-8", model_path=str(path)
        ) from e
    try:
        path.write_bytes(data)
    except OSError as e:
        raise ModelSaveError("cannot write model file", model_path=str(path)) from e
