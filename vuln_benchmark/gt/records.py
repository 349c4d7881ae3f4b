"""vuln_benchmark.gt.records

Coercion of raw ingestion records into :class:`Sample` objects.

Records come from JSON/YAML catalogs or from the corpus annotation parser and
use camelCase keys (``sourceText``, ``groundTruthCwe``...). snake_case
spellings are accepted too so hand-written catalogs don't need to care.

Rules
-----
* ``sourceText`` is required and must be a non-empty string.
* The ``groundTruthCwe`` key is required. An explicit null / ``"none"`` marks
  a not-vulnerable fixture; a missing key is a malformed record.
* Exactly one CWE per sample. A list is accepted only when it holds a single
  distinct id; anything more is an :class:`InvariantViolation`.
* ``groundTruthLine`` may be omitted or ``"unknown"``; when known it must fall
  inside ``sourceText``.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from vuln_benchmark.domain import LineRef, Sample
from vuln_benchmark.errors import InvariantViolation, MalformedRecord
from vuln_benchmark.normalize import all_cwe_ids, normalize_cwe_id

_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "sampleId", "sample_id"),
    "source_text": ("sourceText", "source_text", "source", "code"),
    "fixed_text": ("fixedText", "fixed_text", "fixed"),
    "ground_truth_cwe": ("groundTruthCwe", "ground_truth_cwe", "cwe"),
    "ground_truth_line": ("groundTruthLine", "ground_truth_line", "line"),
    "provenance_row": ("provenanceRow", "provenance_row", "provenance"),
    "pair_id": ("pairId", "pair_id"),
    "notes": ("notes",),
}

_MISSING = object()


def _lookup(record: Mapping[str, Any], key: str) -> Any:
    for alias in _ALIASES[key]:
        if alias in record:
            return record[alias]
    return _MISSING


def _opt_str(v: Any) -> Optional[str]:
    if v is _MISSING or v is None:
        return None
    s = str(v).strip()
    return s or None


def record_id(record: Any, position: int) -> str:
    """Stable id for a record: its own ``id`` or ``record-<position>``."""
    if isinstance(record, Mapping):
        rid = _opt_str(_lookup(record, "id"))
        if rid:
            return rid
    return f"record-{position}"


def _coerce_cwe(value: Any, *, rid: str, position: int) -> Optional[str]:
    values = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]
    ids = set()
    try:
        for v in values:
            # "CWE-125, CWE-787" in one string is still two labels.
            named = all_cwe_ids(v) if isinstance(v, str) else []
            if len(named) > 1:
                ids.update(named)
            else:
                ids.add(normalize_cwe_id(v))
    except ValueError as e:
        raise MalformedRecord(str(e), record_id=rid, position=position) from e
    ids.discard(None)
    if len(ids) > 1:
        raise InvariantViolation(
            f"multi-label ground truth is not supported: {sorted(ids)}",
            record_id=rid,
            position=position,
        )
    return next(iter(ids), None)


def _coerce_notes(value: Any) -> Tuple[str, ...]:
    if value is _MISSING or value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, Sequence):
        return tuple(str(x) for x in value if x is not None and str(x).strip())
    return (str(value),)


def sample_from_record(record: Any, *, position: int) -> Sample:
    """Build a Sample from one raw record (position is 0-based, for errors)."""
    rid = record_id(record, position)
    if not isinstance(record, Mapping):
        raise MalformedRecord(
            f"expected a mapping, got {type(record).__name__}", record_id=None, position=position
        )

    source = _lookup(record, "source_text")
    if source is _MISSING or not isinstance(source, str) or not source.strip():
        raise MalformedRecord("missing sourceText", record_id=rid, position=position)

    raw_cwe = _lookup(record, "ground_truth_cwe")
    if raw_cwe is _MISSING:
        raise MalformedRecord("missing groundTruthCwe", record_id=rid, position=position)
    cwe = _coerce_cwe(raw_cwe, rid=rid, position=position)

    raw_line = _lookup(record, "ground_truth_line")
    try:
        line = LineRef.parse(None if raw_line is _MISSING else raw_line)
    except ValueError as e:
        raise MalformedRecord(str(e), record_id=rid, position=position) from e
    if line.is_known and line.line > len(source.splitlines()):
        raise MalformedRecord(
            f"groundTruthLine {line.line} is outside sourceText "
            f"({len(source.splitlines())} lines)",
            record_id=rid,
            position=position,
        )

    fixed = _lookup(record, "fixed_text")
    if fixed is _MISSING or fixed is None:
        fixed_text = None
    elif isinstance(fixed, str):
        fixed_text = fixed
    else:
        raise MalformedRecord("fixedText must be a string", record_id=rid, position=position)

    return Sample(
        sample_id=rid,
        source_text=source,
        ground_truth_cwe=cwe,
        ground_truth_line=line,
        fixed_text=fixed_text,
        provenance_row=_opt_str(_lookup(record, "provenance_row")),
        pair_id=_opt_str(_lookup(record, "pair_id")),
        notes=_coerce_notes(_lookup(record, "notes")),
    )
