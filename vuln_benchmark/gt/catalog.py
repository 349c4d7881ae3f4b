"""vuln_benchmark.gt.catalog

Reading raw sample records from disk.

Supported sources
-----------------
* JSON: a list of records, or a mapping with ``samples`` / ``items``
* JSON Lines (``.jsonl``): one record per line
* YAML (``.yaml`` / ``.yml``): same shapes as JSON
* a directory of annotated C/C++ fragments (see :mod:`.annotations`)

These functions only *read*; validation happens in
:meth:`vuln_benchmark.gt.store.SampleStore.load` so every source gets the same
rules and the same error reporting.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from vuln_benchmark.errors import MalformedRecord
from vuln_benchmark.io import read_json, write_text_atomic

from .annotations import has_function_headers, parse_fragment, split_function_headers

logger = logging.getLogger(__name__)

FRAGMENT_EXTS = (".c", ".cc", ".cpp", ".cxx", ".h", ".hh", ".hpp")


def _unwrap(data: Any, path: Path) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("samples", "items", "records"):
            items = data.get(key)
            if isinstance(items, list):
                return items
    raise ValueError(f"{path}: expected a list of records or a mapping with 'samples'")


def _load_yaml(path: Path) -> Any:
    import yaml  # type: ignore

    return yaml.safe_load(path.read_text(encoding="utf-8"))


def _load_jsonl(path: Path) -> List[Any]:
    out: List[Any] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise MalformedRecord(f"{path}:{lineno}: invalid JSON ({e.msg})", position=lineno - 1) from e
    return out


def load_records(path: Path) -> List[Any]:
    """Read raw records from a JSON / JSON Lines / YAML file or a fragment directory."""
    p = Path(path)
    if p.is_dir():
        return records_from_corpus_dir(p)
    if not p.exists():
        raise FileNotFoundError(f"sample file not found: {p}")

    suffix = p.suffix.lower()
    if suffix == ".jsonl":
        return _load_jsonl(p)
    if suffix in {".yaml", ".yml"}:
        return _unwrap(_load_yaml(p), p)
    return _unwrap(read_json(p), p)


def _natural_key(p: Path) -> tuple:
    stem = p.stem
    return (0, int(stem), p.name) if stem.isdigit() else (1, 0, p.name)


def records_from_corpus_dir(
    corpus_dir: Path,
    *,
    extensions: Iterable[str] = FRAGMENT_EXTS,
    max_file_size_bytes: int = 1_000_000,
) -> List[Dict[str, Any]]:
    """Parse every fragment file under *corpus_dir* (non-recursive) into records.

    Files are visited in natural order (``63.cpp`` before ``132.cpp``) so the
    record positions are stable across machines.
    """
    root = Path(corpus_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"corpus directory not found: {root}")

    exts = {e.lower() for e in extensions}
    files = sorted(
        (p for p in root.iterdir() if p.is_file() and p.suffix.lower() in exts),
        key=_natural_key,
    )

    records: List[Dict[str, Any]] = []
    for p in files:
        if p.stat().st_size > max_file_size_bytes:
            logger.warning("skipping oversized fragment %s", p)
            continue
        text = p.read_text(encoding="utf-8", errors="replace")
        if has_function_headers(text):
            records.extend(split_function_headers(text, default_id=p.stem))
        else:
            records.append(parse_fragment(text, default_id=p.stem))

    logger.debug("parsed %d records from %d fragment files in %s", len(records), len(files), root)
    return records


def dump_records(records: Iterable[Dict[str, Any]], out_path: Optional[Path] = None) -> str:
    """Render records as pretty JSON (and write them when *out_path* is given)."""
    text = json.dumps(list(records), indent=2, ensure_ascii=False) + "\n"
    if out_path is not None:
        write_text_atomic(Path(out_path), text)
    return text
