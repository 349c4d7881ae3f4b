"""vuln_benchmark.io.fs

Atomic, stable writers for run artifacts.

Reports and verdict tables are written to a temp file in the destination
directory and moved into place with ``os.replace`` so an interrupted run never
leaves a half-written ``report.json`` behind. JSON uses sorted keys and a
trailing newline so artifacts diff cleanly between runs.
"""

from __future__ import annotations

import csv
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TextIO


def _atomic_write(
    path: Path,
    write_fn: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f"{p.name}.", suffix=".tmp", dir=str(p.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline=newline) as f:
            write_fn(f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, p)
    finally:
        # Only left behind when os.replace did not happen.
        tmp_path.unlink(missing_ok=True)


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    _atomic_write(Path(path), lambda f: f.write(text), encoding=encoding)


def write_json_atomic(path: Path, data: Any, *, indent: int = 2, sort_keys: bool = True) -> None:
    """Write JSON atomically with stable formatting."""

    def _write(f: TextIO) -> None:
        json.dump(data, f, indent=indent, sort_keys=sort_keys, ensure_ascii=False)
        f.write("\n")

    _atomic_write(Path(path), _write)


def read_json(path: Path, *, encoding: str = "utf-8") -> Any:
    with Path(path).open("r", encoding=encoding) as f:
        return json.load(f)


def write_csv_atomic(
    path: Path,
    rows: Iterable[Mapping[str, Any]],
    *,
    fieldnames: Optional[Sequence[str]] = None,
) -> None:
    """Write CSV atomically.

    Without *fieldnames* the header follows first-seen key order across rows.
    """
    rows_list = [dict(r) for r in rows]
    if fieldnames is None:
        fields: list[str] = []
        for r in rows_list:
            for k in r:
                if k not in fields:
                    fields.append(k)
        fieldnames = fields
    header = list(fieldnames)

    def _write(f: TextIO) -> None:
        w = csv.DictWriter(f, fieldnames=header)
        w.writeheader()
        for r in rows_list:
            w.writerow({k: r.get(k, "") for k in header})

    # newline="" is what the csv module expects.
    _atomic_write(Path(path), _write, newline="")
