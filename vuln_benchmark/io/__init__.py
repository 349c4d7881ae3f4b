"""vuln_benchmark.io

Filesystem helpers for run artifacts.
"""

from __future__ import annotations

from .fs import read_json, write_csv_atomic, write_json_atomic, write_text_atomic

__all__ = [
    "read_json",
    "write_csv_atomic",
    "write_json_atomic",
    "write_text_atomic",
]
