"""vuln_benchmark.gt

Ground-truth (GT) ingestion.

Design rule
-----------
Higher-level layers (CLI, runner, scoring) may import from
``vuln_benchmark.gt``, but ``vuln_benchmark.gt`` must not import from those
layers.
"""

from __future__ import annotations

from .annotations import parse_fragment, split_function_headers, split_trailing_annotations
from .catalog import dump_records, load_records, records_from_corpus_dir
from .records import record_id, sample_from_record
from .store import SampleStore

__all__ = [
    "SampleStore",
    "dump_records",
    "load_records",
    "parse_fragment",
    "record_id",
    "records_from_corpus_dir",
    "sample_from_record",
    "split_function_headers",
    "split_trailing_annotations",
]
