"""vuln_benchmark.domain

Domain objects that form the *contract* between pipeline stages.

Key idea
--------
Ground truth lives in immutable :class:`Sample` records. Detectors produce
tool-specific output that the adapter normalizes into :class:`Finding`. The
match engine turns (sample, findings) into a :class:`Verdict`, and the
aggregator folds verdicts into a :class:`Report`.
"""

from __future__ import annotations

from .finding import Finding
from .report import CweCounts, Report
from .sample import FIXED_SUFFIX, LineRef, Sample
from .verdict import (
    CWE_AND_LINE_MATCH,
    CWE_MATCH_LINE_MISS,
    CWE_MISMATCH,
    FALSE_NEGATIVE,
    FALSE_POSITIVE,
    INCONCLUSIVE,
    TRUE_NEGATIVE,
    VERDICT_ROW_FIELDS,
    VERDICT_STATUSES,
    Verdict,
    VerdictStatus,
)

__all__ = [
    "CWE_AND_LINE_MATCH",
    "CWE_MATCH_LINE_MISS",
    "CWE_MISMATCH",
    "CweCounts",
    "FALSE_NEGATIVE",
    "FALSE_POSITIVE",
    "FIXED_SUFFIX",
    "Finding",
    "INCONCLUSIVE",
    "LineRef",
    "Report",
    "Sample",
    "TRUE_NEGATIVE",
    "VERDICT_ROW_FIELDS",
    "VERDICT_STATUSES",
    "Verdict",
    "VerdictStatus",
]
