"""vuln_benchmark.domain.verdict

Per-sample match verdicts.

A verdict is created exactly once per (sample, detector run) by the match
engine, or by the runner when the detector could not produce findings. It
carries enough ground-truth context (CWE, whether the line was known) for the
aggregator to fold verdicts without going back to the sample store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Tuple

from .finding import Finding

CWE_AND_LINE_MATCH = "CWE_AND_LINE_MATCH"
CWE_MATCH_LINE_MISS = "CWE_MATCH_LINE_MISS"
CWE_MISMATCH = "CWE_MISMATCH"
FALSE_NEGATIVE = "FALSE_NEGATIVE"
FALSE_POSITIVE = "FALSE_POSITIVE"
TRUE_NEGATIVE = "TRUE_NEGATIVE"
INCONCLUSIVE = "INCONCLUSIVE"

VerdictStatus = Literal[
    "CWE_AND_LINE_MATCH",
    "CWE_MATCH_LINE_MISS",
    "CWE_MISMATCH",
    "FALSE_NEGATIVE",
    "FALSE_POSITIVE",
    "TRUE_NEGATIVE",
    "INCONCLUSIVE",
]

VERDICT_STATUSES: Tuple[str, ...] = (
    CWE_AND_LINE_MATCH,
    CWE_MATCH_LINE_MISS,
    CWE_MISMATCH,
    FALSE_NEGATIVE,
    FALSE_POSITIVE,
    TRUE_NEGATIVE,
    INCONCLUSIVE,
)

# Statuses where the detector named the ground-truth CWE.
DETECTED_STATUSES = frozenset({CWE_AND_LINE_MATCH, CWE_MATCH_LINE_MISS})

VERDICT_ROW_FIELDS: Tuple[str, ...] = (
    "sample_id",
    "status",
    "ground_truth_cwe",
    "line_known",
    "matched_cwe",
    "matched_line",
    "matched_confidence",
    "pair_id",
    "detail",
)


@dataclass(frozen=True)
class Verdict:
    sample_id: str
    status: "VerdictStatus"
    ground_truth_cwe: Optional[str]
    line_known: bool
    matched_finding: Optional[Finding] = None
    pair_id: Optional[str] = None
    detail: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status not in VERDICT_STATUSES:
            raise ValueError(f"unknown verdict status: {self.status!r}")

    @property
    def detected(self) -> bool:
        return self.status in DETECTED_STATUSES

    @property
    def line_accurate(self) -> bool:
        """Counts toward line accuracy: exact hit on a known line."""
        return self.status == CWE_AND_LINE_MATCH and self.line_known

    def to_row(self) -> Dict[str, Any]:
        """Flat row for CSV export."""
        f = self.matched_finding
        return {
            "sample_id": self.sample_id,
            "status": self.status,
            "ground_truth_cwe": self.ground_truth_cwe or "",
            "line_known": self.line_known,
            "matched_cwe": (f.cwe or "") if f else "",
            "matched_line": f.line if f and f.line is not None else "",
            "matched_confidence": f.confidence if f and f.confidence is not None else "",
            "pair_id": self.pair_id or "",
            "detail": self.detail or "",
        }
