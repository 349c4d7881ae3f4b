from __future__ import annotations

"""pipeline.scoring.aggregate

Fold verdicts into a :class:`~vuln_benchmark.domain.Report`.

Bookkeeping
-----------
==================== =====================================================
status               counted as
==================== =====================================================
CWE_AND_LINE_MATCH   TP (gt CWE); line_scored + line_accurate if line known
CWE_MATCH_LINE_MISS  TP (gt CWE); line_scored
CWE_MISMATCH         FN (gt CWE) and FP (claimed CWE)
FALSE_NEGATIVE       FN (gt CWE)
FALSE_POSITIVE       FP (claimed CWE)
TRUE_NEGATIVE        overall.true_negatives only
INCONCLUSIVE         inconclusive (gt CWE, or overall only when unset)
==================== =====================================================

Counting is commutative, so the result does not depend on verdict order.
"""

from collections import Counter, defaultdict
from typing import DefaultDict, Dict, Iterable, Optional

from vuln_benchmark.domain import (
    CWE_AND_LINE_MATCH,
    CWE_MATCH_LINE_MISS,
    CWE_MISMATCH,
    FALSE_NEGATIVE,
    FALSE_POSITIVE,
    INCONCLUSIVE,
    TRUE_NEGATIVE,
    CweCounts,
    Report,
    Verdict,
)


def _claimed_cwe(v: Verdict) -> Optional[str]:
    f = v.matched_finding
    return f.cwe if f is not None else None


def aggregate(verdicts: Iterable[Verdict]) -> Report:
    per: DefaultDict[str, Counter] = defaultdict(Counter)
    overall: Counter = Counter()

    def _bump(cwe: Optional[str], key: str) -> None:
        overall[key] += 1
        if cwe is not None:
            per[cwe][key] += 1

    for v in verdicts or ():
        gt = v.ground_truth_cwe
        if v.status == CWE_AND_LINE_MATCH:
            _bump(gt, "true_positives")
            if v.line_known:
                _bump(gt, "line_scored_count")
                _bump(gt, "line_accurate_count")
        elif v.status == CWE_MATCH_LINE_MISS:
            _bump(gt, "true_positives")
            _bump(gt, "line_scored_count")
        elif v.status == CWE_MISMATCH:
            _bump(gt, "false_negatives")
            _bump(_claimed_cwe(v), "false_positives")
        elif v.status == FALSE_NEGATIVE:
            _bump(gt, "false_negatives")
        elif v.status == FALSE_POSITIVE:
            _bump(_claimed_cwe(v), "false_positives")
        elif v.status == TRUE_NEGATIVE:
            overall["true_negatives"] += 1
        elif v.status == INCONCLUSIVE:
            _bump(gt, "inconclusive")

    per_cwe: Dict[str, CweCounts] = {cwe: CweCounts(**dict(c)) for cwe, c in per.items()}
    return Report(per_cwe=per_cwe, overall=CweCounts(**dict(overall)))
