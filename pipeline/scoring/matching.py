from __future__ import annotations

"""pipeline.scoring.matching

Match engine: ``(Sample, [Finding]) -> Verdict``.

Rules
-----
Only *reported* findings take part (``Finding.cwe`` not None). A finding
without a CWE is the detector saying "not vulnerable".

1. vulnerable sample, nothing reported   -> FALSE_NEGATIVE
2. not-vulnerable sample, anything reported -> FALSE_POSITIVE
   not-vulnerable sample, nothing reported  -> TRUE_NEGATIVE
3. a reported CWE equals the ground truth (exact id, no family matching):
   - ground-truth line unknown, or a candidate within tolerance
     -> CWE_AND_LINE_MATCH
   - otherwise -> CWE_MATCH_LINE_MISS
4. no reported CWE equals the ground truth -> CWE_MISMATCH

Among same-CWE candidates the closest line within tolerance wins; ties and
the no-line-match case fall back to detector order.

The engine is pure: same inputs, same verdict.
"""

from typing import Iterable, List, Optional, Sequence

from vuln_benchmark.domain import (
    CWE_AND_LINE_MATCH,
    CWE_MATCH_LINE_MISS,
    CWE_MISMATCH,
    FALSE_NEGATIVE,
    FALSE_POSITIVE,
    INCONCLUSIVE,
    TRUE_NEGATIVE,
    Finding,
    LineRef,
    Sample,
    Verdict,
)


def reported(findings: Iterable[Finding]) -> List[Finding]:
    """Findings that claim a vulnerability, in detector order."""
    return [f for f in findings or () if f.is_report]


def _same_cwe(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return a.strip().upper() == b.strip().upper()


def best_candidate(
    candidates: Sequence[Finding], gt_line: LineRef, *, line_tolerance: int = 0
) -> Optional[Finding]:
    """Pick the candidate whose line is closest to *gt_line* within tolerance.

    Returns None when the ground-truth line is unknown or no candidate falls
    inside the window.
    """
    if not gt_line.is_known:
        return None
    best: Optional[Finding] = None
    best_dist = 0
    for f in candidates:
        if not gt_line.matches(f.line, tolerance=line_tolerance):
            continue
        dist = abs(int(f.line) - gt_line.line)  # type: ignore[arg-type]
        # Strict "<" keeps the earliest finding on equal distance.
        if best is None or dist < best_dist:
            best, best_dist = f, dist
    return best


def match(sample: Sample, findings: Iterable[Finding], *, line_tolerance: int = 0) -> Verdict:
    if line_tolerance < 0:
        raise ValueError("line_tolerance must be >= 0")

    reports = reported(findings)
    gt_cwe = sample.ground_truth_cwe
    gt_line = sample.ground_truth_line

    def _verdict(status: str, finding: Optional[Finding] = None) -> Verdict:
        return Verdict(
            sample_id=sample.sample_id,
            status=status,
            ground_truth_cwe=gt_cwe,
            line_known=gt_line.is_known,
            matched_finding=finding,
            pair_id=sample.pair_id,
        )

    if gt_cwe is None:
        if reports:
            return _verdict(FALSE_POSITIVE, reports[0])
        return _verdict(TRUE_NEGATIVE)

    if not reports:
        return _verdict(FALSE_NEGATIVE)

    candidates = [f for f in reports if _same_cwe(f.cwe, gt_cwe)]
    if not candidates:
        return _verdict(CWE_MISMATCH, reports[0])

    if not gt_line.is_known:
        return _verdict(CWE_AND_LINE_MATCH, candidates[0])

    hit = best_candidate(candidates, gt_line, line_tolerance=line_tolerance)
    if hit is not None:
        return _verdict(CWE_AND_LINE_MATCH, hit)
    return _verdict(CWE_MATCH_LINE_MISS, candidates[0])


def inconclusive(sample: Sample, detail: str) -> Verdict:
    """Verdict for a sample the detector could not answer."""
    return Verdict(
        sample_id=sample.sample_id,
        status=INCONCLUSIVE,
        ground_truth_cwe=sample.ground_truth_cwe,
        line_known=sample.ground_truth_line.is_known,
        pair_id=sample.pair_id,
        detail=detail,
    )
