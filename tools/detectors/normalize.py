"""tools/detectors/normalize.py

Detector output -> ``List[Finding]``.

Detectors disagree on shape. Accepted inputs:

* ``None`` or ``[]``: nothing reported
* a list of items
* a mapping wrapping a list under ``findings`` / ``results`` / ``predictions``
* a single finding mapping
* a verdict mapping such as ``{"vulnerable": false}`` (``true`` without a CWE
  becomes an ``UNCLASSIFIED`` report)
* bare CWE strings / ints as items (``["CWE-416"]``)

Per-item key aliases:

* CWE: ``cwe``, ``cwe_id``, ``cweId``, ``cwe_type``
* line: ``line``, ``line_number``, ``lineNumber``, ``start_line``; a
  ``lines`` list fans out into one finding per line
* confidence: ``confidence``, ``score``, ``prob``, ``probability``
* severity: ``severity``, ``sev``, ``severity_score``

Detector order is preserved: the match engine treats it as a ranking.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from vuln_benchmark.domain import Finding

logger = logging.getLogger(__name__)

_WRAPPER_KEYS = ("findings", "results", "predictions", "vulnerabilities")
_CWE_KEYS = ("cwe", "cwe_id", "cweId", "cwe_type")
_LINE_KEYS = ("line", "line_number", "lineNumber", "start_line")
_CONFIDENCE_KEYS = ("confidence", "score", "prob", "probability")
_SEVERITY_KEYS = ("severity", "sev", "severity_score")
_VULNERABLE_KEYS = ("vulnerable", "is_vulnerable", "isVulnerable")

UNCLASSIFIED_CWE = "UNCLASSIFIED"


def _first(d: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def _as_items(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, Mapping):
        for key in _WRAPPER_KEYS:
            if key in raw:
                wrapped = raw[key]
                if wrapped is None:
                    return []
                if not isinstance(wrapped, (list, tuple)):
                    raise ValueError(f"{key!r} must be a list, got {type(wrapped).__name__}")
                return list(wrapped)
        return [raw]
    if isinstance(raw, (str, int)) and not isinstance(raw, bool):
        return [raw]
    raise ValueError(f"unrecognized detector output: {type(raw).__name__}")


def _from_mapping(item: Mapping[str, Any]) -> List[Finding]:
    flag = _first(item, _VULNERABLE_KEYS)
    cwe = _first(item, _CWE_KEYS)
    if flag is False and cwe is None:
        return [Finding(cwe=None, raw=item)]
    if flag is True and cwe is None:
        # Vulnerable, category not given: still a report, never a CWE match.
        cwe = UNCLASSIFIED_CWE

    confidence = _first(item, _CONFIDENCE_KEYS)
    severity = _first(item, _SEVERITY_KEYS)
    lines = item.get("lines")
    if isinstance(lines, (list, tuple)) and lines:
        return [Finding.create(cwe, ln, confidence, severity, raw=item) for ln in lines]
    return [Finding.create(cwe, _first(item, _LINE_KEYS), confidence, severity, raw=item)]


def normalize_detector_output(raw: Any, *, detector: Optional[str] = None) -> List[Finding]:
    """Normalize raw detector output. Raises ValueError on unusable shapes."""
    findings: List[Finding] = []
    for idx, item in enumerate(_as_items(raw)):
        try:
            if isinstance(item, Mapping):
                findings.extend(_from_mapping(item))
            elif isinstance(item, (str, int)) and not isinstance(item, bool):
                findings.append(Finding.create(item))
            else:
                raise ValueError(f"unsupported item type {type(item).__name__}")
        except ValueError as e:
            logger.warning("%s: dropping finding #%d: %s", detector or "detector", idx, e)
    return findings
