"""vuln_benchmark.domain.finding

Canonical representation of one detector finding.

Detectors report results in their own shapes (lists of dicts, nested
``predictions`` blocks, JSON strings...). The detector adapter normalizes all
of them into :class:`Finding` so the match engine never sees vendor quirks.

Only ``cwe`` and ``line`` take part in matching. ``confidence`` and
``severity`` are carried for reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from vuln_benchmark.normalize import normalize_cwe_id


def _safe_int(v: Any) -> Optional[int]:
    if v is None:
        return None
    # bool is a subclass of int; treat as invalid.
    if isinstance(v, bool):
        return None
    if isinstance(v, float):
        return int(v) if v.is_integer() else None
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def _safe_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Finding:
    """Tool-agnostic finding.

    ``cwe`` is None when the detector answered "not vulnerable".
    """

    cwe: Optional[str]
    line: Optional[int] = None
    confidence: Optional[float] = None
    severity: Optional[float] = None

    # Original item as reported by the detector (debugging only).
    raw: Optional[Mapping[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def is_report(self) -> bool:
        """True if this finding claims a vulnerability."""
        return self.cwe is not None

    @classmethod
    def create(
        cls,
        cwe: Any,
        line: Any = None,
        confidence: Any = None,
        severity: Any = None,
        raw: Optional[Mapping[str, Any]] = None,
    ) -> "Finding":
        """Build a Finding from loosely-typed values.

        Lines that are not positive integers are dropped (None) rather than
        rejected: a finding with a usable CWE is still worth matching.
        """
        ln = _safe_int(line)
        if ln is not None and ln < 1:
            ln = None
        return cls(
            cwe=normalize_cwe_id(cwe),
            line=ln,
            confidence=_safe_float(confidence),
            severity=_safe_float(severity),
            raw=raw,
        )

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Finding":
        if not isinstance(d, Mapping):
            raise TypeError(f"Finding.from_dict expected mapping, got {type(d)!r}")
        return cls.create(
            d.get("cwe"),
            d.get("line"),
            d.get("confidence"),
            d.get("severity"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"cwe": self.cwe, "line": self.line}
        if self.confidence is not None:
            out["confidence"] = self.confidence
        if self.severity is not None:
            out["severity"] = self.severity
        return out
