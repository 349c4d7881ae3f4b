"""vuln_benchmark.domain.report

Aggregate accuracy report for one detector run.

The report stores raw counts only. Derived metrics are computed on demand and
return None (not a ZeroDivisionError) when their denominator is zero:

* precision     = TP / (TP + FP)
* recall        = TP / (TP + FN)
* f1            = harmonic mean of precision and recall
* line_accuracy = line_accurate_count / line_scored_count

``line_scored_count`` is the number of true positives whose ground-truth line
was known. Samples with an uncertain line still count toward recall but are
left out of the line-accuracy denominator.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from vuln_benchmark.normalize import cwe_sort_key


def _ratio(num: int, den: int) -> Optional[float]:
    if den <= 0:
        return None
    return num / den


@dataclass(frozen=True)
class CweCounts:
    true_positives: int = 0
    false_negatives: int = 0
    false_positives: int = 0
    line_accurate_count: int = 0
    line_scored_count: int = 0
    true_negatives: int = 0
    inconclusive: int = 0

    def __add__(self, other: "CweCounts") -> "CweCounts":
        if not isinstance(other, CweCounts):
            return NotImplemented
        return CweCounts(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    @property
    def precision(self) -> Optional[float]:
        return _ratio(self.true_positives, self.true_positives + self.false_positives)

    @property
    def recall(self) -> Optional[float]:
        return _ratio(self.true_positives, self.true_positives + self.false_negatives)

    @property
    def f1(self) -> Optional[float]:
        p = self.precision
        r = self.recall
        if p is None or r is None or (p + r) == 0:
            return None
        return 2 * p * r / (p + r)

    @property
    def line_accuracy(self) -> Optional[float]:
        return _ratio(self.line_accurate_count, self.line_scored_count)

    @property
    def is_zero(self) -> bool:
        return all(getattr(self, f.name) == 0 for f in fields(self))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        out["precision"] = self.precision
        out["recall"] = self.recall
        out["f1"] = self.f1
        out["line_accuracy"] = self.line_accuracy
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CweCounts":
        """Rebuild counts from :meth:`to_dict` output (derived keys ignored)."""
        return cls(**{f.name: int(d.get(f.name) or 0) for f in fields(cls)})


@dataclass(frozen=True)
class Report:
    per_cwe: Mapping[str, CweCounts] = field(default_factory=dict)
    overall: CweCounts = field(default_factory=CweCounts)

    def __post_init__(self) -> None:
        ordered = {k: self.per_cwe[k] for k in sorted(self.per_cwe, key=cwe_sort_key)}
        # frozen dataclass: bypass __setattr__ to install the read-only view.
        object.__setattr__(self, "per_cwe", MappingProxyType(ordered))

    @classmethod
    def empty(cls) -> "Report":
        return cls()

    def cwe(self, cwe_id: str) -> Optional[CweCounts]:
        return self.per_cwe.get(cwe_id)

    @property
    def precision(self) -> Optional[float]:
        return self.overall.precision

    @property
    def recall(self) -> Optional[float]:
        return self.overall.recall

    @property
    def line_accuracy(self) -> Optional[float]:
        return self.overall.line_accuracy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_dict(),
            "per_cwe": {k: v.to_dict() for k, v in self.per_cwe.items()},
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Report":
        per = d.get("per_cwe") or {}
        return cls(
            per_cwe={str(k): CweCounts.from_dict(v) for k, v in per.items()},
            overall=CweCounts.from_dict(d.get("overall") or {}),
        )
