"""vuln_benchmark.domain.sample

Ground-truth sample records.

A :class:`Sample` is one labeled code fragment. Samples are created once by the
sample store and never mutated afterwards; a fixed variant is modeled as a
*separate* sample sharing ``pair_id`` rather than an in-place edit.

Ground-truth lines
------------------
Corpus annotations are sometimes unsure where the defect is ("Not Working
(Should be line 7, repair too complex)"). :class:`LineRef` is a tagged union
of ``known(line)`` / ``unknown`` so callers branch on :attr:`LineRef.is_known`
instead of comparing against a magic number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

UNKNOWN_LINE_TOKENS = frozenset({"", "unknown", "?", "none", "null", "n/a"})

FIXED_SUFFIX = "#fixed"


@dataclass(frozen=True)
class LineRef:
    """A 1-based line number, or the explicit absence of one."""

    _line: Optional[int] = None

    def __post_init__(self) -> None:
        if self._line is None:
            return
        if isinstance(self._line, bool) or not isinstance(self._line, int):
            raise TypeError(f"line must be an int, got {self._line!r}")
        if self._line < 1:
            raise ValueError(f"line numbers are 1-based, got {self._line}")

    @classmethod
    def known(cls, line: int) -> "LineRef":
        return cls(int(line))

    @classmethod
    def unknown(cls) -> "LineRef":
        return cls(None)

    @classmethod
    def parse(cls, value: Any) -> "LineRef":
        """Coerce ints, digit strings and unknown markers into a LineRef.

        Raises ValueError for anything else (negative numbers, free text).
        """
        if isinstance(value, LineRef):
            return value
        if value is None:
            return cls.unknown()
        if isinstance(value, bool):
            raise ValueError(f"invalid line: {value!r}")
        if isinstance(value, int):
            return cls.known(value)
        if isinstance(value, float) and value.is_integer():
            return cls.known(int(value))
        if isinstance(value, str):
            s = value.strip()
            if s.lower() in UNKNOWN_LINE_TOKENS:
                return cls.unknown()
            if s.isdigit():
                return cls.known(int(s))
        raise ValueError(f"invalid line: {value!r}")

    @property
    def is_known(self) -> bool:
        return self._line is not None

    @property
    def line(self) -> int:
        """The known line. Raises ValueError on an unknown LineRef."""
        if self._line is None:
            raise ValueError("ground-truth line is unknown")
        return self._line

    def matches(self, line: Optional[int], *, tolerance: int = 0) -> bool:
        """True if *line* is within *tolerance* of this known line.

        An unknown LineRef never "matches"; callers decide what unknown means.
        """
        if self._line is None or line is None:
            return False
        return abs(int(line) - self._line) <= tolerance

    def to_json(self) -> Any:
        return self._line if self._line is not None else "unknown"

    def __str__(self) -> str:
        return str(self._line) if self._line is not None else "unknown"


@dataclass(frozen=True)
class Sample:
    """One labeled fragment.

    ``ground_truth_cwe`` is a normalized id (``CWE-416``) or None for a
    not-vulnerable fixture.
    """

    sample_id: str
    source_text: str
    ground_truth_cwe: Optional[str]
    ground_truth_line: LineRef = field(default_factory=LineRef.unknown)
    fixed_text: Optional[str] = None
    provenance_row: Optional[str] = None
    pair_id: Optional[str] = None
    notes: Tuple[str, ...] = ()

    @property
    def is_vulnerable(self) -> bool:
        return self.ground_truth_cwe is not None

    @property
    def has_fix(self) -> bool:
        return self.fixed_text is not None

    def fixed_variant(self) -> Optional["Sample"]:
        """Build the not-vulnerable companion sample from ``fixed_text``.

        Returns None for vulnerable-only samples.
        """
        if self.fixed_text is None:
            return None
        pair = self.pair_id or self.sample_id
        return Sample(
            sample_id=f"{self.sample_id}{FIXED_SUFFIX}",
            source_text=self.fixed_text,
            ground_truth_cwe=None,
            ground_truth_line=LineRef.unknown(),
            fixed_text=None,
            provenance_row=self.provenance_row,
            pair_id=pair,
            notes=(f"fixed variant of {self.sample_id}",),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.sample_id,
            "sourceText": self.source_text,
            "groundTruthCwe": self.ground_truth_cwe,
            "groundTruthLine": self.ground_truth_line.to_json(),
        }
        if self.fixed_text is not None:
            out["fixedText"] = self.fixed_text
        if self.provenance_row is not None:
            out["provenanceRow"] = self.provenance_row
        if self.pair_id is not None:
            out["pairId"] = self.pair_id
        if self.notes:
            out["notes"] = list(self.notes)
        return out
