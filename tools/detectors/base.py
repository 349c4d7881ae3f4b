"""tools/detectors/base.py

The detector boundary.

The harness only needs ``source text -> raw output``; everything else about a
detector (model files, GPU flags, HTTP endpoints) stays inside its backend.
Raw output is turned into :class:`~vuln_benchmark.domain.Finding` objects by
:mod:`tools.detectors.normalize`.

A backend may split one prediction over several stages (line, CWE,
severity); :func:`run_stages` merges their answers into one finding mapping.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Dict, Mapping, Sequence


class Detector(abc.ABC):
    """One external detector.

    ``detect`` must raise :class:`~vuln_benchmark.errors.DetectorUnavailable`
    when the detector cannot be reached or invoked.
    """

    name: str = "detector"

    @abc.abstractmethod
    def detect(self, source_text: str) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class CallableDetector(Detector):
    """Wrap an in-process callable (a model already loaded in this process)."""

    def __init__(self, fn: Callable[[str], Any], *, name: str = "callable") -> None:
        self._fn = fn
        self.name = name

    def detect(self, source_text: str) -> Any:
        return self._fn(source_text)


def unwrap_batch(raw: Any) -> Any:
    """Inference services answer one entry per submitted function.

    Backends submit a single function, so a one-element batch is unwrapped.
    """
    if isinstance(raw, list) and len(raw) == 1 and isinstance(raw[0], (list, dict)):
        return raw[0]
    return raw


# Inference services split one prediction over separate models. The answer of
# each stage fills one field of the merged finding.
LINE_STAGES = ("predict", "line")
_STAGE_FIELDS = {
    "predict": "line",
    "line": "line",
    "cwe": "cwe",
    "sev": "severity",
    "severity": "severity",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def says_not_vulnerable(answer: Any) -> bool:
    """True for a line-stage answer that reports nothing."""
    if answer is None or answer is False:
        return True
    if isinstance(answer, (list, tuple)) and not answer:
        return True
    if isinstance(answer, Mapping):
        return answer.get("vulnerable") is False
    return False


def merge_stage_answer(merged: Dict[str, Any], stage: str, answer: Any) -> None:
    """Fold one stage's answer into *merged*; earlier stages keep their keys.

    Raises ValueError when the answer has a shape the stage cannot carry.
    """
    if answer is None:
        return
    if isinstance(answer, Mapping):
        for k, v in answer.items():
            merged.setdefault(k, v)
        return

    field = _STAGE_FIELDS.get(stage, stage)
    if isinstance(answer, bool):
        if field != "line":
            raise ValueError(f"stage {stage!r} answered a bare boolean")
        merged.setdefault("vulnerable", answer)
        return
    if isinstance(answer, (list, tuple)):
        if field == "line":
            if not all(_is_int(v) for v in answer):
                raise ValueError(f"stage {stage!r} answered a list that is not line numbers")
            merged.setdefault("lines", list(answer))
            merged.setdefault("vulnerable", True)
            return
        if answer and all(isinstance(v, (str, int, float)) and not isinstance(v, bool) for v in answer):
            # Ranked answers: the top one wins.
            merged.setdefault(field, answer[0])
            return
        raise ValueError(f"stage {stage!r} answered an unusable list")
    if field == "line" and not _is_int(answer):
        raise ValueError(f"stage {stage!r} answered {type(answer).__name__}, expected a line number")
    merged.setdefault(field, answer)
    if field == "line":
        merged.setdefault("vulnerable", True)


def run_stages(stages: Sequence[str], call: Callable[[str], Any]) -> Any:
    """Call every stage and merge the answers into one finding mapping.

    A single stage returns its answer untouched. When the first stage is a
    line stage that reports nothing, the remaining stages are skipped.
    """
    if len(stages) == 1:
        return call(stages[0])

    merged: Dict[str, Any] = {}
    for idx, stage in enumerate(stages):
        answer = call(stage)
        if idx == 0 and stage in LINE_STAGES and says_not_vulnerable(answer):
            return answer
        merge_stage_answer(merged, stage, answer)
    return merged
