"""tools/detectors/preprocess.py

Source clean-up before a fragment is handed to a detector.

Corpus fragments end with annotation comments that spell out the answer
(CWE id, the vulnerable line). Feeding those to a detector would leak ground
truth, so comments can be stripped first. Stripping keeps every newline, so
line numbers reported by the detector still refer to the original fragment.

Some detectors also expect blank lines to be removed. That *does* shift line
numbers; :class:`LineMap` maps them back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

# String/char literals are matched first so "//" inside a literal survives.
_COMMENT_RE = re.compile(
    r"""("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')|(/\*.*?\*/|//[^\n]*)""",
    re.DOTALL,
)


def strip_comments(text: str) -> str:
    """Remove ``/* */`` and ``//`` comments, keeping the line count intact."""

    def _sub(m: "re.Match[str]") -> str:
        if m.group(1) is not None:
            return m.group(1)
        return "\n" * m.group(2).count("\n")

    return _COMMENT_RE.sub(_sub, text or "")


@dataclass(frozen=True)
class LineMap:
    """0-based indices of the lines removed from the original text."""

    removed: Tuple[int, ...] = ()

    def to_original(self, line: Optional[int]) -> Optional[int]:
        """Map a 1-based line of the compacted text back to the original."""
        if line is None:
            return None
        idx = line - 1
        for r in self.removed:
            if r <= idx:
                idx += 1
            else:
                break
        return idx + 1


def remove_blank_lines(text: str) -> Tuple[str, LineMap]:
    kept = []
    removed = []
    for i, line in enumerate((text or "").split("\n")):
        if line.strip():
            kept.append(line)
        else:
            removed.append(i)
    return "\n".join(kept), LineMap(tuple(removed))
