"""vuln_benchmark.normalize.cwe

CWE identifier normalization.

Ground truth and detector output spell CWE ids in many shapes:

* ``"CWE-125"``, ``"cwe_125"``, ``"CWE 125"``
* ``125`` or ``"125"``
* annotated text: ``"CWE-125 (Top-5, Out-of-bounds read)"``

Everything that carries a CWE number is canonicalized to ``CWE-<n>`` (upper
case, no leading zeros), which makes the match engine's comparison a plain
string equality. Identifiers that carry no CWE number (``"NVD-CWE-Other"``)
are kept as opaque upper-cased tokens so comparison stays case-insensitive.
"""

from __future__ import annotations

import re
from typing import Any, FrozenSet, List, Optional, Tuple

_CWE_NUM_RE = re.compile(r"(?i)\bCWE[-_ ]?(\d{1,6})\b")

# Values that mean "the sample/finding is not vulnerable".
NOT_VULNERABLE_TOKENS: FrozenSet[str] = frozenset(
    {
        "",
        "none",
        "null",
        "n/a",
        "na",
        "-",
        "not vulnerable",
        "not_vulnerable",
        "safe",
        "benign",
        "clean",
    }
)


def is_not_vulnerable(value: Any) -> bool:
    """True if *value* spells out "no CWE" (None, empty, "none", ...)."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in NOT_VULNERABLE_TOKENS
    return False


def normalize_cwe_id(value: Any) -> Optional[str]:
    """Normalize *value* into ``CWE-<n>`` (or an opaque upper-case id).

    Returns None for "not vulnerable" tokens. Raises ValueError for values that
    cannot be an identifier at all (bools, non-positive ints, containers).
    """
    if is_not_vulnerable(value):
        return None
    # bool is a subclass of int; never a CWE id.
    if isinstance(value, bool):
        raise ValueError(f"not a CWE identifier: {value!r}")
    if isinstance(value, int):
        if value <= 0:
            raise ValueError(f"not a CWE identifier: {value!r}")
        return f"CWE-{value}"
    if not isinstance(value, str):
        raise ValueError(f"not a CWE identifier: {value!r}")

    s = value.strip()
    m = _CWE_NUM_RE.search(s)
    if m:
        n = int(m.group(1))
        if n <= 0:
            raise ValueError(f"not a CWE identifier: {value!r}")
        return f"CWE-{n}"

    # "cwe:79" or a bare "79"
    s2 = s.lower().replace("cwe:", "").strip()
    if s2.isdigit():
        n = int(s2)
        if n <= 0:
            raise ValueError(f"not a CWE identifier: {value!r}")
        return f"CWE-{n}"

    return s.upper()


def all_cwe_ids(text: str) -> List[str]:
    """Every distinct ``CWE-<n>`` named in *text*, in order of appearance."""
    seen: List[str] = []
    for num in _CWE_NUM_RE.findall(text or ""):
        cwe = f"CWE-{int(num)}"
        if int(num) > 0 and cwe not in seen:
            seen.append(cwe)
    return seen


def cwe_sort_key(cwe: str) -> Tuple[int, int, str]:
    """Sort ``CWE-20`` before ``CWE-125``; opaque ids after numbered ones."""
    m = _CWE_NUM_RE.fullmatch(cwe or "")
    if m:
        return (0, int(m.group(1)), cwe)
    return (1, 0, cwe or "")
