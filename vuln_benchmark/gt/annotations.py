"""vuln_benchmark.gt.annotations

Ground truth from *trailing annotation comments* in corpus fragments.

Corpus fragments are short C/C++ functions followed by a block of ``//``
comments recording where the sample came from and how a reference detector
did on it::

    frag6_print(...)
    {
    ...
    }

    // CWE Detection: Working
    // Line Detection: Not Working (Should be line 9)

    // Orig:
    // ND_TCHECK(dp->ip6f_offlg);
    // To:
    // ND_TCHECK(*dp);

    // BigVul Row No: 2953
    // BigVul ID (big_vul_while.csv): 635
    // CppCheck ID: 63
    // CWE-ID: CWE-125 (Top-5, Out-of-bounds read)

This module turns such a fragment into a raw sample record (the same shape
the JSON catalogs use) so it goes through the normal store validation:

* ``CppCheck ID``  -> ``id``
* ``BigVul Row No`` -> ``provenanceRow``
* ``CWE-ID``       -> ``groundTruthCwe``
* ``Should be line N`` -> ``groundTruthLine`` (else the line of the ``Orig:``
  statement when it occurs exactly once, else ``"unknown"``)
* ``Orig:`` + ``To:``/``Fix:`` -> ``fixedText``
* everything else -> ``notes``

Multi-function demo files that use ``// Function N: Vulnerable with CWE-787``
style headers are split into one record per function.

Parsing is deterministic and never raises; missing pieces are simply left out
of the record so the store reports them.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

_PROVENANCE_RE = re.compile(r"(?i)^BigVul\s+Row\s+No\.?\s*:\s*(\d+)")
_BIGVUL_ID_RE = re.compile(r"(?i)^BigVul\s+ID\b[^:]*:\s*(\d+)")
_SAMPLE_ID_RE = re.compile(r"(?i)^CppCheck\s+ID\s*:\s*(\S+)")
_CWE_RE = re.compile(r"(?i)^CWE-ID\s*:\s*(CWE[-_ ]?\d+)")
_SHOULD_BE_LINE_RE = re.compile(r"(?i)\bshould\s+be\s+line\s+(\d+)")
_ORIG_RE = re.compile(r"(?i)^Orig(?:inal)?\s*:\s*(.*)$")
_FIX_RE = re.compile(r"(?i)^(?:To|Fix)\s*:\s*(.*)$")

_FUNCTION_HEADER_RE = re.compile(r"(?i)^\s*//\s*Function\s+(\d+)\s*:\s*(.*?)\s*$")
_HEADER_CWE_RE = re.compile(r"(?i)\bCWE[-_ ]?\d+\b")
_HEADER_SAFE_RE = re.compile(r"(?i)\bnot\s+vulnerable\b")


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("//")


def _uncomment(line: str) -> str:
    """Drop one leading ``//`` and one following space; keep the rest."""
    s = line.lstrip()
    if s.startswith("//"):
        s = s[2:]
        if s.startswith(" "):
            s = s[1:]
    return s.rstrip()


def split_trailing_annotations(text: str) -> Tuple[List[str], List[str]]:
    """Split *text* into (code lines, trailing annotation lines).

    The annotation block is the maximal run of ``//`` comment lines and blank
    lines at the end of the fragment.
    """
    lines = (text or "").splitlines()
    i = len(lines)
    while i > 0 and (not lines[i - 1].strip() or _is_comment(lines[i - 1])):
        i -= 1
    return lines[:i], lines[i:]


def _find_unique_block(code: Sequence[str], block: Sequence[str]) -> Optional[int]:
    """0-based index where *block* occurs exactly once in *code* (whitespace-insensitive)."""
    want = [b.strip() for b in block if b.strip()]
    if not want:
        return None
    have = [c.strip() for c in code]
    hits = [
        i for i in range(len(have) - len(want) + 1) if have[i : i + len(want)] == want
    ]
    return hits[0] if len(hits) == 1 else None


def _apply_fix(code: Sequence[str], orig: Sequence[str], fix: Sequence[str]) -> Tuple[Optional[str], Optional[int]]:
    """Return (fixed text, 1-based line of the original statement)."""
    at = _find_unique_block(code, orig)
    if at is None:
        return None, None
    n_orig = len([o for o in orig if o.strip()])
    indent = code[at][: len(code[at]) - len(code[at].lstrip())]
    replacement = [indent + f if f.strip() else f for f in fix]
    fixed = list(code[:at]) + replacement + list(code[at + n_orig :])
    return "\n".join(fixed), at + 1


def parse_fragment(text: str, *, default_id: str) -> Dict[str, Any]:
    """Parse one annotated fragment into a raw sample record."""
    code, annotation = split_trailing_annotations(text)

    record: Dict[str, Any] = {"id": default_id, "sourceText": "\n".join(code)}
    notes: List[str] = []
    orig: List[str] = []
    fix: List[str] = []
    explicit_line: Optional[int] = None
    state: Optional[str] = None

    for raw in annotation:
        if not raw.strip():
            state = None
            continue
        body = _uncomment(raw)
        key = body.strip()

        m_orig = _ORIG_RE.match(key)
        m_fix = _FIX_RE.match(key)
        if m_orig:
            state = "orig"
            if m_orig.group(1).strip():
                orig.append(m_orig.group(1))
            continue
        if m_fix and state in {"orig", "fix"}:
            state = "fix"
            if m_fix.group(1).strip():
                fix.append(m_fix.group(1))
            continue

        m = _SAMPLE_ID_RE.match(key)
        if m:
            record["id"] = m.group(1)
            state = None
            continue
        m = _PROVENANCE_RE.match(key)
        if m:
            record["provenanceRow"] = m.group(1)
            state = None
            continue
        m = _BIGVUL_ID_RE.match(key)
        if m:
            notes.append(f"BigVul ID: {m.group(1)}")
            state = None
            continue
        m = _CWE_RE.match(key)
        if m:
            record["groundTruthCwe"] = m.group(1)
            state = None
            continue

        if state == "orig":
            orig.append(body)
            continue
        if state == "fix":
            fix.append(body)
            continue

        m = _SHOULD_BE_LINE_RE.search(key)
        if m and explicit_line is None:
            explicit_line = int(m.group(1))
        notes.append(key)

    fixed_text, orig_line = (None, None)
    if orig and fix:
        fixed_text, orig_line = _apply_fix(code, orig, fix)
    if fixed_text is not None:
        record["fixedText"] = fixed_text

    if explicit_line is not None:
        record["groundTruthLine"] = explicit_line
    elif orig_line is not None:
        record["groundTruthLine"] = orig_line
    else:
        record["groundTruthLine"] = "unknown"

    if notes:
        record["notes"] = notes
    return record


def has_function_headers(text: str) -> bool:
    return any(_FUNCTION_HEADER_RE.match(line) for line in (text or "").splitlines())


def split_function_headers(text: str, *, default_id: str) -> List[Dict[str, Any]]:
    """Split a ``// Function N: ...`` demo file into one record per function."""
    records: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    body: List[str] = []

    def _flush() -> None:
        if current is None:
            return
        while body and not body[-1].strip():
            body.pop()
        current["sourceText"] = "\n".join(body)
        records.append(current)

    for line in (text or "").splitlines():
        m = _FUNCTION_HEADER_RE.match(line)
        if not m:
            if current is not None:
                body.append(line)
            continue

        _flush()
        body = []
        label = m.group(2)
        current = {
            "id": f"{default_id}-fn{m.group(1)}",
            "groundTruthLine": "unknown",
            "notes": [label] if label else [],
        }
        # A "Vulnerable" header without a CWE leaves groundTruthCwe unset so
        # the store reports the record as malformed.
        cwe_m = _HEADER_CWE_RE.search(label)
        if _HEADER_SAFE_RE.search(label):
            current["groundTruthCwe"] = None
        elif cwe_m:
            current["groundTruthCwe"] = cwe_m.group(0)
    _flush()
    return records
