"""vuln_benchmark.normalize

Pure normalization helpers (no IO).
"""

from __future__ import annotations

from .cwe import NOT_VULNERABLE_TOKENS, all_cwe_ids, cwe_sort_key, is_not_vulnerable, normalize_cwe_id

__all__ = [
    "NOT_VULNERABLE_TOKENS",
    "all_cwe_ids",
    "cwe_sort_key",
    "is_not_vulnerable",
    "normalize_cwe_id",
]
