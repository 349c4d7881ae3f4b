"""vuln_benchmark

Core package for the vulnerability-detection scoring harness.

This package owns the pieces every other layer agrees on:

* domain types (samples, findings, verdicts, reports)
* ground-truth ingestion (the append-only sample store, corpus annotations)
* small IO helpers (atomic JSON / CSV writers)

Higher layers (``pipeline``, ``tools``, ``cli``) import from here; this package
never imports from them.
"""

from __future__ import annotations

__version__ = "0.1.0"
