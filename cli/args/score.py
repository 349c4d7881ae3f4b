from __future__ import annotations

import argparse
from pathlib import Path


def add_score_args(parser: argparse.ArgumentParser) -> None:
    """Flags for ``score``: inputs, detector, outputs, execution knobs.

    Execution knobs default to None so unset flags fall back to the
    ``VULN_BENCH_*`` environment / ``.env`` values.
    """

    # Inputs
    parser.add_argument(
        "--samples",
        type=Path,
        default=None,
        help="Sample catalog (.json, .jsonl, .yaml) or a directory of annotated fragments.",
    )
    parser.add_argument(
        "--corpus-dir",
        type=Path,
        default=None,
        help="Directory of annotated C/C++ fragments (alternative to --samples).",
    )

    # Detector
    det = parser.add_mutually_exclusive_group()
    det.add_argument(
        "--detector-url",
        default=None,
        help="Base URL of an HTTP inference service (default: VULN_BENCH_DETECTOR_URL).",
    )
    det.add_argument(
        "--detector-cmd",
        default=None,
        help="Local detector command; reads a JSON list on stdin (default: VULN_BENCH_DETECTOR_CMD).",
    )
    parser.add_argument(
        "--gpu",
        action="store_true",
        default=None,
        help="Use the GPU: /gpu/ endpoints over HTTP, \"True\" mode argument locally.",
    )
    parser.add_argument(
        "--stages",
        default=None,
        help="Comma-separated inference stages merged into one finding, e.g. predict,cwe,sev "
        "(default: VULN_BENCH_DETECTOR_STAGES).",
    )

    # Outputs
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write report.json and verdicts.csv here (default: print the report JSON).",
    )

    # Execution knobs
    parser.add_argument("--workers", type=int, default=None, help="Parallel detector calls.")
    parser.add_argument(
        "--line-tolerance",
        type=int,
        default=None,
        help="Accept reported lines within +/-N of the ground-truth line (default: exact).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Run-level timeout in seconds; unfinished samples become INCONCLUSIVE.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Abort on the first malformed sample record.",
    )
    parser.add_argument(
        "--expand-fixed",
        action="store_true",
        default=None,
        help="Also score the fixed variant of every sample that has one.",
    )
