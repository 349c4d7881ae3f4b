from __future__ import annotations

import argparse
from pathlib import Path


def add_corpus_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("corpus_dir", type=Path, help="Directory of annotated C/C++ fragments.")
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the JSON sample records here (default: stdout).",
    )
