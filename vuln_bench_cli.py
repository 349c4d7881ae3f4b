#!/usr/bin/env python3
"""
CLI for the vulnerability-detection scoring harness.

Commands:
  1) score  - run a detector over a sample catalog and score its answers
  2) corpus - convert a directory of annotated C/C++ fragments into JSON records

Usage:
  python vuln_bench_cli.py score --samples samples.json --detector-url http://localhost:5000
  python vuln_bench_cli.py score --corpus-dir corpus/ --detector-cmd "python infer.py" --out runs/latest
  python vuln_bench_cli.py corpus corpus/ --out samples.json
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from cli.args.corpus import add_corpus_args
from cli.args.score import add_score_args
from cli.commands.corpus import run_corpus
from cli.commands.score import run_score
from pipeline.config import ENV_PATH, load_env_file


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vuln-bench",
        description="Score a vulnerability detector against labeled C/C++ fragments.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    score = sub.add_parser("score", help="Run a detector over samples and write the report.")
    add_score_args(score)

    corpus = sub.add_parser("corpus", help="Convert annotated fragments into sample records.")
    add_corpus_args(corpus)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    # Always load .env from repo root so terminal runs behave like IDE runs
    load_env_file(ENV_PATH)

    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "score":
        raise SystemExit(run_score(args))
    if args.command == "corpus":
        raise SystemExit(run_corpus(args))


if __name__ == "__main__":
    main()
