"""CLI argument builder modules.

The top-level :mod:`vuln_bench_cli` is kept thin. Each subcommand registers
its flags through a small builder function housed here:

- :func:`cli.args.score.add_score_args`
- :func:`cli.args.corpus.add_corpus_args`
"""

from __future__ import annotations

__all__ = [
    "score",
    "corpus",
]
