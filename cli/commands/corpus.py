from __future__ import annotations

import argparse
import sys

from vuln_benchmark.gt import dump_records, records_from_corpus_dir


def run_corpus(args: argparse.Namespace) -> int:
    try:
        records = records_from_corpus_dir(args.corpus_dir)
    except FileNotFoundError as e:
        raise SystemExit(str(e)) from e

    text = dump_records(records, args.out)
    if args.out is None:
        sys.stdout.write(text)
    else:
        print(f"✅ Wrote {len(records)} record(s) to {args.out}")
    return 0
