from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional

from pipeline.config import DetectorSettings, HarnessConfig, parse_stages
from pipeline.runner import RunResult, run_benchmark
from pipeline.wiring import build_adapter, build_detector
from vuln_benchmark.domain import VERDICT_ROW_FIELDS
from vuln_benchmark.errors import MalformedRecord
from vuln_benchmark.gt import SampleStore, load_records, records_from_corpus_dir
from vuln_benchmark.io import write_csv_atomic, write_json_atomic

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 2


def _load_raw(args: argparse.Namespace) -> List[Any]:
    if args.samples is None and args.corpus_dir is None:
        raise SystemExit("score: pass --samples PATH or --corpus-dir DIR")
    raw: List[Any] = []
    if args.samples is not None:
        raw.extend(load_records(args.samples))
    if args.corpus_dir is not None:
        raw.extend(records_from_corpus_dir(args.corpus_dir))
    return raw


def _config_from_args(args: argparse.Namespace) -> HarnessConfig:
    try:
        cfg = HarnessConfig.from_env()
        return cfg.with_overrides(
            max_workers=args.workers,
            line_tolerance=args.line_tolerance,
            run_timeout_seconds=args.timeout,
            strict_load=args.strict,
            expand_fixed=args.expand_fixed,
        )
    except ValueError as e:
        raise SystemExit(f"score: {e}") from e


def _detector_settings(args: argparse.Namespace) -> DetectorSettings:
    settings = DetectorSettings.from_env()
    # A flag for one backend replaces the env choice of the other.
    if args.detector_url:
        settings = replace(settings, url=args.detector_url, command=None)
    if args.detector_cmd:
        settings = replace(settings, command=args.detector_cmd, url=None)
    if args.gpu:
        settings = replace(settings, use_gpu=True)
    if args.stages:
        settings = replace(settings, stages=parse_stages(args.stages))
    return settings


def write_outputs(result: RunResult, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    write_json_atomic(out_dir / "report.json", result.to_dict())
    write_csv_atomic(
        out_dir / "verdicts.csv",
        (v.to_row() for v in result.verdicts),
        fieldnames=VERDICT_ROW_FIELDS,
    )


def run_score(args: argparse.Namespace, *, cfg: Optional[HarnessConfig] = None) -> int:
    cfg = cfg or _config_from_args(args)

    try:
        detector = build_detector(_detector_settings(args), cfg)
    except ValueError as e:
        raise SystemExit(f"score: {e}") from e

    try:
        store = SampleStore.load(_load_raw(args), strict=cfg.strict_load, expand_fixed=cfg.expand_fixed)
    except MalformedRecord as e:
        raise SystemExit(f"score: {e}") from e

    if store.load_errors:
        logger.warning("skipped %d malformed record(s)", len(store.load_errors))

    result = run_benchmark(store, build_adapter(detector, cfg), config=cfg)

    if args.out is not None:
        write_outputs(result, Path(args.out))
        print(f"✅ Wrote {Path(args.out) / 'report.json'} and verdicts.csv")
    else:
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))

    if not result.ok:
        logger.warning("%d sample(s) inconclusive", len(result.failures))
        return EXIT_FAILURES
    return EXIT_OK
