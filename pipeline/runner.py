"""pipeline.runner

Run one detector over a sample store and score it.

Concurrency model
-----------------
* one task per sample on a ``ThreadPoolExecutor`` bounded by ``max_workers``
* a task reads one immutable Sample and returns one Verdict; tasks share no
  mutable state (serialization of non-reentrant detectors is the adapter's job)
* the main thread waits with a short poll so a run-level deadline or a
  cancellation event can stop the wait; samples still outstanding then become
  ``INCONCLUSIVE`` with a ``timeout`` / ``cancelled`` failure
* aggregation happens once, after the parallel phase

Detector failures never abort the run: they are isolated into
:attr:`RunResult.failures` and INCONCLUSIVE verdicts.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pipeline.config import HarnessConfig
from pipeline.scoring import aggregate, inconclusive, match
from tools.detectors import DetectorAdapter
from vuln_benchmark.domain import Report, Sample, Verdict
from vuln_benchmark.errors import DetectorUnavailable, MalformedRecord
from vuln_benchmark.gt import SampleStore

logger = logging.getLogger(__name__)

FAILURE_DETECTOR_UNAVAILABLE = "detector_unavailable"
FAILURE_TIMEOUT = "timeout"
FAILURE_CANCELLED = "cancelled"
FAILURE_ERROR = "error"

_POLL_SECONDS = 0.1


@dataclass(frozen=True)
class SampleFailure:
    sample_id: str
    kind: str
    message: str
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sample_id": self.sample_id,
            "kind": self.kind,
            "message": self.message,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class RunResult:
    report: Report
    verdicts: Tuple[Verdict, ...]
    failures: Tuple[SampleFailure, ...] = ()
    cancelled: bool = False
    timed_out: bool = False
    load_errors: Tuple[MalformedRecord, ...] = field(default=(), repr=False)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report": self.report.to_dict(),
            "failures": [f.to_dict() for f in self.failures],
            "cancelled": self.cancelled,
            "timed_out": self.timed_out,
            "load_errors": [str(e) for e in self.load_errors],
            "samples": len(self.verdicts),
        }


def _score_one(
    sample: Sample, adapter: DetectorAdapter, line_tolerance: int, stop: threading.Event
) -> Tuple[Verdict, Optional[SampleFailure]]:
    try:
        findings = adapter.run(sample, cancel_event=stop)
    except DetectorUnavailable as e:
        logger.warning("%s: inconclusive after %d attempt(s): %s", sample.sample_id, e.attempts, e)
        failure = SampleFailure(sample.sample_id, FAILURE_DETECTOR_UNAVAILABLE, str(e), e.attempts)
        return inconclusive(sample, str(e)), failure
    return match(sample, findings, line_tolerance=line_tolerance), None


def run_benchmark(
    store: SampleStore,
    adapter: DetectorAdapter,
    *,
    config: Optional[HarnessConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RunResult:
    cfg = config or HarnessConfig()
    samples: List[Sample] = list(store.all())
    deadline = (time.monotonic() + cfg.run_timeout_seconds) if cfg.run_timeout_seconds else None

    # Internal stop flag: set on cancellation or deadline so in-flight retries give up.
    stop = threading.Event()

    future_to_sample: Dict[Future, Sample] = {}
    verdicts: Dict[str, Verdict] = {}
    failures: Dict[str, SampleFailure] = {}
    cancelled = False
    timed_out = False

    logger.info(
        "scoring %d sample(s) with %s (workers=%d, line_tolerance=%d)",
        len(samples),
        adapter.name,
        cfg.max_workers,
        cfg.line_tolerance,
    )

    def _collect(future: Future) -> None:
        sample = future_to_sample[future]
        try:
            verdict, failure = future.result()
        except Exception as e:
            logger.exception("%s: scoring failed", sample.sample_id)
            verdict = inconclusive(sample, f"{type(e).__name__}: {e}")
            failure = SampleFailure(sample.sample_id, FAILURE_ERROR, str(e))
        verdicts[sample.sample_id] = verdict
        if failure is not None:
            failures[sample.sample_id] = failure

    t0 = time.monotonic()

    executor = ThreadPoolExecutor(max_workers=cfg.max_workers, thread_name_prefix="vuln-bench")
    try:
        future_to_sample.update(
            (executor.submit(_score_one, s, adapter, cfg.line_tolerance, stop), s) for s in samples
        )
        pending = set(future_to_sample)

        while pending:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            timeout = _POLL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    timed_out = True
                    break
                timeout = min(timeout, remaining)

            done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
            for future in done:
                _collect(future)

        # Keep whatever finished while we were deciding to stop.
        for future in pending:
            if future.done() and not future.cancelled():
                _collect(future)
    finally:
        if cancelled or timed_out:
            stop.set()
        executor.shutdown(wait=not (cancelled or timed_out), cancel_futures=True)

    kind = FAILURE_TIMEOUT if timed_out else FAILURE_CANCELLED
    for s in samples:
        if s.sample_id not in verdicts:
            verdicts[s.sample_id] = inconclusive(s, kind)
            failures[s.sample_id] = SampleFailure(s.sample_id, kind, f"run {kind} before sample finished")

    ordered = tuple(verdicts[s.sample_id] for s in samples)
    result = RunResult(
        report=aggregate(ordered),
        verdicts=ordered,
        failures=tuple(failures[s.sample_id] for s in samples if s.sample_id in failures),
        cancelled=cancelled,
        timed_out=timed_out,
        load_errors=store.load_errors,
    )

    overall = result.report.overall
    logger.info(
        "scored %d sample(s) in %.2fs: tp=%d fp=%d fn=%d tn=%d inconclusive=%d failures=%d%s",
        len(ordered),
        time.monotonic() - t0,
        overall.true_positives,
        overall.false_positives,
        overall.false_negatives,
        overall.true_negatives,
        overall.inconclusive,
        len(result.failures),
        " (cancelled)" if cancelled else " (timed out)" if timed_out else "",
    )
    return result
