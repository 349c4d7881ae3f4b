"""tools/detectors/adapter.py

The Detector Adapter: ``Sample -> List[Finding]``.

Responsibilities
----------------
* prepare the text the detector sees (optional comment stripping, optional
  blank-line removal) without touching the Sample itself
* call the detector, retrying :class:`DetectorUnavailable` with exponential
  backoff a bounded number of times
* normalize raw output and map reported lines back onto the original fragment
* serialize calls into detectors that are not safe to call concurrently

Failures after the last retry are re-raised; the runner turns them into
``INCONCLUSIVE`` verdicts.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import nullcontext
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
)

from vuln_benchmark.domain import Finding, Sample
from vuln_benchmark.errors import DetectorUnavailable

from .base import Detector
from .normalize import normalize_detector_output
from . import preprocess
from .preprocess import LineMap

logger = logging.getLogger(__name__)


class DetectorAdapter:
    def __init__(
        self,
        detector: Detector,
        *,
        retry_attempts: int = 3,
        backoff_seconds: float = 1.0,
        backoff_max_seconds: float = 30.0,
        strip_comments: bool = True,
        drop_blank_lines: bool = False,
        serialize_calls: bool = False,
    ) -> None:
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        self.detector = detector
        self.retry_attempts = retry_attempts
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self.strip_comments = strip_comments
        self.drop_blank_lines = drop_blank_lines
        self._lock = threading.Lock() if serialize_calls else None

    @property
    def name(self) -> str:
        return self.detector.name

    def prepare(self, source_text: str) -> Tuple[str, LineMap]:
        """Return (text sent to the detector, map back to original lines)."""
        text = preprocess.strip_comments(source_text) if self.strip_comments else source_text
        if self.drop_blank_lines:
            return preprocess.remove_blank_lines(text)
        return text, LineMap()

    def _call(self, text: str) -> Any:
        with self._lock if self._lock is not None else nullcontext():
            return self.detector.detect(text)

    def _invoke(self, text: str, cancel_event: Optional[threading.Event]) -> Any:
        stop = stop_after_attempt(self.retry_attempts)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
        retrying = Retrying(
            stop=stop,
            wait=wait_exponential(multiplier=self.backoff_seconds, max=self.backoff_max_seconds),
            retry=retry_if_exception_type(DetectorUnavailable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=cancel_event.wait if cancel_event is not None else time.sleep,
        )
        calls = 0

        def _attempt() -> Any:
            nonlocal calls
            # The backoff sleep wakes early on cancellation; no further call then.
            if calls and cancel_event is not None and cancel_event.is_set():
                raise DetectorUnavailable("cancelled while backing off", detector=self.name)
            calls += 1
            return self._call(text)

        try:
            return retrying(_attempt)
        except DetectorUnavailable as e:
            e.attempts = max(calls, 1)
            raise

    def run(self, sample: Sample, *, cancel_event: Optional[threading.Event] = None) -> List[Finding]:
        text, line_map = self.prepare(sample.source_text)

        t0 = time.monotonic()
        raw = self._invoke(text, cancel_event)
        logger.debug("%s: %s took %.3fs", sample.sample_id, self.name, time.monotonic() - t0)

        try:
            findings = normalize_detector_output(raw, detector=self.name)
        except ValueError as e:
            raise DetectorUnavailable(f"unusable output: {e}", detector=self.name) from e

        if line_map.removed:
            findings = [replace(f, line=line_map.to_original(f.line)) for f in findings]
        return findings
