"""pipeline.wiring

This module is the **composition root** for the harness.

"Composition root" means: the single place where we *assemble* a run from its
building blocks:

- load configuration / environment variables
- pick the detector backend (HTTP service vs local process)
- wrap it in the adapter with the configured retry / preprocessing policy

Entry points (CLI, scripts, notebooks) call into here instead of repeating
the setup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tools.detectors import Detector, DetectorAdapter, HttpDetector, SubprocessDetector

from .config import DetectorSettings, HarnessConfig


def build_detector(settings: DetectorSettings, config: HarnessConfig, *, cwd: Optional[Path] = None) -> Detector:
    if settings.url and settings.command:
        raise ValueError("configure either a detector URL or a detector command, not both")
    timeout = config.detector_timeout_seconds
    if settings.url:
        return HttpDetector(
            settings.url,
            endpoint=settings.stages or settings.endpoint,
            use_gpu=settings.use_gpu,
            timeout_seconds=timeout,
        )
    if settings.command:
        return SubprocessDetector(
            settings.command,
            timeout_seconds=timeout,
            cwd=cwd,
            modes=settings.stages,
            use_gpu=settings.use_gpu,
        )
    raise ValueError("no detector configured (set VULN_BENCH_DETECTOR_URL or VULN_BENCH_DETECTOR_CMD)")


def build_adapter(detector: Detector, config: HarnessConfig) -> DetectorAdapter:
    return DetectorAdapter(
        detector,
        retry_attempts=config.retry_attempts,
        backoff_seconds=config.retry_backoff_seconds,
        backoff_max_seconds=config.retry_backoff_max_seconds,
        strip_comments=config.strip_comments,
        drop_blank_lines=config.drop_blank_lines,
        serialize_calls=config.serialize_calls,
    )
