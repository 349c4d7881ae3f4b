"""tools.detectors

Detector backends and the adapter that turns their output into findings.
"""

from __future__ import annotations

from .adapter import DetectorAdapter
from .base import CallableDetector, Detector
from .local import SubprocessDetector
from .normalize import UNCLASSIFIED_CWE, normalize_detector_output
from .remote import HttpDetector

__all__ = [
    "CallableDetector",
    "Detector",
    "DetectorAdapter",
    "HttpDetector",
    "SubprocessDetector",
    "UNCLASSIFIED_CWE",
    "normalize_detector_output",
]
