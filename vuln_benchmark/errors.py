"""vuln_benchmark.errors

Exception types shared across the harness.

Propagation rules
-----------------
* ``MalformedRecord``: one bad ingestion record. Non-strict loads record it and
  continue; strict loads raise.
* ``InvariantViolation``: corrupt input the harness cannot score safely
  (duplicate ids, multi-label ground truth). Always fatal.
* ``NotFound``: lookup of an unknown sample id.
* ``DetectorUnavailable``: the external detector could not be invoked. Retried by
  the adapter, then isolated to the sample as an ``INCONCLUSIVE`` verdict.
"""

from __future__ import annotations

from typing import Optional


class BenchmarkError(Exception):
    """Base class for harness errors."""


class MalformedRecord(BenchmarkError):
    def __init__(
        self,
        message: str,
        *,
        record_id: Optional[str] = None,
        position: Optional[int] = None,
    ) -> None:
        self.record_id = record_id
        self.position = position
        self.reason = message
        super().__init__(f"{self.context()}: {message}")

    def context(self) -> str:
        if self.record_id:
            return f"record {self.record_id!r}"
        if self.position is not None:
            return f"record #{self.position}"
        return "record"


class InvariantViolation(MalformedRecord):
    """Input that invalidates scoring for the whole run."""


class NotFound(BenchmarkError, KeyError):
    def __init__(self, sample_id: str) -> None:
        self.sample_id = sample_id
        super().__init__(f"unknown sample id: {sample_id!r}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class DetectorUnavailable(BenchmarkError):
    def __init__(self, message: str, *, detector: Optional[str] = None, attempts: int = 1) -> None:
        self.detector = detector
        # Updated by the adapter once retries are exhausted.
        self.attempts = attempts
        prefix = f"{detector}: " if detector else ""
        super().__init__(f"{prefix}{message}")
