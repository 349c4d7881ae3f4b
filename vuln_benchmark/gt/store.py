"""vuln_benchmark.gt.store

Append-only sample store.

The store is built once per run and is read-only afterwards: there is no
update or delete API, and every :class:`Sample` is frozen. Workers can read it
concurrently without locking.

Loading is best-effort by default: a malformed record is logged, kept in
:attr:`SampleStore.load_errors`, and skipped. ``strict=True`` raises on the
first malformed record instead. Invariant violations (duplicate ids,
multi-label ground truth) are fatal in both modes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from vuln_benchmark.domain import Sample
from vuln_benchmark.errors import InvariantViolation, MalformedRecord, NotFound

from .records import sample_from_record

logger = logging.getLogger(__name__)


class SampleStore:
    def __init__(self, samples: Iterable[Sample] = (), *, load_errors: Iterable[MalformedRecord] = ()) -> None:
        by_id: Dict[str, Sample] = {}
        for s in samples:
            if s.sample_id in by_id:
                raise InvariantViolation("duplicate sample id", record_id=s.sample_id)
            by_id[s.sample_id] = s
        self._by_id = by_id
        self._order: Tuple[str, ...] = tuple(by_id)
        self._load_errors: Tuple[MalformedRecord, ...] = tuple(load_errors)

    @classmethod
    def load(
        cls,
        raw_records: Iterable[Any],
        *,
        strict: bool = False,
        expand_fixed: bool = False,
    ) -> "SampleStore":
        """Build a store from raw records.

        With ``expand_fixed`` every sample that carries a fixed variant also
        contributes a not-vulnerable ``<id>#fixed`` sample sharing ``pair_id``.
        """
        samples: List[Sample] = []
        seen: Dict[str, int] = {}
        errors: List[MalformedRecord] = []

        def _add(sample: Sample, position: int) -> None:
            if sample.sample_id in seen:
                raise InvariantViolation(
                    f"duplicate sample id (first seen at record #{seen[sample.sample_id]})",
                    record_id=sample.sample_id,
                    position=position,
                )
            seen[sample.sample_id] = position
            samples.append(sample)

        for position, record in enumerate(raw_records):
            try:
                sample = sample_from_record(record, position=position)
            except InvariantViolation:
                raise
            except MalformedRecord as e:
                if strict:
                    raise
                logger.warning("skipping malformed %s", e)
                errors.append(e)
                continue

            if expand_fixed and sample.has_fix and sample.pair_id is None:
                sample = _with_pair_id(sample, sample.sample_id)
            _add(sample, position)

            if expand_fixed:
                fixed = sample.fixed_variant()
                if fixed is not None:
                    _add(fixed, position)

        logger.info("loaded %d samples (%d malformed records skipped)", len(samples), len(errors))
        return cls(samples, load_errors=errors)

    def get(self, sample_id: str) -> Sample:
        try:
            return self._by_id[sample_id]
        except KeyError:
            raise NotFound(sample_id) from None

    def all(self) -> Iterator[Sample]:
        """Iterate samples in load order. Each call starts a fresh iterator."""
        return (self._by_id[i] for i in self._order)

    def ids(self) -> Tuple[str, ...]:
        return self._order

    @property
    def load_errors(self) -> Tuple[MalformedRecord, ...]:
        return self._load_errors

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, sample_id: object) -> bool:
        return sample_id in self._by_id

    def __iter__(self) -> Iterator[Sample]:
        return self.all()

    def __repr__(self) -> str:
        return f"SampleStore({len(self)} samples, {len(self._load_errors)} load errors)"


def _with_pair_id(sample: Sample, pair_id: str) -> Sample:
    # Samples are frozen; build the paired copy before it enters the store.
    return replace(sample, pair_id=pair_id)
