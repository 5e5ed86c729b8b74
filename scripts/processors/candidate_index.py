"""
Candidate index for record correlation.

Buckets the geolocated records of the second dataset by CoordinateKey. The
index is mutable: a matched candidate is consumed so that it can never be
matched again. Removal is stable, so the earliest remaining candidate in a
bucket always wins later ties.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, NamedTuple

from scripts.processors.coordinate_key import CoordinateKey, quantize
from scripts.processors.correlation_models import TimelineRecord
from scripts.processors.time_window import parse_timestamp


class IndexedCandidate(NamedTuple):
    """A dataset B record together with its original position and parsed start time."""

    index: int
    record: TimelineRecord
    started_at: datetime | None


class CandidateIndex:
    """Map from CoordinateKey to the not-yet-consumed dataset B records in that bucket."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("record_correlator")
        self._buckets: dict[CoordinateKey, list[IndexedCandidate]] = {}
        self.indexed_count = 0
        self.skipped_count = 0
        self.consumed_count = 0

    @classmethod
    def build(
        cls,
        records: Iterable[TimelineRecord],
        logger: logging.Logger | None = None,
    ) -> "CandidateIndex":
        """
        Build the index from dataset B.

        Non-geolocated records are skipped entirely.

        Args:
            records: Dataset B records, in original order
            logger: Logger instance for operation tracking

        Returns:
            A freshly built CandidateIndex
        """
        index = cls(logger=logger)
        for position, record in enumerate(records):
            key = quantize(record.latitude, record.longitude)
            if key is None:
                index.skipped_count += 1
                index.logger.debug(
                    f"Dataset B record {position} has no usable coordinates, not indexed"
                )
                continue
            index._buckets.setdefault(key, []).append(
                IndexedCandidate(position, record, parse_timestamp(record.start_time))
            )
            index.indexed_count += 1

        index.logger.debug(
            f"Indexed {index.indexed_count} records into {len(index._buckets)} buckets "
            f"({index.skipped_count} skipped)"
        )
        return index

    def __contains__(self, key: CoordinateKey) -> bool:
        return bool(self._buckets.get(key))

    def __len__(self) -> int:
        """Number of candidates still available for matching."""
        return sum(len(bucket) for bucket in self._buckets.values())

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def candidates_for(self, key: CoordinateKey) -> tuple[IndexedCandidate, ...]:
        """
        Current contents of a bucket, in original insertion order.

        Args:
            key: Bucket key

        Returns:
            Remaining candidates for the key; empty if the key is absent.
            A candidate's position in this tuple is its bucket position.
        """
        return tuple(self._buckets.get(key, ()))

    def consume(self, key: CoordinateKey, position: int) -> IndexedCandidate:
        """
        Remove exactly one candidate from a bucket, preserving the order of the rest.

        Args:
            key: Bucket key
            position: Bucket position as returned by candidates_for

        Returns:
            The removed candidate

        Raises:
            KeyError: If the bucket does not exist
            IndexError: If the position is outside the bucket
        """
        bucket = self._buckets[key]
        if position < 0:
            raise IndexError(f"Bucket position must be non-negative, got {position}")
        candidate = bucket.pop(position)
        if not bucket:
            del self._buckets[key]
        self.consumed_count += 1
        return candidate
