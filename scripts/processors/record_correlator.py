#!/usr/bin/env python3
"""
Record Correlation System

This module correlates two independently produced tables of time-stamped
location records and finds pairs that describe the same real-world event.
Two records match when their coordinates fall into the same 3-decimal-degree
bucket and their start times are at most the configured window apart
(30 minutes by default).

Matching is greedy and single-pass: dataset A is scanned in order, each A
record takes the first remaining B candidate in its bucket that fits the
time window, and that candidate is consumed so it can never match again.

Usage:
    python scripts/processors/record_correlator.py --file-a timeline1.csv --file-b timeline2.csv
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Sequence, TypedDict

from dotenv import load_dotenv

# Load .env before local imports that need env vars
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "..", ".env"))

sys.path.append(os.path.join(os.path.dirname(__file__), "..", ".."))

from config.settings import config, validate_window_minutes
from scripts.collectors.timeline_extractor import load_records_csv
from scripts.processors.candidate_index import CandidateIndex
from scripts.processors.coordinate_key import quantize
from scripts.processors.correlation_models import Match, MatchReport, TimelineRecord
from scripts.processors.match_report_writer import (
    save_report_csv,
    save_report_json,
    save_report_simple_json,
)
from scripts.processors.time_window import minutes_between, parse_timestamp
from utils.logging import setup_correlator_logging

PROGRESS_LOG_INTERVAL = 10000


class CorrelationStatsDict(TypedDict):
    """Statistics for a correlation run."""

    total_records_a: int
    total_records_b: int
    skipped_not_geolocated_a: int
    skipped_not_geolocated_b: int
    no_bucket: int
    no_time_match: int
    matched: int
    avg_time_difference_minutes: float
    processing_time: float


class RecordCorrelator:
    """Correlate two record datasets by coordinate bucket and time window."""

    def __init__(
        self,
        window_minutes: float | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the correlator.

        Args:
            window_minutes (float | None): Maximum start time difference in minutes.
                If None, uses config.CORRELATION_WINDOW_MINUTES
            logger (logging.Logger): Logger instance for operation tracking

        Raises:
            CorrelationConfigError: If the window is negative or not finite
        """
        self.logger = logger or logging.getLogger("record_correlator")
        if window_minutes is None:
            window_minutes = config.CORRELATION_WINDOW_MINUTES
        self.window_minutes = validate_window_minutes(window_minutes)
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> CorrelationStatsDict:
        return {
            "total_records_a": 0,
            "total_records_b": 0,
            "skipped_not_geolocated_a": 0,
            "skipped_not_geolocated_b": 0,
            "no_bucket": 0,
            "no_time_match": 0,
            "matched": 0,
            "avg_time_difference_minutes": 0.0,
            "processing_time": 0.0,
        }

    def _match_record(
        self, index_a: int, record_a: TimelineRecord, candidates: CandidateIndex
    ) -> Match | None:
        """
        Find and consume the first time-compatible candidate for one A record.

        Args:
            index_a: Position of the record in dataset A
            record_a: The dataset A record
            candidates: Index of remaining dataset B records

        Returns:
            The produced Match, or None if the record does not match
        """
        key = quantize(record_a.latitude, record_a.longitude)
        if key is None:
            self.stats["skipped_not_geolocated_a"] += 1
            self.logger.debug(f"Dataset A record {index_a} has no usable coordinates")
            return None

        if key not in candidates:
            self.stats["no_bucket"] += 1
            return None

        started_at = parse_timestamp(record_a.start_time)
        if started_at is None:
            self.stats["no_time_match"] += 1
            self.logger.debug(
                f"Dataset A record {index_a} has unparsable start time '{record_a.start_time}'"
            )
            return None

        for position, candidate in enumerate(candidates.candidates_for(key)):
            if candidate.started_at is None:
                continue
            difference = minutes_between(started_at, candidate.started_at)
            if difference > self.window_minutes:
                continue

            candidates.consume(key, position)
            return Match(
                index_a=index_a,
                index_b=candidate.index,
                record_a=record_a,
                record_b=candidate.record,
                common_coordinates=key,
                time_difference_minutes=difference,
            )

        self.stats["no_time_match"] += 1
        return None

    def correlate(
        self,
        records_a: Sequence[TimelineRecord],
        records_b: Sequence[TimelineRecord],
        source_descriptors: dict[str, Any] | None = None,
    ) -> MatchReport:
        """
        Correlate dataset A against dataset B.

        Args:
            records_a: Dataset A records, in original order
            records_b: Dataset B records, in original order
            source_descriptors: Opaque labels for the two datasets, passed through

        Returns:
            MatchReport with matches in ascending dataset A order
        """
        start_time = datetime.now()
        self.stats = self._empty_stats()
        self.stats["total_records_a"] = len(records_a)
        self.stats["total_records_b"] = len(records_b)

        self.logger.info(
            f"Correlating {len(records_a)} records against {len(records_b)} records "
            f"(window: {self.window_minutes:g} minutes)"
        )

        candidates = CandidateIndex.build(records_b, logger=self.logger)
        self.stats["skipped_not_geolocated_b"] = candidates.skipped_count

        matches: list[Match] = []
        for index_a, record_a in enumerate(records_a):
            match = self._match_record(index_a, record_a, candidates)
            if match is not None:
                matches.append(match)

            if (index_a + 1) % PROGRESS_LOG_INTERVAL == 0:
                self.logger.info(
                    f"Processed {index_a + 1}/{len(records_a)} records, "
                    f"{len(matches)} matches so far..."
                )

        self.stats["matched"] = len(matches)
        self.stats["avg_time_difference_minutes"] = (
            sum(m.time_difference_minutes for m in matches) / len(matches)
            if matches
            else 0.0
        )
        self.stats["processing_time"] = (datetime.now() - start_time).total_seconds()
        self._print_summary()

        return MatchReport(
            matches=tuple(matches),
            total_records_a=len(records_a),
            total_records_b=len(records_b),
            generated_at=datetime.now(timezone.utc),
            source_descriptors=source_descriptors or {},
        )

    def _print_summary(self) -> None:
        """Print correlation summary."""
        total_a = self.stats["total_records_a"]
        self.logger.info("=" * 60)
        self.logger.info("RECORD CORRELATION SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Dataset A records: {total_a}")
        self.logger.info(f"Dataset B records: {self.stats['total_records_b']}")
        self.logger.info(
            f"Skipped without coordinates (A/B): "
            f"{self.stats['skipped_not_geolocated_a']}/{self.stats['skipped_not_geolocated_b']}"
        )
        self.logger.info(f"No candidate bucket: {self.stats['no_bucket']}")
        self.logger.info(f"No candidate within window: {self.stats['no_time_match']}")
        self.logger.info(f"Matches found: {self.stats['matched']}")
        if total_a:
            self.logger.info(
                f"Match rate: {self.stats['matched'] / total_a * 100:.1f}%"
            )
        self.logger.info(
            f"Average time difference: {self.stats['avg_time_difference_minutes']:.2f} minutes"
        )
        self.logger.info(
            f"Processing time: {self.stats['processing_time']:.2f} seconds"
        )
        self.logger.info("=" * 60)


def correlate(
    records_a: Sequence[TimelineRecord],
    records_b: Sequence[TimelineRecord],
    window_minutes: float | None = None,
    source_descriptors: dict[str, Any] | None = None,
) -> MatchReport:
    """Correlate two datasets with a one-off RecordCorrelator."""
    return RecordCorrelator(window_minutes=window_minutes).correlate(
        records_a, records_b, source_descriptors=source_descriptors
    )


def main() -> None:
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Find records describing the same event in two timeline tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                        # Correlate the default CSV files
  %(prog)s --file-a a.csv --file-b b.csv          # Correlate two specific tables
  %(prog)s --window-minutes 10                    # Use a 10 minute window
  %(prog)s --csv-output artifacts/matches.csv     # Also write a CSV of matches
  %(prog)s --log-level DEBUG                      # Enable debug logging
        """,
    )
    parser.add_argument(
        "--file-a",
        default=config.DEFAULT_DATASET_A_CSV,
        help=f"First record table (default: {config.DEFAULT_DATASET_A_CSV})",
    )
    parser.add_argument(
        "--file-b",
        default=config.DEFAULT_DATASET_B_CSV,
        help=f"Second record table (default: {config.DEFAULT_DATASET_B_CSV})",
    )
    parser.add_argument(
        "--window-minutes",
        type=float,
        default=None,
        help=f"Maximum start time difference in minutes (default: {config.CORRELATION_WINDOW_MINUTES:g})",
    )
    parser.add_argument(
        "--output",
        default=config.DEFAULT_MATCHES_JSON,
        help=f"Report JSON path (default: {config.DEFAULT_MATCHES_JSON})",
    )
    parser.add_argument(
        "--simple-output",
        default=None,
        help="Optional path for the flattened match list JSON",
    )
    parser.add_argument(
        "--csv-output",
        default=None,
        help="Optional path for a CSV with one row per match",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level",
    )

    args = parser.parse_args()

    logger = setup_correlator_logging(args.log_level)

    try:
        correlator = RecordCorrelator(window_minutes=args.window_minutes, logger=logger)

        records_a = load_records_csv(args.file_a, logger=logger)
        records_b = load_records_csv(args.file_b, logger=logger)

        report = correlator.correlate(
            records_a,
            records_b,
            source_descriptors={"datasetA": args.file_a, "datasetB": args.file_b},
        )

        save_report_json(report, args.output, logger=logger)
        if args.simple_output:
            save_report_simple_json(report, args.simple_output, logger=logger)
        if args.csv_output:
            save_report_csv(report, args.csv_output, logger=logger)

        logger.info("Record correlation completed successfully")

    except Exception as e:
        logger.error(f"Record correlation failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
