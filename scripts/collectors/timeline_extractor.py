#!/usr/bin/env python3
"""
Location History Timeline Extractor

This script flattens a Google Maps Timeline JSON export ('semanticSegments')
into a table of time-stamped location records and saves it as a CSV artifact.
It also provides the loader used by the correlator to read such tables back.

Each record has the columns startTime, endTime, probability, latitude,
longitude and source, where source is one of:
- activity.start / activity.end (start and end of a movement)
- visit.placeLocation (a stay at a place)
- timelinePath (a raw path point)

Usage:
    # Extract timeline.json into artifacts/timeline_records.csv (default)
    python timeline_extractor.py

    # Extract a specific export to a specific CSV
    python timeline_extractor.py --input export.json --output timeline1.csv
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

import pandas as pd
from dotenv import load_dotenv
from pydantic import ValidationError

# Load .env before local imports that need env vars
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "..", ".env"))

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", ".."))

from config.settings import config
from scripts.collectors.timeline_schemas import (
    OPTIONAL_RECORD_COLUMNS,
    TimelineExport,
    TimelineRecordsSchema,
    TimelineSegment,
)
from scripts.processors.correlation_models import TimelineRecord
from utils.logging import setup_extractor_logging


def parse_lat_lng(lat_lng: str | None) -> tuple[str, str]:
    """
    Split a 'latLng' text into latitude and longitude.

    Args:
        lat_lng: Text such as '55.684°, 37.584°'

    Returns:
        Tuple of (latitude, longitude) texts; both empty if the text does not
        contain exactly two parts
    """
    if not lat_lng:
        return "", ""

    parts = [part.strip() for part in lat_lng.replace("°", "").split(",")]
    if len(parts) != 2:
        return "", ""
    return parts[0], parts[1]


class TimelineExtractor:
    """Extract location records from a Timeline JSON export."""

    def __init__(
        self,
        input_path: str | None = None,
        output_path: str | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the extractor.

        Args:
            input_path (str): Timeline JSON export. If None, uses config default
            output_path (str): CSV artifact path. If None, uses config default
            logger (logging.Logger): Logger instance for operation tracking
        """
        self.logger = logger or logging.getLogger("timeline_extractor")
        self.input_path = input_path or config.DEFAULT_TIMELINE_JSON
        self.output_path = output_path or config.DEFAULT_TIMELINE_CSV

        # Statistics for summary report
        self.stats = {
            "total_segments": 0,
            "invalid_segments": 0,
            "total_records": 0,
            "records_by_source": {},
            "records_with_coords": 0,
            "records_missing_coords": 0,
            "processing_time": 0.0,
        }

    def load_timeline_json(self) -> dict:
        """
        Read the Timeline JSON export.

        Returns:
            Parsed JSON document

        Raises:
            FileNotFoundError: If the input file does not exist
            json.JSONDecodeError: If the file is not valid JSON
        """
        self.logger.info(f"Reading timeline JSON: {self.input_path}")
        with open(self.input_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def extract_segment(self, segment: TimelineSegment) -> list[dict]:
        """
        Convert one semantic segment into record rows.

        Args:
            segment: Validated segment

        Returns:
            List of record dictionaries (possibly empty)
        """
        start_time = segment.startTime or ""
        end_time = segment.endTime or ""
        rows = []

        if segment.activity is not None:
            activity = segment.activity
            probability = 0.0
            if activity.topCandidate and activity.topCandidate.probability is not None:
                probability = activity.topCandidate.probability

            for location, source in (
                (activity.start, "activity.start"),
                (activity.end, "activity.end"),
            ):
                if location is None or not location.latLng:
                    continue
                latitude, longitude = parse_lat_lng(location.latLng)
                rows.append(
                    {
                        "startTime": start_time,
                        "endTime": end_time,
                        "probability": probability,
                        "latitude": latitude,
                        "longitude": longitude,
                        "source": source,
                    }
                )

        elif segment.visit is not None:
            visit = segment.visit
            place = visit.topCandidate.placeLocation if visit.topCandidate else None
            if place is not None and place.latLng:
                latitude, longitude = parse_lat_lng(place.latLng)
                rows.append(
                    {
                        "startTime": start_time,
                        "endTime": end_time,
                        "probability": visit.probability or 0.0,
                        "latitude": latitude,
                        "longitude": longitude,
                        "source": "visit.placeLocation",
                    }
                )

        elif segment.timelinePath is not None:
            for point in segment.timelinePath:
                if not point.point or not point.time:
                    continue
                latitude, longitude = parse_lat_lng(point.point)
                rows.append(
                    {
                        "startTime": point.time,
                        "endTime": point.time,
                        "probability": "",
                        "latitude": latitude,
                        "longitude": longitude,
                        "source": "timelinePath",
                    }
                )

        return rows

    def extract_records(self, data: dict) -> list[dict]:
        """
        Extract record rows from a parsed export, in document order.

        Args:
            data: Parsed Timeline JSON document

        Returns:
            List of record dictionaries with the six record columns

        Raises:
            pydantic.ValidationError: If the document is not a Timeline export
        """
        export = TimelineExport.model_validate(data)
        self.stats["total_segments"] = len(export.semanticSegments)

        rows = []
        for position, raw_segment in enumerate(export.semanticSegments):
            try:
                segment = TimelineSegment.model_validate(raw_segment)
            except ValidationError as e:
                self.stats["invalid_segments"] += 1
                self.logger.warning(f"Skipping invalid segment {position}: {e}")
                continue
            rows.extend(self.extract_segment(segment))

        for row in rows:
            by_source = self.stats["records_by_source"]
            by_source[row["source"]] = by_source.get(row["source"], 0) + 1
            if row["latitude"] and row["longitude"]:
                self.stats["records_with_coords"] += 1
            else:
                self.stats["records_missing_coords"] += 1
        self.stats["total_records"] = len(rows)

        self.logger.info(f"Extracted {len(rows)} records")
        return rows

    def create_csv_artifact(self, rows: list[dict]) -> pd.DataFrame:
        """Create CSV artifact from extracted records."""
        df = pd.DataFrame(rows, columns=config.RECORD_COLUMNS)

        output_dir = os.path.dirname(self.output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        df.to_csv(self.output_path, index=False)

        self.logger.info(f"Created CSV artifact: {self.output_path}")
        self.logger.info(f"Total records written: {len(df)}")
        return df

    def run(self) -> pd.DataFrame:
        """
        Main extraction workflow.

        Returns:
            DataFrame of the records written to the CSV artifact
        """
        start_time = datetime.now()
        self.logger.info("Starting timeline extraction")

        try:
            data = self.load_timeline_json()
            rows = self.extract_records(data)
            df = self.create_csv_artifact(rows)

            self.stats["processing_time"] = (
                datetime.now() - start_time
            ).total_seconds()
            self._print_summary()
            return df

        except Exception as e:
            self.logger.error(f"Extraction failed: {e}")
            raise

    def _print_summary(self) -> None:
        """Print extraction summary."""
        self.logger.info("=" * 50)
        self.logger.info("EXTRACTION SUMMARY")
        self.logger.info("=" * 50)
        self.logger.info(f"Segments processed: {self.stats['total_segments']}")
        self.logger.info(f"Invalid segments skipped: {self.stats['invalid_segments']}")
        self.logger.info(f"Total records: {self.stats['total_records']}")
        for source, count in self.stats["records_by_source"].items():
            self.logger.info(f"  {source}: {count}")
        self.logger.info(f"Records with coordinates: {self.stats['records_with_coords']}")
        self.logger.info(
            f"Records missing coordinates: {self.stats['records_missing_coords']}"
        )
        self.logger.info(f"Processing time: {self.stats['processing_time']:.2f} seconds")
        self.logger.info("=" * 50)


def load_records_csv(
    csv_path: str, logger: logging.Logger | None = None
) -> list[TimelineRecord]:
    """
    Load a record table from CSV.

    Every column is read as text; absent optional columns and empty cells
    become empty strings.

    Args:
        csv_path: Path to the CSV file
        logger: Logger instance for operation tracking

    Returns:
        Records in file order

    Raises:
        FileNotFoundError: If the file does not exist
        pandera.errors.SchemaError: If a required column is missing
    """
    logger = logger or logging.getLogger("timeline_extractor")

    try:
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, encoding="utf-8")
    except FileNotFoundError:
        logger.error(f"Record table not found: {csv_path}")
        raise
    except pd.errors.EmptyDataError:
        logger.warning(f"Record table is empty: {csv_path}")
        return []

    df.columns = [str(column).strip() for column in df.columns]
    df = TimelineRecordsSchema.validate(df)

    for column in OPTIONAL_RECORD_COLUMNS:
        if column not in df.columns:
            df[column] = ""

    records = [
        TimelineRecord.model_validate(row)
        for row in df[config.RECORD_COLUMNS].to_dict("records")
    ]
    logger.info(f"Loaded {len(records)} records from {csv_path}")
    return records


def main():
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Flatten a Google Maps Timeline JSON export into a CSV of location records"
    )
    parser.add_argument(
        "-i",
        "--input",
        default=config.DEFAULT_TIMELINE_JSON,
        help=f"Path to timeline JSON file (default: {config.DEFAULT_TIMELINE_JSON})",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=config.DEFAULT_TIMELINE_CSV,
        help=f"Path to output CSV file (default: {config.DEFAULT_TIMELINE_CSV})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level",
    )

    args = parser.parse_args()

    logger = setup_extractor_logging(args.log_level)

    try:
        extractor = TimelineExtractor(
            input_path=args.input, output_path=args.output, logger=logger
        )
        extractor.run()
        logger.info("Extraction completed successfully")

    except Exception as e:
        logger.error(f"Extraction failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
