"""
Writers for correlation results.

Turns a MatchReport into the artifacts consumed downstream: the full JSON
report, a flattened JSON list, and a CSV with one row per match.
"""

import json
import logging
import os

import pandas as pd

from scripts.processors.correlation_models import MatchReport

MATCH_CSV_COLUMNS = [
    "match_number",
    "latitude",
    "longitude",
    "time_difference_minutes",
    "a_index",
    "a_start_time",
    "a_end_time",
    "a_probability",
    "a_latitude",
    "a_longitude",
    "a_source",
    "b_index",
    "b_start_time",
    "b_end_time",
    "b_probability",
    "b_latitude",
    "b_longitude",
    "b_source",
]


def _ensure_parent_dir(output_path: str) -> None:
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)


def save_report_json(
    report: MatchReport, output_path: str, logger: logging.Logger | None = None
) -> None:
    """
    Save the full report document as JSON.

    Args:
        report: Correlation result
        output_path: Destination file path
        logger: Logger instance for operation tracking
    """
    logger = logger or logging.getLogger("record_correlator")
    _ensure_parent_dir(output_path)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report.to_document(), f, ensure_ascii=False, indent=2, default=str)
    logger.info(f"Saved {report.total_matches} matches to {output_path}")


def simple_match_rows(report: MatchReport) -> list[dict]:
    """Flatten each match to its bucket coordinates, both start times and both sources."""
    return [
        {
            "latitude": match.common_coordinates.latitude,
            "longitude": match.common_coordinates.longitude,
            "time1": match.record_a.start_time,
            "time2": match.record_b.start_time,
            "diffMinutes": match.time_difference_minutes,
            "source1": match.record_a.source,
            "source2": match.record_b.source,
        }
        for match in report.matches
    ]


def save_report_simple_json(
    report: MatchReport, output_path: str, logger: logging.Logger | None = None
) -> None:
    """Save the flattened match list as JSON."""
    logger = logger or logging.getLogger("record_correlator")
    _ensure_parent_dir(output_path)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(simple_match_rows(report), f, ensure_ascii=False, indent=2)
    logger.info(f"Saved simplified matches to {output_path}")


def report_to_dataframe(report: MatchReport) -> pd.DataFrame:
    """
    Build a DataFrame with one row per match.

    Args:
        report: Correlation result

    Returns:
        DataFrame with MATCH_CSV_COLUMNS, in match order
    """
    rows = []
    for number, match in enumerate(report.matches, 1):
        row = {
            "match_number": number,
            "latitude": match.common_coordinates.latitude,
            "longitude": match.common_coordinates.longitude,
            "time_difference_minutes": match.time_difference_minutes,
            "a_index": match.index_a,
            "b_index": match.index_b,
        }
        for prefix, record in (("a", match.record_a), ("b", match.record_b)):
            row[f"{prefix}_start_time"] = record.start_time
            row[f"{prefix}_end_time"] = record.end_time
            row[f"{prefix}_probability"] = record.probability
            row[f"{prefix}_latitude"] = record.latitude
            row[f"{prefix}_longitude"] = record.longitude
            row[f"{prefix}_source"] = record.source
        rows.append(row)

    return pd.DataFrame(rows, columns=MATCH_CSV_COLUMNS)


def save_report_csv(
    report: MatchReport, output_path: str, logger: logging.Logger | None = None
) -> None:
    """Save the matches as a CSV artifact."""
    logger = logger or logging.getLogger("record_correlator")
    _ensure_parent_dir(output_path)
    df = report_to_dataframe(report)
    df.to_csv(output_path, index=False)
    logger.info(f"Created CSV artifact: {output_path}")
    logger.info(f"Total matches written: {len(df)}")
