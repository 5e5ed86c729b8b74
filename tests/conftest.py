"""
Shared test fixtures and configuration for the Timeline Correlator test suite.

This file contains pytest fixtures that can be used across all test modules.
Fixtures defined here are automatically available to all test files.
"""

import os

import pytest
from dotenv import load_dotenv

# Load test environment variables (if any)
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


@pytest.fixture
def make_record():
    """
    Provide a factory for TimelineRecord instances.

    Fields not given default to the values of a geolocated 'timelinePath'
    point so tests only spell out what they care about.
    """
    from scripts.processors.correlation_models import TimelineRecord

    def _make(
        start_time="2024-01-01T10:00:00Z",
        latitude="55.684",
        longitude="37.584",
        source="timelinePath",
        end_time=None,
        probability="",
    ):
        return TimelineRecord(
            startTime=start_time,
            endTime=start_time if end_time is None else end_time,
            probability=probability,
            latitude=latitude,
            longitude=longitude,
            source=source,
        )

    return _make


@pytest.fixture
def sample_timeline_export():
    """
    Provide a sample Timeline JSON export for testing.

    Contains one activity, one visit and one path segment, matching the
    layout of a Google Maps 'semanticSegments' export.
    """
    return {
        "semanticSegments": [
            {
                "startTime": "2024-01-01T09:00:00.000+03:00",
                "endTime": "2024-01-01T09:40:00.000+03:00",
                "activity": {
                    "start": {"latLng": "55.7522°, 37.6156°"},
                    "end": {"latLng": "55.6840°, 37.5840°"},
                    "topCandidate": {"type": "IN_PASSENGER_VEHICLE", "probability": 0.87},
                },
            },
            {
                "startTime": "2024-01-01T09:40:00.000+03:00",
                "endTime": "2024-01-01T11:00:00.000+03:00",
                "visit": {
                    "probability": 0.92,
                    "topCandidate": {
                        "placeId": "ChIJtest",
                        "placeLocation": {"latLng": "55.6841°, 37.5838°"},
                    },
                },
            },
            {
                "startTime": "2024-01-01T11:00:00.000+03:00",
                "endTime": "2024-01-01T12:00:00.000+03:00",
                "timelinePath": [
                    {"point": "55.6850°, 37.5850°", "time": "2024-01-01T11:05:00.000+03:00"},
                    {"point": "55.6860°, 37.5860°", "time": "2024-01-01T11:10:00.000+03:00"},
                ],
            },
        ]
    }


@pytest.fixture
def write_records_csv(tmp_path):
    """Write a list of row dicts to a CSV file under tmp_path and return its path."""
    import pandas as pd

    def _write(rows, name="records.csv", columns=None):
        path = tmp_path / name
        pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
        return str(path)

    return _write
