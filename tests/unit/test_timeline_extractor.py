#!/usr/bin/env python3
"""
Unit tests for the Timeline JSON extractor and the record table loader.
"""

import json
import os
import sys
from unittest.mock import patch

import pandas as pd
import pytest
from pandera.errors import SchemaError
from pydantic import ValidationError

from scripts.collectors.timeline_extractor import (
    TimelineExtractor,
    load_records_csv,
    main,
    parse_lat_lng,
)


class TestParseLatLng:
    """Test cases for parse_lat_lng()."""

    def test_degree_signs_are_removed(self):
        """Test parsing the Timeline 'latLng' format."""
        assert parse_lat_lng("55.7522°, 37.6156°") == ("55.7522", "37.6156")

    def test_plain_pair(self):
        """Test parsing a pair without degree signs."""
        assert parse_lat_lng("-33.8688,151.2093") == ("-33.8688", "151.2093")

    @pytest.mark.parametrize("text", ["", None, "55.7522°", "1, 2, 3"])
    def test_malformed_text_gives_empty_coordinates(self, text):
        """Test that anything other than two parts yields empty coordinates."""
        assert parse_lat_lng(text) == ("", "")


class TestTimelineExtractor:
    """Test cases for TimelineExtractor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.extractor = TimelineExtractor()

    def test_extract_records_from_all_segment_types(self, sample_timeline_export):
        """Test that activities, visits and path points become records in order."""
        rows = self.extractor.extract_records(sample_timeline_export)

        assert [row["source"] for row in rows] == [
            "activity.start",
            "activity.end",
            "visit.placeLocation",
            "timelinePath",
            "timelinePath",
        ]

        activity_start = rows[0]
        assert activity_start["startTime"] == "2024-01-01T09:00:00.000+03:00"
        assert activity_start["endTime"] == "2024-01-01T09:40:00.000+03:00"
        assert activity_start["probability"] == 0.87
        assert activity_start["latitude"] == "55.7522"
        assert activity_start["longitude"] == "37.6156"

        visit = rows[2]
        assert visit["probability"] == 0.92
        assert (visit["latitude"], visit["longitude"]) == ("55.6841", "37.5838")

        path_point = rows[3]
        assert path_point["startTime"] == path_point["endTime"]
        assert path_point["startTime"] == "2024-01-01T11:05:00.000+03:00"
        assert path_point["probability"] == ""

    def test_statistics(self, sample_timeline_export):
        """Test the counters collected during extraction."""
        self.extractor.extract_records(sample_timeline_export)

        assert self.extractor.stats["total_segments"] == 3
        assert self.extractor.stats["total_records"] == 5
        assert self.extractor.stats["records_by_source"]["timelinePath"] == 2
        assert self.extractor.stats["records_with_coords"] == 5

    def test_missing_probability_defaults_to_zero(self):
        """Test that activities and visits without a probability get 0.0."""
        data = {
            "semanticSegments": [
                {"activity": {"start": {"latLng": "1.0°, 2.0°"}}},
                {"visit": {"topCandidate": {"placeLocation": {"latLng": "3.0°, 4.0°"}}}},
            ]
        }

        rows = self.extractor.extract_records(data)

        assert [row["probability"] for row in rows] == [0.0, 0.0]
        assert rows[0]["startTime"] == ""

    def test_path_points_without_time_are_skipped(self):
        """Test that incomplete path points produce no record."""
        data = {
            "semanticSegments": [
                {
                    "timelinePath": [
                        {"point": "1.0°, 2.0°"},
                        {"time": "2024-01-01T10:00:00Z"},
                        {"point": "1.0°, 2.0°", "time": "2024-01-01T10:00:00Z"},
                    ]
                }
            ]
        }

        rows = self.extractor.extract_records(data)

        assert len(rows) == 1

    def test_activity_takes_precedence_over_visit(self):
        """Test that a segment with both payloads is read as an activity."""
        data = {
            "semanticSegments": [
                {
                    "activity": {"end": {"latLng": "1.0°, 2.0°"}},
                    "visit": {"topCandidate": {"placeLocation": {"latLng": "3.0°, 4.0°"}}},
                }
            ]
        }

        rows = self.extractor.extract_records(data)

        assert [row["source"] for row in rows] == ["activity.end"]

    def test_invalid_segment_is_skipped(self):
        """Test that a malformed segment is logged and skipped."""
        data = {
            "semanticSegments": [
                {"timelinePath": "not a list"},
                {"visit": {"topCandidate": {"placeLocation": {"latLng": "3.0°, 4.0°"}}}},
            ]
        }

        rows = self.extractor.extract_records(data)

        assert len(rows) == 1
        assert self.extractor.stats["invalid_segments"] == 1

    def test_unparsable_lat_lng_keeps_record_without_coordinates(self):
        """Test that a bad latLng still yields a record, with empty coordinates."""
        data = {"semanticSegments": [{"activity": {"start": {"latLng": "somewhere"}}}]}

        rows = self.extractor.extract_records(data)

        assert rows[0]["latitude"] == ""
        assert self.extractor.stats["records_missing_coords"] == 1

    def test_not_a_timeline_export(self):
        """Test that a document of the wrong shape is rejected."""
        with pytest.raises(ValidationError):
            self.extractor.extract_records({"semanticSegments": "nope"})

    def test_empty_export(self):
        """Test that an export without segments yields no records."""
        assert self.extractor.extract_records({}) == []

    def test_run_creates_csv_artifact(self, tmp_path, sample_timeline_export):
        """Test the full workflow from JSON file to CSV artifact."""
        input_path = tmp_path / "timeline.json"
        input_path.write_text(json.dumps(sample_timeline_export), encoding="utf-8")
        output_path = tmp_path / "artifacts" / "records.csv"

        extractor = TimelineExtractor(
            input_path=str(input_path), output_path=str(output_path)
        )
        df = extractor.run()

        assert os.path.exists(output_path)
        assert len(df) == 5
        written = pd.read_csv(output_path, dtype=str, keep_default_na=False)
        assert list(written.columns) == [
            "startTime",
            "endTime",
            "probability",
            "latitude",
            "longitude",
            "source",
        ]
        assert written.iloc[4]["probability"] == ""

    def test_run_missing_file(self, tmp_path):
        """Test that a missing export propagates FileNotFoundError."""
        extractor = TimelineExtractor(input_path=str(tmp_path / "missing.json"))

        with pytest.raises(FileNotFoundError):
            extractor.run()


class TestLoadRecordsCsv:
    """Test cases for load_records_csv()."""

    def test_extracted_table_loads_back(self, tmp_path, sample_timeline_export):
        """Test that the extractor output is accepted by the loader."""
        output_path = tmp_path / "records.csv"
        extractor = TimelineExtractor(output_path=str(output_path))
        extractor.create_csv_artifact(extractor.extract_records(sample_timeline_export))

        records = load_records_csv(str(output_path))

        assert len(records) == 5
        assert records[0].source == "activity.start"
        assert records[0].probability == 0.87
        assert records[3].probability is None
        assert records[3].latitude == "55.6850"

    def test_missing_optional_columns_default_to_empty(self, write_records_csv):
        """Test that absent optional columns become empty fields."""
        path = write_records_csv(
            [{"startTime": "2024-01-01T10:00:00Z", "latitude": "1.5", "longitude": "2.5"}]
        )

        records = load_records_csv(path)

        assert records[0].end_time == ""
        assert records[0].source == ""
        assert records[0].probability is None

    def test_empty_cells_stay_empty_strings(self, write_records_csv):
        """Test that empty coordinates are not turned into NaN."""
        path = write_records_csv(
            [
                {
                    "startTime": "2024-01-01T10:00:00Z",
                    "endTime": "",
                    "probability": "",
                    "latitude": "",
                    "longitude": "",
                    "source": "timelinePath",
                }
            ]
        )

        records = load_records_csv(path)

        assert records[0].latitude == ""
        assert records[0].is_geolocated is False

    def test_missing_required_column(self, write_records_csv):
        """Test that a table without a latitude column is rejected."""
        path = write_records_csv([{"startTime": "2024-01-01T10:00:00Z", "longitude": "2.5"}])

        with pytest.raises(SchemaError):
            load_records_csv(path)

    def test_header_only_table(self, write_records_csv):
        """Test that a table without rows loads as an empty dataset."""
        path = write_records_csv(
            [], columns=["startTime", "endTime", "probability", "latitude", "longitude", "source"]
        )

        assert load_records_csv(path) == []

    def test_missing_file(self, tmp_path):
        """Test that a missing table raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_records_csv(str(tmp_path / "missing.csv"))


def test_main_exits_on_missing_input(tmp_path, monkeypatch):
    """Test that the CLI ends with status 1 when the export is missing."""
    monkeypatch.chdir(tmp_path)
    argv = ["timeline_extractor.py", "--input", str(tmp_path / "missing.json")]

    with patch.object(sys, "argv", argv):
        with pytest.raises(SystemExit) as exc_info:
            main()

    assert exc_info.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__])
