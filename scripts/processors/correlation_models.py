"""Pydantic models for timeline records and correlation results.

Records are flat, read-only observations produced by the extraction step.
Matches and match reports are produced once by the correlator and handed
off immutably to the writers.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scripts.processors.coordinate_key import CoordinateKey, quantize


class TimelineRecord(BaseModel):
    """Schema for one observed location event.

    Field names mirror the columns of the extracted timeline tables
    (startTime, endTime, probability, latitude, longitude, source).
    Missing text fields default to empty strings.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_time: str = Field(default="", alias="startTime", description="Start timestamp")
    end_time: str = Field(default="", alias="endTime", description="End timestamp")
    probability: float | None = Field(
        default=None, description="Source confidence, or None when empty"
    )
    latitude: str = Field(default="", description="Latitude as text (may be empty)")
    longitude: str = Field(default="", description="Longitude as text (may be empty)")
    source: str = Field(default="", description="Provenance tag, e.g. 'timelinePath'")

    @field_validator("start_time", "end_time", "latitude", "longitude", "source", mode="before")
    @classmethod
    def coerce_text(cls, v):
        """Convert missing values to '' and numbers to their text form."""
        if v is None:
            return ""
        if isinstance(v, float) and math.isnan(v):
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("probability", mode="before")
    @classmethod
    def coerce_probability(cls, v):
        """Treat empty or unparsable probability values as missing."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            try:
                v = float(v)
            except ValueError:
                return None
        if isinstance(v, float) and math.isnan(v):
            return None
        return v

    @property
    def coordinate_key(self) -> CoordinateKey | None:
        return quantize(self.latitude, self.longitude)

    @property
    def is_geolocated(self) -> bool:
        return self.coordinate_key is not None

    def to_fields(self) -> dict:
        """Original six fields, keyed by their column names."""
        return self.model_dump(by_alias=True)


class Match(BaseModel):
    """One A record paired with one B record in the same coordinate bucket."""

    model_config = ConfigDict(frozen=True)

    index_a: int = Field(..., ge=0, description="Position of the record in dataset A")
    index_b: int = Field(..., ge=0, description="Position of the record in dataset B")
    record_a: TimelineRecord
    record_b: TimelineRecord
    common_coordinates: CoordinateKey
    time_difference_minutes: float = Field(..., ge=0)


class MatchReport(BaseModel):
    """Ordered matches plus the metadata handed to the serialization step."""

    model_config = ConfigDict(frozen=True)

    matches: tuple[Match, ...] = ()
    total_records_a: int = Field(..., ge=0)
    total_records_b: int = Field(..., ge=0)
    generated_at: datetime
    source_descriptors: dict[str, Any] = Field(
        default_factory=dict, description="Opaque dataset labels, passed through"
    )

    @property
    def total_matches(self) -> int:
        return len(self.matches)

    def to_document(self) -> dict:
        """
        Build the report document exposed to writers.

        Returns:
            dict with totalMatches, generatedAt, sourceDescriptors, input sizes
            and the numbered matches (recordA/recordB carry the original fields)
        """
        return {
            "totalMatches": self.total_matches,
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
            "sourceDescriptors": dict(self.source_descriptors),
            "totalRecordsA": self.total_records_a,
            "totalRecordsB": self.total_records_b,
            "matches": [
                {
                    "matchNumber": number,
                    "commonCoordinates": match.common_coordinates.as_dict(),
                    "timeDifferenceMinutes": match.time_difference_minutes,
                    "recordA": match.record_a.to_fields(),
                    "recordB": match.record_b.to_fields(),
                }
                for number, match in enumerate(self.matches, 1)
            ],
        }
