"""Validation schemas for location-history timeline data.

This module provides two types of validation schemas:
1. Pydantic schemas - Validate the semantic segments of a Timeline JSON export
2. Pandera schemas - Validate record tables loaded from CSV before correlation

The dual validation approach catches:
- Structural issues in the exported JSON (Pydantic)
- Missing or mistyped columns in tabular inputs (Pandera)
"""

from __future__ import annotations

import pandera.pandas as pa
from pandera.pandas import Column, DataFrameSchema
from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# PYDANTIC SCHEMAS - For validating Timeline JSON exports
# =============================================================================


class TimelineLatLng(BaseModel):
    """A location carrying a 'latLng' text such as '55.684°, 37.584°'."""

    latLng: str | None = Field(default=None, description="Latitude/longitude text")

    model_config = ConfigDict(extra="allow")


class TimelineTopCandidate(BaseModel):
    """Most likely activity type or visited place for a segment."""

    probability: float | None = Field(default=None, description="Candidate probability")
    placeLocation: TimelineLatLng | None = Field(
        default=None, description="Place location (visits only)"
    )

    model_config = ConfigDict(extra="allow")


class TimelineActivity(BaseModel):
    """Movement between two locations."""

    start: TimelineLatLng | None = Field(default=None, description="Start location")
    end: TimelineLatLng | None = Field(default=None, description="End location")
    topCandidate: TimelineTopCandidate | None = Field(
        default=None, description="Most likely activity type"
    )

    model_config = ConfigDict(extra="allow")


class TimelineVisit(BaseModel):
    """Stay at a single place."""

    probability: float | None = Field(default=None, description="Visit probability")
    topCandidate: TimelineTopCandidate | None = Field(
        default=None, description="Most likely visited place"
    )

    model_config = ConfigDict(extra="allow")


class TimelinePathPoint(BaseModel):
    """One raw point of a timeline path."""

    point: str | None = Field(default=None, description="Latitude/longitude text")
    time: str | None = Field(default=None, description="Point timestamp")

    model_config = ConfigDict(extra="allow")


class TimelineSegment(BaseModel):
    """Validates one entry of 'semanticSegments'.

    A segment carries at most one meaningful payload; when several are present
    the activity wins over the visit, and the visit over the path.
    """

    startTime: str | None = Field(default=None, description="Segment start")
    endTime: str | None = Field(default=None, description="Segment end")
    activity: TimelineActivity | None = None
    visit: TimelineVisit | None = None
    timelinePath: list[TimelinePathPoint] | None = None

    model_config = ConfigDict(extra="allow")


class TimelineExport(BaseModel):
    """Top-level Timeline JSON export.

    Segments are kept as raw dicts here so a single malformed segment can be
    reported and skipped instead of rejecting the whole export.
    """

    semanticSegments: list[dict] = Field(
        default_factory=list, description="Semantic segments of the timeline"
    )

    model_config = ConfigDict(extra="allow")


# =============================================================================
# PANDERA SCHEMAS - For validating record tables
# =============================================================================

# Columns without which no record can be correlated
REQUIRED_RECORD_COLUMNS = ["startTime", "latitude", "longitude"]

# Columns that are copied through and default to empty when absent
OPTIONAL_RECORD_COLUMNS = ["endTime", "probability", "source"]


TimelineRecordsSchema = DataFrameSchema(
    columns={
        # =====================================================================
        # REQUIRED COLUMNS - Values may be empty, the column may not be missing
        # =====================================================================
        "startTime": Column(
            pa.String,
            nullable=False,
            description="Start timestamp (ISO-8601, may be unparsable)",
        ),
        "latitude": Column(
            pa.String,
            nullable=False,
            description="Latitude as text (empty when unknown)",
        ),
        "longitude": Column(
            pa.String,
            nullable=False,
            description="Longitude as text (empty when unknown)",
        ),
        # =====================================================================
        # OPTIONAL COLUMNS
        # =====================================================================
        "endTime": Column(
            pa.String,
            nullable=False,
            required=False,
            description="End timestamp",
        ),
        "probability": Column(
            pa.String,
            nullable=False,
            required=False,
            description="Probability as text (empty when unknown)",
        ),
        "source": Column(
            pa.String,
            nullable=False,
            required=False,
            description="Provenance tag (activity.start, visit.placeLocation, ...)",
        ),
    },
    strict=False,  # Extra columns from other exports are ignored
    coerce=True,
    description="Schema for record tables consumed by the correlator",
)
