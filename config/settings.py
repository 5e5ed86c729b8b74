"""
Configuration settings for the Timeline Correlator project.

This module centralizes all configuration values and provides a single source of truth for all
configurable parameters.
"""

import math
import os


class CorrelationConfigError(ValueError):
    """Raised when a correlation setting violates its contract (e.g. a negative window)."""


def validate_window_minutes(window_minutes) -> float:
    """
    Validate a time window value.

    Args:
        window_minutes: Candidate window in minutes

    Returns:
        float: The window as a float

    Raises:
        CorrelationConfigError: If the window is not a finite, non-negative number
    """
    if isinstance(window_minutes, bool) or not isinstance(window_minutes, (int, float)):
        raise CorrelationConfigError(
            f"Time window must be a number of minutes, got {window_minutes!r}"
        )
    if not math.isfinite(window_minutes) or window_minutes < 0:
        raise CorrelationConfigError(
            f"Time window must be a finite, non-negative number of minutes, got {window_minutes!r}"
        )
    return float(window_minutes)


class Config:
    """
    Central configuration class for the Timeline Correlator project.

    This class consolidates all configuration values including matching
    parameters, file paths, and logging settings.
    """

    # Correlation Settings
    CORRELATION_WINDOW_MINUTES: float = 30.0
    COORDINATE_PRECISION_SCALE: int = 1000  # 3 decimal degrees (~111 m at the equator)

    # File Paths
    DEFAULT_TIMELINE_JSON: str = "timeline.json"
    DEFAULT_TIMELINE_CSV: str = "artifacts/timeline_records.csv"
    DEFAULT_DATASET_A_CSV: str = "timeline1.csv"
    DEFAULT_DATASET_B_CSV: str = "timeline2.csv"
    DEFAULT_MATCHES_JSON: str = "artifacts/matches.json"
    DEFAULT_MATCHES_SIMPLE_JSON: str = "artifacts/matches_simple.json"
    DEFAULT_MATCHES_CSV: str = "artifacts/matches.csv"

    # Record table columns, in output order
    RECORD_COLUMNS: list = [
        "startTime",
        "endTime",
        "probability",
        "latitude",
        "longitude",
        "source",
    ]

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT: int = 3
    EXTRACTOR_LOG_FILE: str = "logs/timeline_extractor.log"
    CORRELATOR_LOG_FILE: str = "logs/record_correlator.log"

    def __init__(self):
        """Initialize configuration by loading from environment variables."""
        self._load_from_env()
        self._validate()

    def _load_from_env(self):
        """Load configuration values from environment variables."""
        window = os.getenv("CORRELATION_WINDOW_MINUTES")
        if window:
            try:
                self.CORRELATION_WINDOW_MINUTES = float(window)
            except ValueError:
                raise CorrelationConfigError(
                    f"CORRELATION_WINDOW_MINUTES must be numeric, got '{window}'"
                )

        timeline_json = os.getenv("TIMELINE_JSON")
        if timeline_json:
            self.DEFAULT_TIMELINE_JSON = timeline_json

        dataset_a = os.getenv("DATASET_A_CSV")
        if dataset_a:
            self.DEFAULT_DATASET_A_CSV = dataset_a

        dataset_b = os.getenv("DATASET_B_CSV")
        if dataset_b:
            self.DEFAULT_DATASET_B_CSV = dataset_b

        matches_json = os.getenv("MATCHES_JSON")
        if matches_json:
            self.DEFAULT_MATCHES_JSON = matches_json

        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            self.LOG_LEVEL = log_level

    def _validate(self):
        """
        Validate configuration values.

        Raises:
            CorrelationConfigError: If the correlation window is invalid.
        """
        self.CORRELATION_WINDOW_MINUTES = validate_window_minutes(
            self.CORRELATION_WINDOW_MINUTES
        )


# Global configuration instance
config = Config()
