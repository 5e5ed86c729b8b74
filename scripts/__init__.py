"""
Timeline Correlator Scripts Package

This package contains the extraction and correlation scripts organized into
logical subdirectories:

- collectors/: Turning location-history exports into record tables
- processors/: Correlating record tables and writing match reports
"""
