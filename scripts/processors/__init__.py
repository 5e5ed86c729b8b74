"""
Data Processing Scripts

This module contains scripts for processing extracted record tables:
- Coordinate quantization and time window matching
- Record correlation across two tables
- Match report writing
"""
