"""
Data Collection Scripts

This module contains scripts for turning location-history exports into
record tables:
- Google Maps Timeline JSON export flattening
- Record table loading and validation
"""
