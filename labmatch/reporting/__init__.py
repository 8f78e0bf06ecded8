"""
Reporting module for LabMatch.

Builds the metadata block and console summary of a catalog build and the
optional pair-level match report.
"""
