"""
Canonical catalog construction for LabMatch.
"""
