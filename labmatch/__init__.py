"""
LabMatch - Canonical Lab Test Catalog Engine

Resolves lab test offerings from two independently curated laboratory
catalogs into canonical test concepts using text normalization, specimen
classification, rule-gated similarity scoring and greedy 1:1 assignment.
"""

__version__ = "1.0.0"
__author__ = "LabMatch Team"
