"""
Text normalization modules for LabMatch.

Canonicalizes raw lab test names and extracts the specimen type they imply
so that offerings from different catalogs can be compared.
"""
