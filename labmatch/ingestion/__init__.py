"""
Data ingestion module for LabMatch.

Loads lab catalogs and the specimen side table from JSON, validates their
schema, removes duplicate codes and joins specimen collection metadata.
"""
