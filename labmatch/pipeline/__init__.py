"""
Pipeline orchestration and command-line entry point for LabMatch.
"""
