"""
Matching engine for LabMatch.

Pairwise similarity scoring with hard gates and greedy one-to-one
assignment of right-catalog tests to left-catalog tests.
"""
