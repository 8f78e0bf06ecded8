"""
Hard gates for LabMatch.

Rejects candidate pairs that look alike on paper but are different tests:
blocklisted word pairs, conflicting numeric suffixes and incompatible
specimen types.
"""
