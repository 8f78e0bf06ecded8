"""
Static rule tables for LabMatch.

Blocklists, the medical synonym dictionary and the ordered category
classifier. Pure data plus the small helpers that read it.
"""
