"""
Index files into a SQLite catalog of digests, sizes and modification times,
and find duplicates among them.
"""

__version__ = "1.0.0"
