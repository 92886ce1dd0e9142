"""
libbids - BIDS datasets as queryable tables.

This package turns a BIDS directory tree into an in-memory table and
provides operations to filter, project, join, sort and iterate it.
"""

__version__ = "0.1.0"
