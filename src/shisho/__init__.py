"""Directory integrity and version lineage tracking."""

__version__ = "0.1.0"
