"""kbseed - knowledge-base ingestion for the coaching assistant."""

__version__ = "0.1.0"
