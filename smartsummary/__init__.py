"""Smart Summary - streaming text summarization proxy."""

__version__ = "1.0.0"
