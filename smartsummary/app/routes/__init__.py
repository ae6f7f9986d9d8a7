"""Smart Summary Routes Package.

This package contains all route handlers organized by domain:
- health: Health check and monitoring endpoints
- summary: Streaming summarization endpoints
"""
from smartsummary.app.routes import health, summary

__all__ = ["health", "summary"]
