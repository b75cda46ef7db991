"""Browser-based lucky draw: upload a participant CSV, draw winners after a short suspense."""

__version__ = "1.0.0"
