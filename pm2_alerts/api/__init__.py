"""
HTTP ingest API
"""

from .server import IngestServer

__all__ = ["IngestServer"]
