"""
Feed ingestion: format detection and per-format field extraction.

Every extractor turns a raw payload into ``RawBranch`` entries keyed by
canonical field names, so validation never sees format differences.
"""

from branchimport.ingestion.base import ExtractOptions
from branchimport.ingestion.detect import Format, detect_format, format_from_hint
from branchimport.ingestion.registry import EXTRACTORS, extract

__all__ = [
    "EXTRACTORS",
    "ExtractOptions",
    "Format",
    "detect_format",
    "extract",
    "format_from_hint",
]
