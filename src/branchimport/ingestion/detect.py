"""
Feed format detection.

Classifies a raw payload by sniffing its text. Checks run in a fixed
priority order: a var_dump dump also looks like plain text, and JSON
would pass a naive comma check for CSV.
"""

import json
from enum import Enum
from pathlib import PurePath

from branchimport.utils.logging import get_logger

log = get_logger(__name__)

# Wrapper element that marks an OTA location search response
OTA_WRAPPER = "OTA_VehLocSearchRS"


class Format(str, Enum):
    """Supported feed formats."""

    XML = "xml"
    PHP_SERIALIZED = "php_serialized"
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    UNKNOWN = "unknown"


EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm", ".xls"})
EXCEL_MIME_TYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/vnd.ms-excel.sheet.macroenabled.12",
    }
)


def decode_text(data: bytes | str) -> str:
    """Decode a payload as UTF-8, dropping a BOM and replacing bad bytes."""
    if isinstance(data, str):
        return data.lstrip("\ufeff")
    return data.decode("utf-8", errors="replace").lstrip("\ufeff")


def _first_non_empty_lines(text: str, n: int) -> list[str]:
    lines: list[str] = []
    for line in text.splitlines():
        if line.strip():
            lines.append(line)
            if len(lines) == n:
                break
    return lines


def detect_format(data: bytes | str) -> Format:
    """
    Detect the feed format of a raw payload.

    Excel is never returned: spreadsheet bytes are binary and must be
    selected explicitly with ``format_from_hint``.

    Args:
        data: Raw payload as bytes or text.

    Returns:
        Detected format, ``Format.UNKNOWN`` when nothing matched.
    """
    text = decode_text(data).strip()

    if not text:
        return Format.UNKNOWN

    if text.startswith("array(") and OTA_WRAPPER in text:
        return Format.PHP_SERIALIZED

    if text.startswith("<") or "<?xml" in text or "<OTA_" in text:
        return Format.XML

    try:
        json.loads(text)
    except ValueError:
        pass
    else:
        return Format.JSON

    lines = _first_non_empty_lines(text, 2)
    if len(lines) == 2 and all("," in line for line in lines):
        return Format.CSV

    log.debug("No format heuristic matched", length=len(text))
    return Format.UNKNOWN


def format_from_hint(
    filename: str | None = None,
    mime: str | None = None,
) -> Format | None:
    """
    Pick a format from a transport-level hint.

    Only spreadsheets need this; every text format is sniffed.

    Args:
        filename: Uploaded file name.
        mime: Declared MIME type.

    Returns:
        ``Format.EXCEL`` for spreadsheet hints, otherwise None.
    """
    if mime and mime.split(";")[0].strip().lower() in EXCEL_MIME_TYPES:
        return Format.EXCEL
    if filename and PurePath(filename).suffix.lower() in EXCEL_SUFFIXES:
        return Format.EXCEL
    return None
