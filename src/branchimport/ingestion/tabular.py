"""
CSV and spreadsheet branch extraction.

Both formats are read into a DataFrame with every cell as text, then
share the same header handling: column names are alias-resolved
case-insensitively, and weekday columns (``Monday``..``Sunday``) holding
``HH:MM-HH:MM`` ranges populate ``openingHours``.
"""

import io
import zipfile
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from branchimport.errors import ParseError
from branchimport.ingestion.base import ExtractOptions, build_raw_branch, hours_entry
from branchimport.ingestion.detect import decode_text
from branchimport.schemas.branch import RawBranch, resolve_alias, resolve_weekday
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

# Compound-file header of legacy .xls workbooks
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def map_columns(columns: list[str]) -> tuple[dict[str, str], dict[str, str]]:
    """
    Resolve header names.

    Args:
        columns: Header names as read from the file.

    Returns:
        Tuple of (column -> canonical field, column -> weekday). Columns
        that match neither are ignored. When two columns resolve to the
        same field the leftmost one wins.
    """
    fields: dict[str, str] = {}
    days: dict[str, str] = {}
    for column in columns:
        canonical = resolve_alias(column)
        if canonical is not None and canonical != "openingHours":
            if canonical not in fields.values():
                fields[column] = canonical
            continue
        day = resolve_weekday(column)
        if day is not None and day not in days.values():
            days[column] = day
    return fields, days


def frame_to_branches(
    df: pd.DataFrame,
    options: ExtractOptions | None = None,
    *,
    format_name: str = "csv",
) -> list[RawBranch]:
    """
    Convert a text DataFrame into RawBranches.

    Args:
        df: One row per branch, header as columns, cells as text.
        options: Extraction options.
        format_name: Source format, used in error messages.

    Returns:
        One RawBranch per non-empty row, in row order.

    Raises:
        ParseError: If no column resolves to a branch field.
    """
    df = df.rename(columns=lambda c: str(c).strip())
    df = df.fillna("")

    field_columns, day_columns = map_columns(list(df.columns))
    if not field_columns and not day_columns:
        msg = "header has no recognised branch columns"
        raise ParseError(msg, format_name=format_name)

    unknown = [c for c in df.columns if c not in field_columns and c not in day_columns]
    if unknown:
        log.debug("Ignoring unrecognised columns", columns=unknown)

    branches: list[RawBranch] = []
    for row in df.to_dict(orient="records"):
        if all(str(value).strip() == "" for value in row.values()):
            continue

        fields: dict[str, Any] = {
            canonical: row[column] for column, canonical in field_columns.items()
        }

        hours = {
            day: hours_entry(row[column], None)
            for column, day in day_columns.items()
            if str(row[column]).strip()
        }
        if hours:
            fields["openingHours"] = hours

        branches.append(build_raw_branch(fields, row, options))

    return branches


def extract_csv(
    data: bytes | str,
    options: ExtractOptions | None = None,
) -> list[RawBranch]:
    """
    Extract branches from CSV text.

    Args:
        data: Raw CSV payload with a header row.
        options: Extraction options.

    Returns:
        One RawBranch per non-empty data row.

    Raises:
        ParseError: If the input has no header or cannot be tokenised.
    """
    text = decode_text(data)
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError("no header row", format_name="csv") from e
    except pd.errors.ParserError as e:
        msg = f"malformed CSV: {e}"
        raise ParseError(msg, format_name="csv") from e

    branches = frame_to_branches(df, options, format_name="csv")
    log.info("Extracted CSV branches", count=len(branches))
    return branches


def extract_excel(
    data: bytes,
    options: ExtractOptions | None = None,
) -> list[RawBranch]:
    """
    Extract branches from the first worksheet of an ``.xlsx`` workbook.

    Args:
        data: Decoded workbook bytes (see ``pipeline.decode_upload`` for
            base64 uploads).
        options: Extraction options.

    Returns:
        One RawBranch per non-empty sheet row.

    Raises:
        ParseError: If the bytes are not a readable ``.xlsx`` workbook, or
            are a legacy ``.xls`` workbook.
    """
    if isinstance(data, str):
        msg = "workbook payload must be bytes"
        raise ParseError(msg, format_name="excel")
    if data.startswith(OLE2_MAGIC):
        msg = "legacy .xls workbooks are not supported; save the sheet as .xlsx"
        raise ParseError(msg, format_name="excel")

    try:
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            dtype=str,
            keep_default_na=False,
            engine="openpyxl",
        )
    except (ValueError, OSError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
        msg = f"unreadable workbook: {e}"
        raise ParseError(msg, format_name="excel") from e

    branches = frame_to_branches(df, options, format_name="excel")
    log.info("Extracted spreadsheet branches", count=len(branches))
    return branches
