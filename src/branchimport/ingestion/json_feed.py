"""
JSON branch feed extraction.

Accepts a bare array of branch objects, a ``{"Branches": [...]}``
envelope, or an OTA-wrapped location response.
"""

import json
from typing import Any, Mapping

from branchimport.errors import ParseError
from branchimport.ingestion.base import ExtractOptions, build_raw_branch
from branchimport.ingestion.detect import decode_text
from branchimport.ingestion.ota import (
    as_list,
    branch_fields,
    child,
    extract_ota,
    find_ota_wrapper,
)
from branchimport.schemas.branch import RawBranch, resolve_alias
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

# Envelope key -> item key used by XML-to-JSON tools
BRANCH_LIST_KEYS: dict[str, str] = {"Branches": "Branch", "Locations": "Location"}


def _branch_list(document: Mapping[str, Any]) -> list[Any] | None:
    for key, item_key in BRANCH_LIST_KEYS.items():
        node = child(document, key)
        if node is None:
            continue
        if isinstance(node, Mapping):
            inner = child(node, item_key)
            if inner is not None:
                return as_list(inner)
        return as_list(node)
    return None


def _looks_like_branch(document: Mapping[str, Any]) -> bool:
    return any(resolve_alias(key) is not None for key in document) or "attr" in document


def extract_entries(
    entries: list[Any],
    options: ExtractOptions | None = None,
) -> list[RawBranch]:
    """
    Convert a list of branch objects into RawBranches.

    Entries that are not objects still produce a (field-less) RawBranch so
    batch positions stay aligned with the source.
    """
    branches: list[RawBranch] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            log.warning(
                "Branch entry is not an object",
                index=position,
                type=type(entry).__name__,
            )
            branches.append(build_raw_branch({}, entry, options))
            continue
        branches.append(build_raw_branch(branch_fields(entry), entry, options))
    return branches


def extract_json_document(
    document: Any,
    options: ExtractOptions | None = None,
    *,
    format_name: str = "json",
) -> list[RawBranch]:
    """
    Extract branches from an already-parsed JSON document.

    Args:
        document: Parsed JSON value.
        options: Extraction options.
        format_name: Source format, used in error messages.

    Returns:
        One RawBranch per branch entry, in document order.

    Raises:
        ParseError: If the document holds no recognisable branch list.
    """
    if isinstance(document, list):
        return extract_entries(document, options)

    if not isinstance(document, Mapping):
        msg = f"top-level value must be an array or object, got {type(document).__name__}"
        raise ParseError(msg, format_name=format_name)

    if find_ota_wrapper(document) is not None:
        return extract_ota(document, options, format_name=format_name)

    entries = _branch_list(document)
    if entries is not None:
        return extract_entries(entries, options)

    if _looks_like_branch(document):
        log.debug("Treating top-level object as a single branch")
        return extract_entries([document], options)

    msg = "no branch array, Branches envelope or OTA response found"
    raise ParseError(msg, format_name=format_name)


def extract_json(
    data: bytes | str,
    options: ExtractOptions | None = None,
) -> list[RawBranch]:
    """
    Extract branches from a JSON payload.

    Args:
        data: Raw JSON payload.
        options: Extraction options.

    Returns:
        One RawBranch per branch entry.

    Raises:
        ParseError: If the payload is not valid JSON or has no branches.
    """
    try:
        document = json.loads(decode_text(data))
    except ValueError as e:
        msg = f"invalid JSON: {e}"
        raise ParseError(msg, format_name="json") from e

    branches = extract_json_document(document, options)
    log.info("Extracted JSON branches", count=len(branches))
    return branches
