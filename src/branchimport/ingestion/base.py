"""
Shared extractor plumbing.

Every extractor collects canonical field values from its format and
passes them through ``build_raw_branch``, which applies the common
post-processing: trimming, boolean and coordinate coercion, opening-hours
canonicalisation and country backfill.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from branchimport.schemas.branch import RawBranch, resolve_weekday
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_TIME_RANGE_RE = re.compile(r"^\s*(\d{1,2}:\d{2})\s*[-–—]\s*(\d{1,2}:\d{2})\s*$")

_TRUE_STRINGS = frozenset({"true"})
_FALSE_STRINGS = frozenset({"false"})


@dataclass(frozen=True)
class ExtractOptions:
    """
    Per-run extraction options.

    Attributes:
        default_country_code: Country code backfilled when a record has
            none. Passed explicitly so concurrent runs never share it.
    """

    default_country_code: str | None = None


Extractor = Callable[..., list[RawBranch]]


def clean_string(value: Any) -> str | None:
    """Trim a scalar to text; empty results become None."""
    if value is None:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value)) if abs(value) < 1e15 else str(value)
    else:
        text = str(value)
    text = text.strip()
    return text or None


def coerce_bool(value: Any) -> Any:
    """Parse "true"/"false" (any case); other values pass through."""
    if isinstance(value, bool):
        return value
    text = clean_string(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    return text


def coerce_coordinate(value: Any) -> Any:
    """
    Convert numbers and numeric-looking text to float.

    Non-numeric text is returned trimmed so the validator can report it.
    """
    if isinstance(value, bool):
        return clean_string(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = clean_string(value)
    if text is None:
        return None
    if _NUMERIC_RE.match(text):
        return float(text)
    return text


def split_time_range(value: Any) -> tuple[str, str] | None:
    """Split an ``HH:MM-HH:MM`` string into (open, closed)."""
    text = clean_string(value)
    if text is None:
        return None
    match = _TIME_RANGE_RE.match(text)
    if match is None:
        return None
    return match.group(1), match.group(2)


def hours_entry(open_value: Any, closed_value: Any) -> dict[str, str]:
    """
    Build one day's opening-hours entry.

    A combined range in the open slot (``"09:00 - 22:00"``) is split when
    no separate closing time was given.
    """
    open_text = clean_string(open_value)
    closed_text = clean_string(closed_value)
    if open_text is not None and closed_text is None:
        both = split_time_range(open_text)
        if both is not None:
            open_text, closed_text = both
    entry: dict[str, str] = {}
    if open_text is not None:
        entry["open"] = open_text
    if closed_text is not None:
        entry["closed"] = closed_text
    return entry


def normalize_opening_hours(hours: Mapping[Any, Any]) -> dict[str, dict[str, str]]:
    """
    Canonicalise an opening-hours map.

    Day keys are matched case-insensitively and emitted lowercase; keys
    that are not weekdays are dropped. Entries may already be
    ``{"open", "closed"}`` maps or ``HH:MM-HH:MM`` strings.
    """
    result: dict[str, dict[str, str]] = {}
    for key, entry in hours.items():
        day = resolve_weekday(key)
        if day is None:
            log.debug("Ignoring unknown opening-hours key", key=str(key))
            continue
        if isinstance(entry, Mapping):
            lowered = {str(k).lower(): v for k, v in entry.items()}
            result[day] = hours_entry(lowered.get("open"), lowered.get("closed"))
        else:
            both = split_time_range(entry)
            result[day] = {"open": both[0], "closed": both[1]} if both else {}
    return result


def normalize_fields(
    fields: Mapping[str, Any],
    options: ExtractOptions | None = None,
) -> dict[str, Any]:
    """
    Apply the common post-processing to canonical field values.

    Args:
        fields: Canonical field name -> value as read from the feed.
        options: Extraction options (country backfill).

    Returns:
        Normalized map holding only non-empty values.
    """
    result: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "openingHours":
            if isinstance(value, Mapping):
                result[name] = normalize_opening_hours(value)
            continue
        if name == "atAirport":
            value = coerce_bool(value)
        elif name in ("latitude", "longitude"):
            value = coerce_coordinate(value)
        else:
            value = clean_string(value)
        if value is not None:
            result[name] = value

    if "countryCode" not in result and options and options.default_country_code:
        result["countryCode"] = options.default_country_code

    return result


def build_raw_branch(
    fields: Mapping[str, Any],
    source: Any,
    options: ExtractOptions | None = None,
) -> RawBranch:
    """Normalize collected fields into a RawBranch."""
    return RawBranch(fields=normalize_fields(fields, options), source=source)
