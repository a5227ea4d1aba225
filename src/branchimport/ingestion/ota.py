"""
Shared OTA location-response unwrapping.

JSON, XML and var_dump feeds all reduce to the same nested-map shape::

    {"OTA_VehLocSearchRS": {"VehMatchedLocs": [
        {"VehMatchedLoc": {"LocationDetail": {"attr": {...}, "Address": ...}}}
    ]}}

Attributes can sit under an ``attr`` map, an ``@attributes`` map, or as
``@_``-prefixed keys depending on which XML-to-map converter the supplier
used. Every attribute lookup tries those conventions in that order and
then the node's plain keys. Text content sits under ``value`` (or
``#text``).
"""

from typing import Any, Callable, Iterator, Mapping

from branchimport.errors import ParseError
from branchimport.ingestion.base import ExtractOptions, build_raw_branch, hours_entry
from branchimport.schemas.branch import RawBranch, resolve_alias, resolve_weekday
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

# Root keys recognised as an OTA location response (vendor spellings included)
OTA_WRAPPER_KEYS: tuple[str, ...] = (
    "OTA_VehLocSearchRS",
    "VehLocSearchRS",
    "OTA_VehLocSearchResponse",
)

TEXT_KEYS: tuple[str, ...] = ("value", "#text")
ATTRIBUTE_PREFIX = "@_"
_RESERVED_KEYS = frozenset({"attr", "@attributes", *TEXT_KEYS})
MAX_WRAPPER_DEPTH = 3


def _keyed_map(name: str) -> Callable[[Mapping[str, Any]], Mapping[str, Any]]:
    def lookup(node: Mapping[str, Any]) -> Mapping[str, Any]:
        value = node.get(name)
        return value if isinstance(value, Mapping) else {}

    lookup.__name__ = f"from_{name.strip('@')}"
    return lookup


def _prefixed_keys(node: Mapping[str, Any]) -> Mapping[str, Any]:
    return {
        str(key)[len(ATTRIBUTE_PREFIX) :]: value
        for key, value in node.items()
        if str(key).startswith(ATTRIBUTE_PREFIX)
    }


def _plain_keys(node: Mapping[str, Any]) -> Mapping[str, Any]:
    return {
        key: value
        for key, value in node.items()
        if key not in _RESERVED_KEYS and not str(key).startswith(ATTRIBUTE_PREFIX)
    }


# Tried in order for every attribute lookup
ATTRIBUTE_STRATEGIES: tuple[Callable[[Mapping[str, Any]], Mapping[str, Any]], ...] = (
    _keyed_map("attr"),
    _keyed_map("@attributes"),
    _prefixed_keys,
    _plain_keys,
)


def attribute_maps(node: Any) -> Iterator[Mapping[str, Any]]:
    """Yield the attribute maps of a node in lookup order."""
    if not isinstance(node, Mapping):
        return
    for strategy in ATTRIBUTE_STRATEGIES:
        attrs = strategy(node)
        if attrs:
            yield attrs


def _get_ci(mapping: Mapping[str, Any], name: str) -> Any:
    if name in mapping:
        return mapping[name]
    lowered = name.lower()
    for key, value in mapping.items():
        if str(key).lower() == lowered:
            return value
    return None


def get_attribute(node: Any, *names: str) -> Any:
    """
    Look up the first present attribute among ``names``.

    Names are matched case-insensitively. Nested ``{value, attr}`` nodes
    are unwrapped to their text.
    """
    for attrs in attribute_maps(node):
        for name in names:
            value = unwrap_value(_get_ci(attrs, name))
            if value is not None:
                return value
    return None


def unwrap_value(node: Any) -> Any:
    """Reduce a ``{value, attr}`` node (or a list of them) to its text."""
    if isinstance(node, list):
        for item in node:
            value = unwrap_value(item)
            if value not in (None, ""):
                return value
        return None
    if isinstance(node, Mapping):
        for key in TEXT_KEYS:
            if key in node:
                return unwrap_value(node[key])
        return None
    return node


def as_list(node: Any) -> list[Any]:
    """Treat a single node or a list of nodes uniformly."""
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def child(node: Any, name: str) -> Any:
    """Child element ``name`` of a node (case-insensitive)."""
    if not isinstance(node, Mapping):
        return None
    return _get_ci(_plain_keys(node), name)


def _address_fields(node: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if not isinstance(node, Mapping):
        text = unwrap_value(node)
        if text is not None:
            fields["addressLine"] = text
        return fields

    lines = [unwrap_value(line) for line in as_list(child(node, "AddressLine"))]
    lines = [str(line).strip() for line in lines if line not in (None, "")]
    if lines:
        fields["addressLine"] = ", ".join(lines)

    city = get_attribute(node, "CityName", "City")
    if city is not None:
        fields["city"] = city
    postal = get_attribute(node, "PostalCode", "PostCode", "Zip")
    if postal is not None:
        fields["postalCode"] = postal

    country_node = child(node, "CountryName")
    if country_node is None:
        country_node = child(node, "Country")
    fields.update(_country_fields(country_node))

    code = get_attribute(node, "CountryCode")
    if code is not None:
        fields.setdefault("countryCode", code)
    return fields


def _country_fields(node: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if node is None:
        return fields
    name = unwrap_value(node)
    if name is not None:
        fields["country"] = name
    if isinstance(node, Mapping):
        code = None
        for attrs in attribute_maps(node):
            code = _get_ci(attrs, "Code")
            if code is not None:
                break
        if code is not None:
            fields["countryCode"] = unwrap_value(code)
    return fields


def _phone_value(node: Any) -> Any:
    for item in as_list(node):
        if isinstance(item, Mapping):
            number = get_attribute(item, "PhoneNumber", "Number")
            if number is None:
                number = unwrap_value(item)
        else:
            number = item
        if number not in (None, ""):
            return number
    return None


def _opening_hours(node: Any) -> dict[str, dict[str, str]] | None:
    if not isinstance(node, Mapping):
        return None
    hours: dict[str, dict[str, str]] = {}
    for key, day_node in _plain_keys(node).items():
        day = resolve_weekday(key)
        if day is None:
            continue
        if isinstance(day_node, list):
            day_node = day_node[0] if day_node else None
        if isinstance(day_node, Mapping):
            hours[day] = hours_entry(
                get_attribute(day_node, "Open", "OpenTime"),
                get_attribute(day_node, "Closed", "Close", "CloseTime"),
            )
        else:
            hours[day] = hours_entry(day_node, None)
    return hours


def branch_fields(node: Mapping[str, Any]) -> dict[str, Any]:
    """
    Collect canonical fields from one branch node.

    Works for OTA ``LocationDetail`` nodes and flat branch objects alike.
    Earlier attribute conventions win when a field appears more than once.
    """
    fields: dict[str, Any] = {}

    def put(name: str, value: Any) -> None:
        if value is not None and name not in fields:
            fields[name] = value

    for attrs in attribute_maps(node):
        for key, value in attrs.items():
            canonical = resolve_alias(key)
            if canonical is None:
                continue
            if canonical == "openingHours":
                put(canonical, _opening_hours(value))
            elif canonical == "addressLine" and isinstance(value, Mapping):
                if any(k not in _RESERVED_KEYS for k in value):
                    for name, sub_value in _address_fields(value).items():
                        put(name, sub_value)
                else:
                    put(canonical, unwrap_value(value))
            elif canonical == "phone":
                put(canonical, _phone_value(value))
            elif canonical == "country" and isinstance(value, Mapping):
                for name, sub_value in _country_fields(value).items():
                    put(name, sub_value)
            else:
                put(canonical, unwrap_value(value))

    return fields


def find_ota_wrapper(root: Any, depth: int = 0) -> Mapping[str, Any] | None:
    """
    Locate the OTA response node in a parsed document.

    Returns:
        The wrapper node, the root itself when it already holds
        ``VehMatchedLocs``, or None.
    """
    if not isinstance(root, Mapping):
        return None
    for key in OTA_WRAPPER_KEYS:
        node = _get_ci(root, key)
        if isinstance(node, Mapping):
            return node
    if child(root, "VehMatchedLocs") is not None:
        return root
    if depth < MAX_WRAPPER_DEPTH:
        # e.g. SOAP Envelope/Body around the response
        for value in _plain_keys(root).values():
            found = find_ota_wrapper(value, depth + 1)
            if found is not None:
                return found
    return None


def location_details(wrapper: Mapping[str, Any]) -> list[Any]:
    """
    Flatten ``VehMatchedLocs[].VehMatchedLoc[].LocationDetail`` in document order.

    Empty details are kept so every entry keeps its batch position.
    """
    details: list[Any] = []
    # JSON lists one {VehMatchedLoc} per entry; XML nests repeated VehMatchedLoc
    # children under a single VehMatchedLocs element
    locs = child(wrapper, "VehMatchedLocs")
    if isinstance(locs, Mapping) and not locs:
        # <VehMatchedLocs/> holds no locations
        return details
    for entry in as_list(locs):
        matched = child(entry, "VehMatchedLoc")
        for loc in as_list(matched) if matched is not None else [entry]:
            detail = child(loc, "LocationDetail")
            details.extend(as_list(detail) if detail is not None else [loc])
    return details


def _supplier_errors(wrapper: Mapping[str, Any]) -> list[str]:
    messages: list[str] = []
    for errors in as_list(child(wrapper, "Errors")):
        for error in as_list(child(errors, "Error")) or [errors]:
            text = get_attribute(error, "ShortText", "Message") or unwrap_value(error)
            if text:
                messages.append(str(text))
    return messages


def extract_ota(
    root: Mapping[str, Any],
    options: ExtractOptions | None = None,
    *,
    format_name: str = "ota",
) -> list[RawBranch]:
    """
    Extract branches from a parsed OTA location response.

    Args:
        root: Parsed document (the wrapper or a map containing it).
        options: Extraction options.
        format_name: Source format, used in error messages.

    Returns:
        One RawBranch per ``LocationDetail``, in document order.

    Raises:
        ParseError: If no OTA wrapper is present, or the response carries
            supplier errors instead of locations.
    """
    wrapper = find_ota_wrapper(root)
    if wrapper is None:
        msg = f"no OTA location response found (expected one of {', '.join(OTA_WRAPPER_KEYS)})"
        raise ParseError(msg, format_name=format_name)

    if child(wrapper, "VehMatchedLocs") is None:
        errors = _supplier_errors(wrapper)
        if errors:
            msg = f"supplier returned errors: {'; '.join(errors)}"
            raise ParseError(msg, format_name=format_name)
        log.warning("OTA response contains no locations", format=format_name)
        return []

    details = location_details(wrapper)
    branches: list[RawBranch] = []
    for detail in details:
        fields = branch_fields(detail) if isinstance(detail, Mapping) else {}
        branches.append(build_raw_branch(fields, detail, options))
    log.info("Extracted OTA locations", format=format_name, count=len(branches))
    return branches
