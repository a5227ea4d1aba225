"""
Canonical branch schema.

Every extractor converges on the field names defined here. Field names
are the camelCase names used in import reports (``missingFields``,
``invalidFields``); ``BranchRecord`` exposes them as snake_case attributes.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Weekday(str, Enum):
    """Weekday keys used in opening-hours maps."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


WEEKDAYS: tuple[str, ...] = tuple(day.value for day in Weekday)

# Identity fields: the only fields whose absence invalidates a record
IDENTITY_FIELDS: tuple[str, ...] = ("branchCode", "name")

# Canonical field name -> BranchRecord attribute
FIELD_ATTRIBUTES: dict[str, str] = {
    "branchCode": "branch_code",
    "name": "name",
    "atAirport": "at_airport",
    "locationType": "location_type",
    "collectionType": "collection_type",
    "status": "status",
    "email": "email",
    "phone": "phone",
    "latitude": "latitude",
    "longitude": "longitude",
    "addressLine": "address_line",
    "city": "city",
    "postalCode": "postal_code",
    "country": "country",
    "countryCode": "country_code",
    "natoLocode": "nato_locode",
    "openingHours": "opening_hours",
}

CANONICAL_FIELDS: tuple[str, ...] = tuple(FIELD_ATTRIBUTES)

STRING_FIELDS: frozenset[str] = frozenset(CANONICAL_FIELDS) - {
    "atAirport",
    "latitude",
    "longitude",
    "openingHours",
}

# Source key variants per canonical field. Matching is case-insensitive,
# so only spellings that differ by more than case are listed.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "branchCode": ("Branchcode", "Code", "BranchCode", "Branch_Code"),
    "name": ("Name", "BranchName", "LocationName"),
    "atAirport": ("AtAirport", "Airport"),
    "locationType": ("LocationType",),
    "collectionType": ("CollectionType",),
    "status": ("Status",),
    "email": ("Email", "EmailAddress", "E-mail"),
    "phone": ("Phone", "Telephone", "PhoneNumber", "Tel"),
    "latitude": ("Latitude", "Lat"),
    "longitude": ("Longitude", "Lon", "Lng", "Long"),
    "addressLine": ("AddressLine", "Address", "Street"),
    "city": ("CityName", "City"),
    "postalCode": ("PostalCode", "PostCode", "Zip", "ZipCode"),
    "country": ("Country", "CountryName"),
    "countryCode": ("CountryCode", "Country_Code"),
    "natoLocode": ("NatoLocode", "UNLocode", "Locode", "UN_Locode"),
    "openingHours": ("OpeningHours", "Opening", "OpeningTimes"),
}


def _alias_key(name: str) -> str:
    return name.replace("_", "").replace("-", "").replace(" ", "").lower()


_ALIAS_LOOKUP: dict[str, str] = {}
for _canonical, _aliases in FIELD_ALIASES.items():
    _ALIAS_LOOKUP[_alias_key(_canonical)] = _canonical
    for _alias in _aliases:
        _ALIAS_LOOKUP[_alias_key(_alias)] = _canonical


def resolve_alias(source_key: str) -> str | None:
    """
    Map a source column/key name to its canonical field name.

    Matching ignores case, underscores, hyphens and spaces.

    Args:
        source_key: Key as it appears in the supplier feed.

    Returns:
        Canonical field name, or None if the key is not recognised.
    """
    return _ALIAS_LOOKUP.get(_alias_key(str(source_key)))


def resolve_weekday(source_key: str) -> str | None:
    """Canonical lowercase weekday for a case-insensitive day key."""
    key = str(source_key).strip().lower()
    if key in WEEKDAYS:
        return key
    # Three-letter abbreviations (Mon, Tue, ...)
    for day in WEEKDAYS:
        if len(key) == 3 and day.startswith(key):
            return day
    return None


@dataclass(frozen=True)
class RawBranch:
    """
    Extractor output for one feed entry, prior to validation.

    Attributes:
        fields: Canonical field name -> normalized value. Only non-empty
            values are present.
        source: The original nested structure the entry was read from.
            Excluded from equality so that the same branch extracted from
            different formats compares equal.
    """

    fields: Mapping[str, Any]
    source: Any = field(default=None, compare=False, repr=False)

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a canonical field."""
        return self.fields.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self.fields


def _typed_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class BranchRecord:
    """
    Canonical branch record.

    Built once per extracted entry and never modified afterwards. All
    fields are optional here; validation results are kept separately in
    ``ValidationError`` entries.
    """

    branch_code: str | None = None
    name: str | None = None
    at_airport: bool | None = None
    location_type: str | None = None
    collection_type: str | None = None
    status: str | None = None
    email: str | None = None
    phone: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address_line: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None
    country_code: str | None = None
    nato_locode: str | None = None
    # read-only mappings are unhashable; equality still compares them
    opening_hours: Mapping[str, Mapping[str, str]] | None = field(
        default=None, hash=False
    )
    raw_source: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_raw(cls, raw: RawBranch) -> "BranchRecord":
        """
        Build a record from extractor output.

        Values that did not coerce to the field type (e.g. a non-numeric
        latitude) are left unset here; they remain visible in
        ``raw_source`` and are reported by the validator.
        """
        values: dict[str, Any] = {}
        for name in STRING_FIELDS:
            value = raw.get(name)
            if value is not None:
                values[FIELD_ATTRIBUTES[name]] = str(value)

        at_airport = raw.get("atAirport")
        if isinstance(at_airport, bool):
            values["at_airport"] = at_airport

        values["latitude"] = _typed_float(raw.get("latitude"))
        values["longitude"] = _typed_float(raw.get("longitude"))

        hours = raw.get("openingHours")
        if isinstance(hours, Mapping):
            values["opening_hours"] = MappingProxyType(
                {
                    day: MappingProxyType(dict(times))
                    for day, times in hours.items()
                    if isinstance(times, Mapping)
                }
            )

        return cls(**values, raw_source=raw.source)

    @property
    def is_unmapped(self) -> bool:
        """True when the branch has no UN/LOCODE assigned yet."""
        return not self.nato_locode

    def to_dict(self) -> dict[str, Any]:
        """Canonical camelCase representation, omitting unset fields."""
        result: dict[str, Any] = {}
        for name, attr in FIELD_ATTRIBUTES.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if name == "openingHours":
                value = {day: dict(times) for day, times in value.items()}
            result[name] = value
        return result
