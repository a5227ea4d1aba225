"""
Per-record validation against the branch field contract.

Only the identity fields (``branchCode``, ``name``) decide whether a
record is valid. Format problems and incomplete opening hours are
reported alongside but never reject a record on their own.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

from branchimport.schemas.branch import IDENTITY_FIELDS, WEEKDAYS, RawBranch

PHONE_RE = re.compile(r"^\+[0-9]{10,15}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2,3}$")
TIME_RE = re.compile(r"^(?:(?:[01]?\d|2[0-3]):[0-5]\d|24:00)$")

# Coordinate field -> inclusive absolute bound
COORDINATE_BOUNDS: dict[str, float] = {"latitude": 90.0, "longitude": 180.0}


@dataclass(frozen=True)
class ValidationErrorDetail:
    """What is wrong with one record."""

    message: str
    missing_fields: tuple[str, ...] = ()
    invalid_fields: tuple[str, ...] = ()
    missing_days: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "missingFields": list(self.missing_fields),
            "invalidFields": list(self.invalid_fields),
            "missingDays": list(self.missing_days),
        }


@dataclass(frozen=True)
class ValidationError:
    """
    Validation problems of one record, located by its batch position.

    Attributes:
        index: 0-based position of the record in the extracted batch.
        branch_code: Branch code, if the record had one.
        branch_name: Branch name, if the record had one.
        error: The individual problems.
    """

    index: int
    error: ValidationErrorDetail
    branch_code: str | None = None
    branch_name: str | None = None

    @property
    def is_blocking(self) -> bool:
        """True when the record lacks an identity field."""
        return bool(self.error.missing_fields)

    def to_dict(self) -> dict[str, Any]:
        """Report shape with camelCase keys; absent identity values are null."""
        return {
            "index": self.index,
            "branchCode": self.branch_code,
            "branchName": self.branch_name,
            "error": self.error.to_dict(),
        }


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one record."""

    valid: bool
    error: ValidationError | None = None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_time(value: Any) -> bool:
    text = _text(value)
    return text is not None and TIME_RE.match(text) is not None


@dataclass
class Validator:
    """
    Applies the branch field rules to extracted records.

    Stateless apart from its rule configuration, so one instance can
    validate any number of batches.

    Attributes:
        required_fields: Fields whose absence makes a record invalid.
    """

    required_fields: tuple[str, ...] = IDENTITY_FIELDS

    def validate(self, raw: RawBranch, index: int) -> ValidationOutcome:
        """
        Validate one record. Every rule is evaluated.

        Args:
            raw: Extracted record.
            index: Position of the record in its batch.

        Returns:
            Outcome with ``valid`` False only when a required field is
            missing; ``error`` is set whenever any rule was violated.
        """
        missing = self.missing_fields(raw)
        invalid = self.invalid_fields(raw)
        missing_days = self.missing_days(raw)

        if not (missing or invalid or missing_days):
            return ValidationOutcome(valid=True)

        detail = ValidationErrorDetail(
            message=self._message(missing, invalid, missing_days),
            missing_fields=tuple(missing),
            invalid_fields=tuple(invalid),
            missing_days=tuple(missing_days),
        )
        error = ValidationError(
            index=index,
            error=detail,
            branch_code=_text(raw.get("branchCode")),
            branch_name=_text(raw.get("name")),
        )
        return ValidationOutcome(valid=not missing, error=error)

    def missing_fields(self, raw: RawBranch) -> list[str]:
        """Required fields that are absent or blank."""
        return [name for name in self.required_fields if _text(raw.get(name)) is None]

    def invalid_fields(self, raw: RawBranch) -> list[str]:
        """``"<field>: <problem>"`` entries for present values with a bad format."""
        problems: list[str] = []

        email = _text(raw.get("email"))
        if email is not None and not EMAIL_RE.match(email):
            problems.append("email: invalid format")

        phone = _text(raw.get("phone"))
        if phone is not None and not PHONE_RE.match(phone):
            problems.append("phone: invalid format")

        for name, bound in COORDINATE_BOUNDS.items():
            if name not in raw:
                continue
            value = raw.get(name)
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
            ):
                problems.append(f"{name}: not numeric")
            elif abs(value) > bound:
                problems.append(f"{name}: out of range")

        country_code = _text(raw.get("countryCode"))
        if country_code is not None and not COUNTRY_CODE_RE.match(country_code):
            problems.append("countryCode: invalid format")

        return problems

    def missing_days(self, raw: RawBranch) -> list[str]:
        """
        Weekdays without a complete ``open``/``closed`` pair.

        Only checked when the record carries opening hours at all; a
        record without any opening-hours data is not flagged.
        """
        hours = raw.get("openingHours")
        if not isinstance(hours, Mapping):
            return []
        missing: list[str] = []
        for day in WEEKDAYS:
            entry = hours.get(day)
            if not isinstance(entry, Mapping):
                missing.append(day)
            elif not (_is_time(entry.get("open")) and _is_time(entry.get("closed"))):
                missing.append(day)
        return missing

    @staticmethod
    def _message(missing: list[str], invalid: list[str], missing_days: list[str]) -> str:
        parts: list[str] = []
        if missing:
            parts.append(f"Missing required fields: {', '.join(missing)}")
        if invalid:
            parts.append(f"Invalid fields: {'; '.join(invalid)}")
        if missing_days:
            parts.append(f"Incomplete opening hours: {', '.join(missing_days)}")
        return ". ".join(parts)
