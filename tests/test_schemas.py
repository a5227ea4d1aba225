"""Tests for the canonical branch schema and shared normalisation."""

import pytest

from branchimport.ingestion.base import (
    ExtractOptions,
    build_raw_branch,
    clean_string,
    coerce_bool,
    coerce_coordinate,
    hours_entry,
    normalize_opening_hours,
)
from branchimport.schemas import (
    CANONICAL_FIELDS,
    BranchRecord,
    RawBranch,
    resolve_alias,
    resolve_weekday,
)


class TestAliases:
    """Tests for source key resolution."""

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("Branchcode", "branchCode"),
            ("BRANCH_CODE", "branchCode"),
            ("code", "branchCode"),
            ("E-mail", "email"),
            ("Post Code", "postalCode"),
            ("UNLocode", "natoLocode"),
            ("countryCode", "countryCode"),
        ],
    )
    def test_resolve_alias(self, key: str, expected: str) -> None:
        """Test aliases resolve regardless of case and separators."""
        assert resolve_alias(key) == expected

    def test_unknown_key(self) -> None:
        """Test unknown keys are not mapped."""
        assert resolve_alias("FaxNumber") is None

    def test_every_canonical_name_resolves_to_itself(self) -> None:
        """Test canonical names are always accepted as keys."""
        for name in CANONICAL_FIELDS:
            assert resolve_alias(name) == name

    @pytest.mark.parametrize(
        ("key", "expected"),
        [("Monday", "monday"), ("SUNDAY", "sunday"), ("Wed", "wednesday"), ("Mo", None)],
    )
    def test_resolve_weekday(self, key: str, expected: str | None) -> None:
        """Test weekday keys and three-letter abbreviations."""
        assert resolve_weekday(key) == expected


class TestNormalisation:
    """Tests for the shared post-processing helpers."""

    def test_clean_string(self) -> None:
        """Test trimming and number formatting."""
        assert clean_string("  BR001 ") == "BR001"
        assert clean_string("   ") is None
        assert clean_string(12.0) == "12"
        assert clean_string(True) == "true"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("true", True), ("FALSE", False), (" True ", True), ("yes", "yes"), ("", None)],
    )
    def test_coerce_bool(self, value: str, expected: object) -> None:
        """Test only true/false strings become booleans."""
        assert coerce_bool(value) == expected

    def test_coerce_coordinate(self) -> None:
        """Test numeric text becomes float and other text is kept."""
        assert coerce_coordinate("53.3656") == pytest.approx(53.3656)
        assert coerce_coordinate(" -2.27 ") == pytest.approx(-2.27)
        assert coerce_coordinate(7) == 7.0
        assert coerce_coordinate("north") == "north"
        assert coerce_coordinate("") is None

    def test_hours_entry_splits_range(self) -> None:
        """Test a combined range is split into open and closed."""
        assert hours_entry("09:00 - 22:00", None) == {"open": "09:00", "closed": "22:00"}
        assert hours_entry("08:00", "18:00") == {"open": "08:00", "closed": "18:00"}
        assert hours_entry("closed", None) == {"open": "closed"}

    def test_normalize_opening_hours(self) -> None:
        """Test day keys are canonicalised and unknown keys dropped."""
        hours = normalize_opening_hours(
            {
                "Monday": {"Open": "09:00", "Closed": "17:00"},
                "TUE": "10:00-16:00",
                "Holiday": "closed",
            }
        )
        assert hours == {
            "monday": {"open": "09:00", "closed": "17:00"},
            "tuesday": {"open": "10:00", "closed": "16:00"},
        }

    def test_country_backfill_only_when_missing(self) -> None:
        """Test the fallback country never overrides a feed value."""
        options = ExtractOptions(default_country_code="GB")
        assert build_raw_branch({"countryCode": "FR"}, None, options).get("countryCode") == "FR"
        assert build_raw_branch({"countryCode": " "}, None, options).get("countryCode") == "GB"


class TestBranchRecord:
    """Tests for BranchRecord construction."""

    def test_from_raw(self, airport_branch_fields: dict) -> None:
        """Test typed fields are carried over."""
        raw = build_raw_branch(airport_branch_fields, {"Branchcode": "BR001"})
        record = BranchRecord.from_raw(raw)

        assert record.branch_code == "BR001"
        assert record.at_airport is True
        assert record.latitude == pytest.approx(53.3656)
        assert record.raw_source == {"Branchcode": "BR001"}

    def test_uncoerced_values_left_unset(self) -> None:
        """Test non-numeric coordinates and non-boolean flags are not stored."""
        raw = RawBranch(fields={"latitude": "north", "atAirport": "maybe"})
        record = BranchRecord.from_raw(raw)
        assert record.latitude is None
        assert record.at_airport is None

    def test_opening_hours_are_read_only(self) -> None:
        """Test opening hours cannot be mutated after construction."""
        raw = RawBranch(fields={"openingHours": {"monday": {"open": "09:00"}}})
        record = BranchRecord.from_raw(raw)
        with pytest.raises(TypeError):
            record.opening_hours["monday"] = {}  # type: ignore[index]

    def test_hashable_with_opening_hours(self) -> None:
        """Test records with opening hours can be used in sets."""
        raw = RawBranch(
            fields={"branchCode": "A1", "openingHours": {"monday": {"open": "09:00"}}}
        )
        first = BranchRecord.from_raw(raw)
        second = BranchRecord.from_raw(raw)

        assert hash(first) == hash(second)
        assert len({first, second}) == 1
        assert first != BranchRecord(branch_code="A1")

    def test_is_unmapped(self) -> None:
        """Test branches without a UN/LOCODE are flagged."""
        assert BranchRecord(branch_code="A1").is_unmapped
        assert not BranchRecord(branch_code="A1", nato_locode="GBMAN").is_unmapped

    def test_to_dict_omits_unset(self) -> None:
        """Test the camelCase form skips unset fields."""
        record = BranchRecord(branch_code="A1", name="One", country_code="GB")
        assert record.to_dict() == {"branchCode": "A1", "name": "One", "countryCode": "GB"}

    def test_equality_ignores_source(self) -> None:
        """Test records from different sources compare equal."""
        assert BranchRecord(branch_code="A1", raw_source={"a": 1}) == BranchRecord(
            branch_code="A1", raw_source="<xml/>"
        )
