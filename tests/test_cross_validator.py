"""Tests for identity/report consistency checks."""

from docextract.extraction.records import IdentityRecord, ReportRecord
from docextract.validation.cross_validator import ValidationResult, cross_validate, names_match


class TestNamesMatch:
    """Tests for first-token name matching."""

    def test_first_name_contained(self) -> None:
        assert names_match("Akshat Kumar Singh", "Akshat") is True

    def test_either_direction(self) -> None:
        assert names_match("Akshat", "Mr Akshat Kumar") is True

    def test_case_insensitive(self) -> None:
        assert names_match("SIDDHARTH", "siddharth sharma") is True

    def test_different_people(self) -> None:
        assert names_match("Siddharth", "Priya Sharma") is False


class TestCrossValidate:
    """Tests for the cross_validate function."""

    def test_consistent_documents(self) -> None:
        result = cross_validate(
            IdentityRecord(name="Akshat Kumar Singh", gender="Male"),
            ReportRecord(patient_name="Akshat", gender="male"),
        )
        assert isinstance(result, ValidationResult)
        assert result.is_valid is True
        assert result.warnings == []

    def test_gender_mismatch(self) -> None:
        result = cross_validate(
            IdentityRecord(name="Akshat Kumar", gender="Male"),
            ReportRecord(patient_name="Akshat Kumar", gender="Female"),
        )
        assert result.is_valid is False
        assert len(result.warnings) == 1
        assert "Gender" in result.warnings[0]

    def test_name_mismatch(self) -> None:
        result = cross_validate(
            IdentityRecord(name="Siddharth"),
            ReportRecord(patient_name="Priya Sharma"),
        )
        assert result.is_valid is False
        assert "Name" in result.warnings[0]

    def test_both_mismatches(self) -> None:
        result = cross_validate(
            IdentityRecord(name="Siddharth", gender="Male"),
            ReportRecord(patient_name="Priya Sharma", gender="Female"),
        )
        assert len(result.warnings) == 2

    def test_missing_fields_are_not_compared(self) -> None:
        result = cross_validate(IdentityRecord(name="Siddharth"), ReportRecord(gender="Female"))
        assert result.is_valid is True

    def test_to_dict(self) -> None:
        result = ValidationResult(is_valid=False, warnings=["Gender mismatch"])
        assert result.to_dict() == {"is_valid": False, "warnings": ["Gender mismatch"]}
