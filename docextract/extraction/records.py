"""Structured records produced by the extraction pipeline."""

from dataclasses import asdict, dataclass
from enum import Enum

from docextract.validation.field_validators import CANONICAL_BLOOD_GROUPS


class ExtractionMethod(str, Enum):
    """Stage that produced a record."""

    REMOTE_OCR = "remote OCR"
    AI = "AI"
    LOCAL_OCR = "local OCR"
    NONE = "none"


class Confidence(str, Enum):
    """Coarse reliability label attached to every record."""

    HIGH = "high"
    LOW = "low"


@dataclass
class IdentityRecord:
    """Fields read from an identity card.

    Complete only when ``id_number`` holds exactly 12 digits.
    """

    id_number: str | None = None
    name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    derived_age: int | None = None
    extraction_method: ExtractionMethod = ExtractionMethod.NONE
    confidence: Confidence = Confidence.LOW

    @property
    def is_complete(self) -> bool:
        return bool(self.id_number) and len(self.id_number) == 12 and self.id_number.isdigit()

    @property
    def missing_fields(self) -> list[str]:
        return [name for name in ("id_number", "name", "date_of_birth") if not getattr(self, name)]

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["extraction_method"] = self.extraction_method.value
        data["confidence"] = self.confidence.value
        return data


@dataclass
class ReportRecord:
    """Fields read from a laboratory blood-group report.

    Complete only when ``blood_group`` is canonical.
    """

    blood_group: str | None = None
    patient_name: str | None = None
    patient_age: int | None = None
    gender: str | None = None
    test_date: str | None = None
    extraction_method: ExtractionMethod = ExtractionMethod.NONE
    confidence: Confidence = Confidence.LOW

    @property
    def is_complete(self) -> bool:
        return self.blood_group in CANONICAL_BLOOD_GROUPS

    @property
    def missing_fields(self) -> list[str]:
        return [name for name in ("blood_group", "patient_name") if not getattr(self, name)]

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["extraction_method"] = self.extraction_method.value
        data["confidence"] = self.confidence.value
        return data
