"""Consistency checks between an identity card and a blood report."""

from dataclasses import dataclass, field

from docextract.extraction.records import IdentityRecord, ReportRecord
from docextract.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Outcome of a cross-document check. Valid when there are no warnings."""

    is_valid: bool
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"is_valid": self.is_valid, "warnings": list(self.warnings)}


def _first_token(name: str) -> str:
    parts = name.split()
    return parts[0].casefold() if parts else ""


def names_match(first: str, second: str) -> bool:
    """Return True if either name's first token appears in the other name.

    ``"Akshat Kumar Singh"`` matches ``"Akshat"`` and ``"Mr Akshat"``.
    """
    a_token, b_token = _first_token(first), _first_token(second)
    if not a_token or not b_token:
        return False
    return a_token in second.casefold() or b_token in first.casefold()


def cross_validate(identity: IdentityRecord, report: ReportRecord) -> ValidationResult:
    """Compare the person on an identity card with the report's patient.

    Fields missing from either record are not compared.

    Args:
        identity: Extracted identity record.
        report: Extracted blood-report record.

    Returns:
        Validation result listing every mismatch found.
    """
    warnings: list[str] = []

    if identity.name and report.patient_name and not names_match(identity.name, report.patient_name):
        warnings.append(
            f"Name mismatch: identity card says '{identity.name}', "
            f"blood report says '{report.patient_name}'"
        )

    if identity.gender and report.gender and identity.gender.casefold() != report.gender.casefold():
        warnings.append(
            f"Gender mismatch: identity card says '{identity.gender}', "
            f"blood report says '{report.gender}'"
        )

    for warning in warnings:
        logger.warning(warning)
    return ValidationResult(is_valid=not warnings, warnings=warnings)
