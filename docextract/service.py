"""Public extraction operations used by the registration workflow.

A single :class:`ExtractionOrchestrator` is built lazily from
``load_config()`` and shared by every call in the process. Callers that
need custom backends pass their own orchestrator.
"""

from functools import lru_cache
from pathlib import Path

from docextract.extraction.orchestrator import ExtractionOrchestrator
from docextract.extraction.records import IdentityRecord, ReportRecord
from docextract.utils.config import load_config
from docextract.utils.logger import setup_logging
from docextract.validation.cross_validator import ValidationResult, cross_validate

__all__ = [
    "cross_validate",
    "default_orchestrator",
    "extract_blood_group",
    "extract_identity_document",
    "extract_report_document",
    "verify_documents",
]


@lru_cache(maxsize=1)
def default_orchestrator() -> ExtractionOrchestrator:
    """Build the process-wide orchestrator once."""
    config = load_config()
    setup_logging(config.log_level)
    return ExtractionOrchestrator(config)


def extract_identity_document(
    path: Path, orchestrator: ExtractionOrchestrator | None = None
) -> IdentityRecord:
    """Extract an identity card.

    Raises:
        TerminalExtractionFailure: With a remediation hint for the user.
    """
    return (orchestrator or default_orchestrator()).extract_identity(Path(path))


def extract_report_document(
    path: Path, orchestrator: ExtractionOrchestrator | None = None
) -> ReportRecord:
    """Extract a blood-group report.

    Raises:
        TerminalExtractionFailure: With a remediation hint for the user.
    """
    return (orchestrator or default_orchestrator()).extract_report(Path(path))


def extract_blood_group(
    path: Path, orchestrator: ExtractionOrchestrator | None = None
) -> dict[str, str | None]:
    """Return only the blood group of a report and the stage that read it."""
    record = extract_report_document(path, orchestrator)
    return {"bloodGroup": record.blood_group, "method": record.extraction_method.value}


def verify_documents(
    identity_path: Path,
    report_path: Path,
    orchestrator: ExtractionOrchestrator | None = None,
) -> tuple[IdentityRecord, ReportRecord, ValidationResult]:
    """Extract both documents and check that they describe one person.

    Returns:
        Tuple of (identity record, report record, cross-validation result).

    Raises:
        TerminalExtractionFailure: If either document cannot be extracted.
    """
    identity = extract_identity_document(identity_path, orchestrator)
    report = extract_report_document(report_path, orchestrator)
    return identity, report, cross_validate(identity, report)
