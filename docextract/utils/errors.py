"""Exception taxonomy for the extraction backends.

Adapters raise these instead of library-specific errors so that the
orchestrator can treat every stage failure the same way. Only
:class:`TerminalExtractionFailure` is meant to reach callers.
"""


class ExtractionError(Exception):
    """Base class for all extraction failures.

    Args:
        message: Human-readable description.
        backend: Name of the backend that failed (``"ocr.space"``,
            ``"ai"``, ``"tesseract"``, ``"regex"``...).
    """

    def __init__(self, message: str, backend: str = "unknown") -> None:
        super().__init__(message)
        self.backend = backend


class TransientProviderError(ExtractionError):
    """Network failure or timeout that survived the retry budget."""


class HardProviderError(ExtractionError):
    """The provider explicitly reported a failure. Never retried."""


class NoTextFoundError(ExtractionError):
    """The backend worked but returned no usable text."""


class UnsupportedFormatError(ExtractionError):
    """The input file type cannot be processed."""


class ParseError(ExtractionError):
    """Backend output could not be turned into fields."""


class ValidationRejection(ExtractionError):
    """A field was present but implausible. The field is nulled."""

    def __init__(self, field_name: str, value: object, reason: str) -> None:
        super().__init__(f"Rejected {field_name}={value!r}: {reason}", backend="validator")
        self.field_name = field_name
        self.value = value
        self.reason = reason


class TerminalExtractionFailure(ExtractionError):
    """Every stage was exhausted without producing a complete record.

    Args:
        message: Description naming the missing requirement.
        reason: ``"no_text"`` when no stage read any text,
            ``"missing_fields"`` when text was read but fields were missing.
        hint: Remediation advice for the end user.
        stage_errors: ``(stage, error message)`` pairs collected on the way.
    """

    NO_TEXT = "no_text"
    MISSING_FIELDS = "missing_fields"

    def __init__(
        self,
        message: str,
        reason: str,
        hint: str,
        stage_errors: list[tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(message, backend="orchestrator")
        self.reason = reason
        self.hint = hint
        self.stage_errors = list(stage_errors or [])

    def __str__(self) -> str:
        return f"{self.args[0]} {self.hint}"
