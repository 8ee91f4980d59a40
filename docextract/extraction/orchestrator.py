"""Extraction waterfall over the OCR and parsing backends.

Stages run strictly in order (remote OCR, AI, local OCR with regex
rescue) and share one :class:`ExtractionContext` per request, so OCR
text fetched by an earlier stage is reused by later ones. The first
stage that yields a complete record wins. A stage that raises is
logged and skipped; only :class:`TerminalExtractionFailure` reaches the
caller.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path

from docextract.ocr.remote_engine import OCRSpaceClient
from docextract.ocr.result import OCRResult
from docextract.ocr.tesseract_engine import TesseractEngine
from docextract.preprocessing.pipeline import ImagePreprocessor
from docextract.utils.config import AppConfig
from docextract.utils.errors import ExtractionError, TerminalExtractionFailure
from docextract.utils.logger import get_logger, preview

from .ai_parser import AITextParser
from .records import Confidence, ExtractionMethod, IdentityRecord, ReportRecord
from .rule_extractor import RuleExtractor

logger = get_logger(__name__)

Record = IdentityRecord | ReportRecord

NO_TEXT_MESSAGE = "No text could be read from the document."
NO_TEXT_HINT = "Please upload a sharper, well-lit image."


@dataclass(frozen=True)
class DocumentKind:
    """Per-document-type settings for the waterfall."""

    name: str
    required_field: str
    subject: str
    table_mode: bool


IDENTITY = DocumentKind(name="identity", required_field="identity number", subject="Aadhaar", table_mode=False)
REPORT = DocumentKind(name="report", required_field="blood group", subject="blood report", table_mode=True)


@dataclass
class ExtractionContext:
    """Per-request state shared by the stages.

    Attributes:
        path: Document being processed.
        kind: Identity card or blood report.
        remote_result: Remote OCR output, once fetched.
        local_result: Local OCR output, once fetched.
        source: OCR result the latest record was parsed from.
        partial: Latest incomplete record, used to seed regex rescue.
        text_found: Whether any backend returned text.
        errors: ``(stage, message)`` for every failed stage.
    """

    path: Path
    kind: DocumentKind
    remote_result: OCRResult | None = None
    local_result: OCRResult | None = None
    local_error: ExtractionError | None = None
    source: OCRResult | None = None
    partial: Record | None = None
    text_found: bool = False
    errors: list[tuple[str, str]] = field(default_factory=list)


Stage = Callable[[ExtractionContext], Record | None]


class ExtractionOrchestrator:
    """Runs the cost-ordered extraction waterfall.

    Backends are built from ``config`` unless injected. The remote OCR
    and AI stages are present only when their client exists, which by
    default follows the ``enabled`` flags.

    Args:
        config: Application configuration.
        local_engine: Local OCR engine.
        remote_client: Remote OCR client, or None to skip that stage.
        ai_parser: AI text parser, or None to skip that stage.
        rule_extractor: Regex rescue parser.
    """

    def __init__(
        self,
        config: AppConfig,
        local_engine: TesseractEngine | None = None,
        remote_client: OCRSpaceClient | None = None,
        ai_parser: AITextParser | None = None,
        rule_extractor: RuleExtractor | None = None,
    ) -> None:
        self.config = config
        self.local_engine = local_engine or TesseractEngine(
            config.ocr, ImagePreprocessor(config.preprocessing)
        )
        if remote_client is None and config.remote_ocr.enabled:
            remote_client = OCRSpaceClient(config.remote_ocr)
        if ai_parser is None and config.ai.enabled:
            ai_parser = AITextParser(config.ai)
        self.remote_client = remote_client
        self.ai_parser = ai_parser
        self.rules = rule_extractor or RuleExtractor()

    def extract_identity(self, path: Path) -> IdentityRecord:
        """Extract an identity card.

        Raises:
            TerminalExtractionFailure: No stage produced a 12-digit
                identity number.
        """
        return self.extract(path, IDENTITY)

    def extract_report(self, path: Path) -> ReportRecord:
        """Extract a blood-group report.

        Raises:
            TerminalExtractionFailure: No stage produced a canonical
                blood group.
        """
        return self.extract(path, REPORT)

    def extract(self, path: Path, kind: DocumentKind) -> Record:
        """Run the waterfall for one document.

        Args:
            path: Image or PDF on disk.
            kind: :data:`IDENTITY` or :data:`REPORT`.

        Returns:
            The first complete record, with ``extraction_method`` and
            ``confidence`` set.

        Raises:
            TerminalExtractionFailure: Every stage failed or left the
                required field empty.
        """
        ctx = ExtractionContext(path=Path(path), kind=kind)
        self._check_input(ctx)
        logger.info("Extracting %s document %s", kind.name, ctx.path.name)

        for method, stage in self._stages():
            try:
                record = stage(ctx)
            except Exception as exc:
                logger.warning(
                    "%s stage failed for %s: %s: %s",
                    method.value,
                    ctx.path.name,
                    type(exc).__name__,
                    exc,
                )
                ctx.errors.append((method.value, str(exc)))
                continue

            if record is None:
                continue
            if record.is_complete:
                return self._resolve(record, method, ctx)

            ctx.partial = record
            logger.info(
                "%s stage incomplete for %s, missing %s",
                method.value,
                ctx.path.name,
                ", ".join(record.missing_fields) or kind.required_field,
            )

        raise self._failure(ctx)

    def _stages(self) -> list[tuple[ExtractionMethod, Stage]]:
        stages: list[tuple[ExtractionMethod, Stage]] = []
        if self.remote_client is not None:
            stages.append((ExtractionMethod.REMOTE_OCR, self._remote_stage))
        if self.ai_parser is not None:
            stages.append((ExtractionMethod.AI, self._ai_stage))
        stages.append((ExtractionMethod.LOCAL_OCR, self._local_stage))
        return stages

    def _remote_stage(self, ctx: ExtractionContext) -> Record | None:
        result = self.remote_client.extract_text(ctx.path, is_table=ctx.kind.table_mode)
        ctx.remote_result = result
        ctx.text_found = True

        threshold = self.config.extraction.remote_accept_threshold
        if result.confidence <= threshold:
            logger.info(
                "Remote OCR confidence %.0f is not above %.0f, deferring to later stages",
                result.confidence,
                threshold,
            )
            return None

        ctx.source = result
        return self._apply_rules(ctx.kind, result.text, seed=None)

    def _ai_stage(self, ctx: ExtractionContext) -> Record | None:
        ocr = ctx.remote_result or self._local_ocr(ctx)
        ctx.source = ocr
        if ctx.kind is IDENTITY:
            return self.ai_parser.parse_identity(ocr.text)

        record = self.ai_parser.parse_report(ocr.text)
        if not record.blood_group:
            try:
                record.blood_group = self.ai_parser.parse_blood_group(ocr.text)
            except ExtractionError as exc:
                logger.info("Blood-group-only AI prompt failed: %s", exc)
        return record

    def _local_stage(self, ctx: ExtractionContext) -> Record | None:
        ocr = self._local_ocr(ctx)
        ctx.source = ocr
        return self._apply_rules(ctx.kind, ocr.text, seed=ctx.partial)

    def _local_ocr(self, ctx: ExtractionContext) -> OCRResult:
        if ctx.local_error is not None:
            raise ctx.local_error
        if ctx.local_result is None:
            try:
                ctx.local_result = self.local_engine.extract(ctx.path)
            except ExtractionError as exc:
                ctx.local_error = exc
                raise
            ctx.text_found = True
            logger.debug("Local OCR text: %s", preview(ctx.local_result.text))
        return ctx.local_result

    def _apply_rules(self, kind: DocumentKind, text: str, seed: Record | None) -> Record:
        if kind is IDENTITY:
            return self.rules.extract_identity(text, seed=seed)
        return self.rules.extract_report(text, seed=seed)

    def _resolve(self, record: Record, method: ExtractionMethod, ctx: ExtractionContext) -> Record:
        source_confidence = ctx.source.confidence if ctx.source else 0.0
        high = source_confidence >= self.config.extraction.high_confidence_threshold
        resolved = replace(
            record,
            extraction_method=method,
            confidence=Confidence.HIGH if high else Confidence.LOW,
        )
        logger.info(
            "Resolved %s document %s via %s (OCR confidence %.0f, %s)",
            ctx.kind.name,
            ctx.path.name,
            method.value,
            source_confidence,
            resolved.confidence.value,
        )
        return resolved

    def _check_input(self, ctx: ExtractionContext) -> None:
        suffix = ctx.path.suffix.lower()
        if suffix not in self.config.ocr.supported_extensions:
            supported = ", ".join(self.config.ocr.supported_extensions)
            raise TerminalExtractionFailure(
                f"Unsupported file type: {suffix or ctx.path.name}.",
                reason=TerminalExtractionFailure.NO_TEXT,
                hint=f"Please upload one of: {supported}.",
            )
        if not ctx.path.is_file():
            raise TerminalExtractionFailure(
                f"File not found: {ctx.path}.",
                reason=TerminalExtractionFailure.NO_TEXT,
                hint="Please upload the document again.",
            )

    def _failure(self, ctx: ExtractionContext) -> TerminalExtractionFailure:
        if not ctx.text_found:
            failure = TerminalExtractionFailure(
                NO_TEXT_MESSAGE,
                reason=TerminalExtractionFailure.NO_TEXT,
                hint=NO_TEXT_HINT,
                stage_errors=ctx.errors,
            )
        else:
            failure = TerminalExtractionFailure(
                f"Could not extract the {ctx.kind.required_field} from the document.",
                reason=TerminalExtractionFailure.MISSING_FIELDS,
                hint=f"Please ensure the image is clear and contains valid {ctx.kind.subject} information.",
                stage_errors=ctx.errors,
            )
        logger.warning("Extraction failed for %s: %s", ctx.path.name, failure)
        return failure
