"""Tests for the extraction waterfall (backends mocked)."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docextract.extraction.ai_parser import AITextParser
from docextract.extraction.orchestrator import ExtractionOrchestrator
from docextract.extraction.records import Confidence, ExtractionMethod, IdentityRecord, ReportRecord
from docextract.ocr.remote_engine import OCRSpaceClient
from docextract.ocr.result import LOCAL, REMOTE, OCRResult
from docextract.ocr.tesseract_engine import TesseractEngine
from docextract.utils.config import AppConfig
from docextract.utils.errors import (
    HardProviderError,
    NoTextFoundError,
    ParseError,
    TerminalExtractionFailure,
    TransientProviderError,
)


def _remote(text: str, confidence: float = 90.0) -> MagicMock:
    client = MagicMock(spec=OCRSpaceClient)
    client.extract_text.return_value = OCRResult(text=text, confidence=confidence, source_method=REMOTE)
    return client


def _local(text: str, confidence: float = 75.0) -> MagicMock:
    engine = MagicMock(spec=TesseractEngine)
    engine.extract.return_value = OCRResult(text=text, confidence=confidence, source_method=LOCAL)
    return engine


def _ai(identity: IdentityRecord | None = None, report: ReportRecord | None = None) -> MagicMock:
    parser = MagicMock(spec=AITextParser)
    parser.parse_identity.return_value = identity or IdentityRecord(extraction_method=ExtractionMethod.AI)
    parser.parse_report.return_value = report or ReportRecord(extraction_method=ExtractionMethod.AI)
    parser.parse_blood_group.return_value = None
    return parser


def _orchestrator(
    config: AppConfig,
    local: MagicMock | None = None,
    remote: MagicMock | None = None,
    ai: MagicMock | None = None,
) -> ExtractionOrchestrator:
    return ExtractionOrchestrator(
        config,
        local_engine=local or _local(""),
        remote_client=remote,
        ai_parser=ai,
    )


class TestRemoteStage:
    """Tests for the remote OCR stage."""

    def test_confident_remote_result_resolves(
        self, offline_config: AppConfig, image_file: Path, identity_text: str
    ) -> None:
        local = _local("unused")
        orchestrator = _orchestrator(offline_config, local=local, remote=_remote(identity_text, 90.0))

        record = orchestrator.extract_identity(image_file)

        assert record.id_number == "853948587776"
        assert record.name == "Siddharth"
        assert record.extraction_method == ExtractionMethod.REMOTE_OCR
        assert record.confidence == Confidence.HIGH
        local.extract.assert_not_called()

    def test_threshold_is_strict(self, offline_config: AppConfig, image_file: Path, identity_text: str) -> None:
        local = _local(identity_text)
        orchestrator = _orchestrator(offline_config, local=local, remote=_remote(identity_text, 70.0))

        record = orchestrator.extract_identity(image_file)

        assert record.extraction_method == ExtractionMethod.LOCAL_OCR
        local.extract.assert_called_once()

    def test_report_uses_table_mode(self, offline_config: AppConfig, image_file: Path, report_text: str) -> None:
        remote = _remote(report_text)
        record = _orchestrator(offline_config, remote=remote).extract_report(image_file)

        assert record.blood_group == "A+"
        assert record.extraction_method == ExtractionMethod.REMOTE_OCR
        assert remote.extract_text.call_args.kwargs["is_table"] is True

    def test_remote_failure_falls_through(
        self, offline_config: AppConfig, image_file: Path, identity_text: str
    ) -> None:
        remote = MagicMock(spec=OCRSpaceClient)
        remote.extract_text.side_effect = TransientProviderError("timed out", backend="ocr.space")
        orchestrator = _orchestrator(offline_config, local=_local(identity_text), remote=remote)

        record = orchestrator.extract_identity(image_file)

        assert record.extraction_method == ExtractionMethod.LOCAL_OCR
        assert record.id_number == "853948587776"


class TestAIStage:
    """Tests for the AI stage and its fall-through to regex rescue."""

    def test_ai_reuses_remote_text(self, offline_config: AppConfig, image_file: Path) -> None:
        local = _local("unused")
        ai = _ai(identity=IdentityRecord(id_number="853948587776", name="Siddharth"))
        orchestrator = _orchestrator(offline_config, local=local, remote=_remote("blurry text", 65.0), ai=ai)

        record = orchestrator.extract_identity(image_file)

        assert record.extraction_method == ExtractionMethod.AI
        assert record.confidence == Confidence.HIGH
        ai.parse_identity.assert_called_once_with("blurry text")
        local.extract.assert_not_called()

    def test_ai_uses_local_text_without_remote(self, offline_config: AppConfig, image_file: Path) -> None:
        ai = _ai(identity=IdentityRecord(id_number="853948587776"))
        local = _local("local text", confidence=40.0)

        record = _orchestrator(offline_config, local=local, ai=ai).extract_identity(image_file)

        assert record.extraction_method == ExtractionMethod.AI
        assert record.confidence == Confidence.LOW
        ai.parse_identity.assert_called_once_with("local text")

    def test_incomplete_ai_result_falls_through_to_regex(
        self, offline_config: AppConfig, image_file: Path, identity_text: str
    ) -> None:
        ai = _ai(identity=IdentityRecord(name="Akshat Kumar", extraction_method=ExtractionMethod.AI))
        local = _local(identity_text)

        record = _orchestrator(offline_config, local=local, ai=ai).extract_identity(image_file)

        assert record.extraction_method == ExtractionMethod.LOCAL_OCR
        assert record.id_number == "853948587776"
        assert record.name == "Akshat Kumar"
        local.extract.assert_called_once()

    def test_ai_error_falls_through(self, offline_config: AppConfig, image_file: Path, identity_text: str) -> None:
        ai = _ai()
        ai.parse_identity.side_effect = ParseError("bad json", backend="ai")

        record = _orchestrator(offline_config, local=_local(identity_text), ai=ai).extract_identity(image_file)
        assert record.extraction_method == ExtractionMethod.LOCAL_OCR

    def test_report_blood_group_only_prompt(self, offline_config: AppConfig, image_file: Path) -> None:
        ai = _ai(report=ReportRecord(patient_name="Akshat Kumar"))
        ai.parse_blood_group.return_value = "O-"

        record = _orchestrator(offline_config, local=_local("report text"), ai=ai).extract_report(image_file)

        assert record.blood_group == "O-"
        assert record.extraction_method == ExtractionMethod.AI
        ai.parse_blood_group.assert_called_once_with("report text")


class TestTerminalFailure:
    """Tests for the terminal failure states."""

    def test_no_text_anywhere(self, offline_config: AppConfig, image_file: Path) -> None:
        local = MagicMock(spec=TesseractEngine)
        local.extract.side_effect = NoTextFoundError("empty", backend="tesseract")
        remote = MagicMock(spec=OCRSpaceClient)
        remote.extract_text.side_effect = HardProviderError("bad key", backend="ocr.space")

        with pytest.raises(TerminalExtractionFailure) as exc_info:
            _orchestrator(offline_config, local=local, remote=remote, ai=_ai()).extract_identity(image_file)

        failure = exc_info.value
        assert failure.reason == TerminalExtractionFailure.NO_TEXT
        assert "sharper" in failure.hint
        assert [stage for stage, _ in failure.stage_errors] == ["remote OCR", "AI", "local OCR"]
        local.extract.assert_called_once()

    def test_text_without_required_field(self, offline_config: AppConfig, image_file: Path) -> None:
        local = _local("GOVERNMENT OF INDIA\nSiddharth\nMALE")

        with pytest.raises(TerminalExtractionFailure) as exc_info:
            _orchestrator(offline_config, local=local).extract_identity(image_file)

        failure = exc_info.value
        assert failure.reason == TerminalExtractionFailure.MISSING_FIELDS
        assert "identity number" in str(failure)
        assert "Aadhaar" in failure.hint

    def test_report_without_blood_group(self, offline_config: AppConfig, image_file: Path) -> None:
        with pytest.raises(TerminalExtractionFailure) as exc_info:
            _orchestrator(offline_config, local=_local("Haemoglobin 14.2")).extract_report(image_file)
        assert "blood group" in str(exc_info.value)

    def test_unsupported_format(self, offline_config: AppConfig, tmp_path: Path) -> None:
        doc = tmp_path / "notes.docx"
        doc.write_bytes(b"PK")
        local = _local("text")

        with pytest.raises(TerminalExtractionFailure, match="Unsupported"):
            _orchestrator(offline_config, local=local).extract_identity(doc)
        local.extract.assert_not_called()

    def test_missing_file(self, offline_config: AppConfig, tmp_path: Path) -> None:
        with pytest.raises(TerminalExtractionFailure, match="not found"):
            _orchestrator(offline_config).extract_identity(tmp_path / "missing.png")


class TestConstruction:
    """Tests for building backends from configuration."""

    def test_offline_config_has_only_local_stage(self, offline_config: AppConfig) -> None:
        orchestrator = ExtractionOrchestrator(offline_config)
        assert orchestrator.remote_client is None
        assert orchestrator.ai_parser is None
        assert [method for method, _ in orchestrator._stages()] == [ExtractionMethod.LOCAL_OCR]

    def test_default_config_enables_remote(self) -> None:
        orchestrator = ExtractionOrchestrator(AppConfig())
        assert isinstance(orchestrator.remote_client, OCRSpaceClient)
        assert orchestrator.ai_parser is None
