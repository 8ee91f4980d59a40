"""Tests for the command-line interface and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docextract.cli import _find_documents, _print_summary, _write_csv, main, process_folder
from docextract.extraction.orchestrator import ExtractionOrchestrator
from docextract.extraction.records import Confidence, ExtractionMethod, IdentityRecord, ReportRecord
from docextract.utils.config import AppConfig
from docextract.utils.errors import TerminalExtractionFailure

_EXTENSIONS = AppConfig().ocr.supported_extensions


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("docextract.cli.setup_logging", lambda level: None)


def _identity() -> IdentityRecord:
    return IdentityRecord(
        id_number="853948587776",
        name="Siddharth",
        date_of_birth="07/07/2008",
        gender="Male",
        extraction_method=ExtractionMethod.LOCAL_OCR,
        confidence=Confidence.HIGH,
    )


def _failure() -> TerminalExtractionFailure:
    return TerminalExtractionFailure(
        "No text could be read from the document.",
        reason=TerminalExtractionFailure.NO_TEXT,
        hint="Please upload a sharper, well-lit image.",
    )


def _mock_orchestrator() -> MagicMock:
    orchestrator = MagicMock(spec=ExtractionOrchestrator)
    orchestrator.config = AppConfig()
    orchestrator.extract_identity.return_value = _identity()
    orchestrator.extract_report.return_value = ReportRecord(
        blood_group="B+",
        patient_name="Siddharth",
        gender="Male",
        extraction_method=ExtractionMethod.REMOTE_OCR,
    )
    return orchestrator


class TestFindDocuments:
    """Tests for document discovery."""

    def test_find_supported_files(self, tmp_path: Path) -> None:
        (tmp_path / "card.png").touch()
        (tmp_path / "report.pdf").touch()
        (tmp_path / "scan.JPG").touch()
        (tmp_path / "readme.txt").touch()
        files = _find_documents(tmp_path, _EXTENSIONS)
        assert [f.name for f in files] == ["card.png", "report.pdf", "scan.JPG"]

    def test_find_no_documents(self, tmp_path: Path) -> None:
        (tmp_path / "readme.txt").touch()
        assert _find_documents(tmp_path, _EXTENSIONS) == []


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_meta_columns_first(self, tmp_path: Path) -> None:
        results = [
            {"filename": "card.png", "status": "success", "error": None, "id_number": "853948587776"},
            {"filename": "blur.png", "status": "failed", "error": "No text"},
        ]
        output = tmp_path / "results.csv"
        _write_csv(results, output)

        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0].keys())[:3] == ["filename", "status", "error"]
        assert rows[0]["id_number"] == "853948587776"
        assert rows[1]["id_number"] == ""

    def test_write_csv_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_write_csv_creates_parent_dirs(self, tmp_path: Path) -> None:
        output = tmp_path / "subdir" / "results.csv"
        _write_csv([{"filename": "card.png", "status": "success"}], output)
        assert output.exists()


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("results.csv"))
        out = capsys.readouterr().out
        assert "Extracted 4/5 documents (1 failed)" in out
        assert "results.csv" in out


class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_success(self, tmp_path: Path) -> None:
        (tmp_path / "a.png").touch()
        (tmp_path / "b.png").touch()
        output_csv = tmp_path / "out" / "results.csv"

        summary = process_folder(tmp_path, output_csv, "identity", _mock_orchestrator())

        assert summary == {"total": 2, "successful": 2, "failed": 0}
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["id_number"] == "853948587776"
        assert rows[0]["extraction_method"] == "local OCR"
        assert rows[0]["confidence"] == "high"

    def test_failure_does_not_abort(self, tmp_path: Path) -> None:
        (tmp_path / "a.png").touch()
        (tmp_path / "b.png").touch()
        orchestrator = _mock_orchestrator()
        orchestrator.extract_report.side_effect = [_failure(), orchestrator.extract_report.return_value]
        output_csv = tmp_path / "results.csv"

        summary = process_folder(tmp_path, output_csv, "report", orchestrator)

        assert summary["successful"] == 1
        assert summary["failed"] == 1
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["status"] == "failed"
        assert "sharper" in rows[0]["error"]
        assert rows[1]["blood_group"] == "B+"

    def test_empty_folder(self, tmp_path: Path) -> None:
        summary = process_folder(tmp_path, tmp_path / "results.csv", "identity", _mock_orchestrator())
        assert summary["total"] == 0

    def test_verbose(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (tmp_path / "a.png").touch()
        process_folder(tmp_path, tmp_path / "results.csv", "identity", _mock_orchestrator(), verbose=True)
        assert "Processing [1/1]" in capsys.readouterr().out


@patch("docextract.cli.ExtractionOrchestrator")
class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self, mock_cls: MagicMock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        mock_cls.assert_not_called()

    def test_identity_to_stdout(
        self, mock_cls: MagicMock, image_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_cls.return_value = _mock_orchestrator()
        main(["identity", str(image_file)])

        payload = json.loads(capsys.readouterr().out)
        assert payload["filename"] == image_file.name
        assert payload["id_number"] == "853948587776"
        assert payload["extraction_method"] == "local OCR"

    def test_report_to_file(self, mock_cls: MagicMock, image_file: Path, tmp_path: Path) -> None:
        mock_cls.return_value = _mock_orchestrator()
        output = tmp_path / "out" / "report.json"
        main(["report", str(image_file), "-o", str(output)])

        assert json.loads(output.read_text())["blood_group"] == "B+"

    def test_terminal_failure_exits(
        self, mock_cls: MagicMock, image_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        orchestrator = _mock_orchestrator()
        orchestrator.extract_identity.side_effect = _failure()
        mock_cls.return_value = orchestrator

        with pytest.raises(SystemExit) as exc_info:
            main(["identity", str(image_file)])
        assert exc_info.value.code == 1
        assert "sharper" in capsys.readouterr().err

    def test_nonexistent_file(self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["identity", "/nonexistent/file.png"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_verify(self, mock_cls: MagicMock, image_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        mock_cls.return_value = _mock_orchestrator()
        main(["verify", "--identity", str(image_file), "--report", str(image_file)])

        payload = json.loads(capsys.readouterr().out)
        assert payload["validation"] == {"is_valid": True, "warnings": []}
        assert payload["report"]["blood_group"] == "B+"

    def test_batch_nonexistent_directory(
        self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    @patch("docextract.cli.process_folder")
    def test_batch_command(self, mock_pf: MagicMock, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-t", "report", "-o", str(output)])

        args = mock_pf.call_args.args
        assert args[0] == tmp_path
        assert args[1] == output
        assert args[2] == "report"
        assert args[3] is mock_cls.return_value
