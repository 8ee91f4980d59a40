"""Command-line interface for single-document extraction and batch export.

Subcommands extract one identity card or blood report to JSON, verify a
pair of documents against each other, or process a folder of documents
into a CSV file.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from docextract.extraction.orchestrator import ExtractionOrchestrator
from docextract.service import (
    extract_identity_document,
    extract_report_document,
    verify_documents,
)
from docextract.utils.config import load_config
from docextract.utils.errors import TerminalExtractionFailure
from docextract.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_DOCUMENT_TYPES = ("identity", "report")
_META_COLUMNS = [
    "filename",
    "status",
    "extraction_method",
    "confidence",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.
        extensions: Lower-case suffixes to include, e.g. ``".png"``.

    Returns:
        Sorted list of document file paths.
    """
    return sorted(p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in extensions)


def _extract(file_path: Path, document_type: str, orchestrator: ExtractionOrchestrator):
    if document_type == "identity":
        return extract_identity_document(file_path, orchestrator)
    return extract_report_document(file_path, orchestrator)


def _batch_row(
    file_path: Path, document_type: str, orchestrator: ExtractionOrchestrator
) -> dict[str, object]:
    """Extract one file into a CSV row; terminal failures become ``failed`` rows."""
    started = time.perf_counter()
    row: dict[str, object] = {"filename": file_path.name}
    try:
        record = _extract(file_path, document_type, orchestrator)
    except TerminalExtractionFailure as exc:
        logger.error("Failed to process %s: %s", file_path.name, exc)
        row.update(status="failed", error=str(exc))
    else:
        row.update(status="success", error=None, **record.to_dict())
    row["processing_time_s"] = round(time.perf_counter() - started, 2)
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str,
    orchestrator: ExtractionOrchestrator,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract every document in a folder and export results to CSV.

    A failed document gets a ``failed`` row and never stops the batch.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: ``"identity"`` or ``"report"``.
        orchestrator: Extraction orchestrator to use.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir, orchestrator.config.ocr.supported_extensions)
    if not files:
        logger.warning("No %s documents found in %s", document_type, input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Extracting %d %s documents from %s", len(files), document_type, input_dir)
    rows = []
    for position, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{position}/{len(files)}]: {file_path.name}")
        rows.append(_batch_row(file_path, document_type, orchestrator))

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    successful = sum(1 for row in rows if row["status"] == "success")
    summary = {"total": len(rows), "successful": successful, "failed": len(rows) - successful}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write one row per document, status columns before record fields."""
    if not rows:
        return

    present = {key for row in rows for key in row}
    columns = [c for c in _META_COLUMNS if c in present]
    columns += sorted(present.difference(_META_COLUMNS))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, restval="")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(
        f"\nExtracted {summary['successful']}/{summary['total']} documents "
        f"({summary['failed']} failed). Results: {output_csv}"
    )


def _emit(payload: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def _fail(exc: TerminalExtractionFailure) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Identity card and blood report extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="Path to config.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("identity", "Extract an identity card"),
        ("report", "Extract a blood group report"),
    ):
        single_parser = subparsers.add_parser(name, help=help_text)
        single_parser.add_argument("file", type=Path, help="Document file to process")
        single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    verify_parser = subparsers.add_parser("verify", help="Cross-check an identity card and a report")
    verify_parser.add_argument("--identity", type=Path, required=True, help="Identity card file")
    verify_parser.add_argument("--report", type=Path, required=True, help="Blood report file")
    verify_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with documents")
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        default="identity",
        dest="doc_type",
        help="Document type (default: identity)",
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level)
    orchestrator = ExtractionOrchestrator(config)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.doc_type, orchestrator, args.verbose)
        return

    if args.command == "verify":
        try:
            identity, report, validation = verify_documents(args.identity, args.report, orchestrator)
        except TerminalExtractionFailure as exc:
            _fail(exc)
            return
        _emit(
            {
                "identity": identity.to_dict(),
                "report": report.to_dict(),
                "validation": validation.to_dict(),
            },
            args.output,
        )
        return

    if not args.file.exists():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        sys.exit(1)
    try:
        record = _extract(args.file, args.command, orchestrator)
    except TerminalExtractionFailure as exc:
        _fail(exc)
        return
    _emit({"filename": args.file.name, **record.to_dict()}, args.output)


if __name__ == "__main__":
    main()
