"""PDF handling for uploaded reports.

Digitally generated reports carry a text layer that is read directly;
scanned PDFs are rendered to images for the local OCR engine.
"""

from pathlib import Path

import numpy as np
import pdfplumber
from pdf2image import convert_from_path

from docextract.utils.errors import HardProviderError
from docextract.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Reads embedded text from PDFs and renders pages to images.

    Args:
        dpi: Resolution for page rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def extract_text(self, pdf_path: Path) -> tuple[str, int]:
        """Read the embedded text layer of every page.

        Args:
            pdf_path: Path to the PDF file.

        Returns:
            Tuple of (text with pages separated by blank lines, page count).
            The text is empty for image-only PDFs.

        Raises:
            FileNotFoundError: If the file does not exist.
            HardProviderError: If the file cannot be parsed as a PDF.
        """
        path = Path(pdf_path)
        if not path.exists():
            raise FileNotFoundError(f"PDF file not found: {path}")

        try:
            with pdfplumber.open(path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise HardProviderError(f"PDF text extraction failed: {exc}", backend="pdf") from exc

        text = "\n\n".join(p.strip() for p in pages if p.strip())
        logger.info("PDF %s: %d pages, %d characters of embedded text", path.name, len(pages), len(text))
        return text, len(pages)

    def pdf_to_images(self, pdf_path: Path) -> list[np.ndarray]:
        """Render every page of a PDF to an RGB image.

        Args:
            pdf_path: Path to the PDF file.

        Returns:
            List of page images as numpy arrays.

        Raises:
            HardProviderError: If rendering fails.
        """
        try:
            pil_images = convert_from_path(str(pdf_path), dpi=self.dpi)
        except Exception as exc:
            raise HardProviderError(f"PDF rendering failed: {exc}", backend="pdf") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Rendered %d PDF pages at %d DPI", len(images), self.dpi)
        return images
