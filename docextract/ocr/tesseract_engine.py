"""Local Tesseract OCR over images and PDFs.

Images go through the document variant with a bilingual (English +
Hindi) pass; if the engine rejects that run, the general variant is
retried with the fallback language. PDFs are read from their text layer
when one exists, otherwise rendered and recognized page by page.
"""

from pathlib import Path

import cv2
import numpy as np
import pytesseract
from PIL import Image

from docextract.preprocessing.pipeline import ImagePreprocessor, build_document_variant
from docextract.utils.config import OCRConfig, PreprocessingConfig
from docextract.utils.errors import HardProviderError, NoTextFoundError, UnsupportedFormatError
from docextract.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .result import LOCAL, OCRResult

logger = get_logger(__name__)

BACKEND = "tesseract"
EMBEDDED_TEXT_CONFIDENCE = 100.0


class TesseractEngine:
    """Wrapper around Tesseract for identity cards and reports.

    Args:
        config: Local OCR configuration.
        preprocessor: Builds the image variants handed to Tesseract.
        pdf_handler: PDF reader. Built from ``config`` if omitted.
    """

    def __init__(
        self,
        config: OCRConfig,
        preprocessor: ImagePreprocessor,
        pdf_handler: PDFHandler | None = None,
    ) -> None:
        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd
        self.config = config
        self.preprocessor = preprocessor
        self.pdf_handler = pdf_handler or PDFHandler(dpi=config.pdf_dpi)

    def extract(self, path: Path) -> OCRResult:
        """Read all text from an image or PDF.

        Args:
            path: Path to the uploaded document.

        Returns:
            OCR result with the engine's mean word confidence.

        Raises:
            UnsupportedFormatError: For file types outside the allow-list.
            HardProviderError: If Tesseract is missing or fails twice.
            NoTextFoundError: If the result is empty or whitespace.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in self.config.supported_extensions:
            raise UnsupportedFormatError(f"Unsupported format: {suffix or path.name}", backend=BACKEND)

        logger.info("Local OCR processing %s", path.name)
        if suffix == ".pdf":
            result = self._extract_pdf(path)
        else:
            result = self._extract_image(path)

        if not result.has_text:
            raise NoTextFoundError(f"Local OCR found no text in {path.name}", backend=BACKEND)

        logger.info(
            "Local OCR complete for %s: %d characters, confidence %.1f",
            path.name,
            len(result.text),
            result.confidence,
        )
        return result

    def recognize(self, image: Image.Image, lang: str) -> tuple[str, float]:
        """Run one Tesseract pass.

        Args:
            image: Image to read.
            lang: Tesseract language string, e.g. ``"eng+hin"``.

        Returns:
            Tuple of (text, mean confidence of recognized words, 0-100).
        """
        config = f"--psm {self.config.psm}"
        text = pytesseract.image_to_string(image, lang=lang, config=config)
        data = pytesseract.image_to_data(
            image,
            lang=lang,
            config=config,
            output_type=pytesseract.Output.DICT,
        )

        confidences = [
            float(conf)
            for conf, word in zip(data.get("conf", []), data.get("text", []), strict=False)
            if float(conf) > 0 and str(word).strip()
        ]
        mean_conf = sum(confidences) / len(confidences) if confidences else 0.0
        return text, mean_conf

    def _extract_image(self, path: Path) -> OCRResult:
        with self.preprocessor.prepare(path) as variants:
            try:
                with Image.open(variants.document) as image:
                    text, confidence = self.recognize(image, self.config.lang)
                lang = self.config.lang
            except pytesseract.TesseractNotFoundError as exc:
                raise HardProviderError(f"Tesseract is not installed: {exc}", backend=BACKEND) from exc
            except pytesseract.TesseractError as exc:
                logger.warning(
                    "Bilingual pass failed for %s (%s), retrying general variant with %s",
                    path.name,
                    exc,
                    self.config.fallback_lang,
                )
                lang = self.config.fallback_lang
                try:
                    with Image.open(variants.general) as image:
                        text, confidence = self.recognize(image, lang)
                except pytesseract.TesseractError as retry_exc:
                    raise HardProviderError(f"Tesseract failed: {retry_exc}", backend=BACKEND) from retry_exc

        return OCRResult(text=text, confidence=confidence, source_method=LOCAL, language=lang)

    def _extract_pdf(self, path: Path) -> OCRResult:
        text, page_count = self.pdf_handler.extract_text(path)
        if text.strip():
            return OCRResult(
                text=text,
                confidence=EMBEDDED_TEXT_CONFIDENCE,
                source_method=LOCAL,
                language=self.config.lang,
                page_count=page_count,
            )

        logger.info("%s has no text layer, rendering pages for OCR", path.name)
        page_settings = self.preprocessor.config
        texts: list[str] = []
        confidences: list[float] = []
        for page in self.pdf_handler.pdf_to_images(path):
            variant = self._page_variant(page, page_settings)
            try:
                page_text, page_conf = self.recognize(Image.fromarray(variant), self.config.lang)
            except pytesseract.TesseractNotFoundError as exc:
                raise HardProviderError(f"Tesseract is not installed: {exc}", backend=BACKEND) from exc
            except pytesseract.TesseractError as exc:
                raise HardProviderError(f"Tesseract failed on PDF page: {exc}", backend=BACKEND) from exc
            texts.append(page_text.strip())
            confidences.append(page_conf)

        return OCRResult(
            text="\n\n".join(t for t in texts if t),
            confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            source_method=LOCAL,
            language=self.config.lang,
            page_count=len(texts),
        )

    @staticmethod
    def _page_variant(page: np.ndarray, settings: PreprocessingConfig) -> np.ndarray:
        if not settings.enabled:
            return page
        bgr = cv2.cvtColor(page, cv2.COLOR_RGB2BGR) if len(page.shape) == 3 else page
        return build_document_variant(bgr, settings)
