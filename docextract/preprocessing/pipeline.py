"""OCR-tuned image variants for identity cards and reports.

Two variants are produced from each photograph: a general one (bounded
resize, grayscale, normalize, sharpen, brightness boost) and a
document one (larger resize, stronger sharpen, binarization). Variants
are written as temporary PNG files beside the source and removed when
the :meth:`ImagePreprocessor.prepare` context exits.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from docextract.utils.config import PreprocessingConfig
from docextract.utils.logger import get_logger

from .filters import adjust_brightness, binarize, normalize_contrast, resize_to_fit, sharpen, to_gray

logger = get_logger(__name__)


@dataclass(frozen=True)
class OCRVariants:
    """Paths of the images handed to the OCR engine.

    Either path equals ``source`` when its variant could not be built.
    """

    source: Path
    general: Path
    document: Path

    def temporary_paths(self) -> list[Path]:
        return [p for p in {self.general, self.document} if p != self.source]


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance."""
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate contrast as the standard deviation of gray intensities."""
    return float(to_gray(image).std())


def build_general_variant(image: np.ndarray, config: PreprocessingConfig) -> np.ndarray:
    """Apply the general-purpose OCR variant to an in-memory image."""
    result = resize_to_fit(image, config.general_max_side)
    result = to_gray(result)
    result = normalize_contrast(result)
    result = sharpen(result, sigma=config.general_sharpen_sigma)
    return adjust_brightness(result, config.general_brightness)


def build_document_variant(image: np.ndarray, config: PreprocessingConfig) -> np.ndarray:
    """Apply the document-specific OCR variant to an in-memory image."""
    result = resize_to_fit(image, config.document_max_side)
    result = to_gray(result)
    result = normalize_contrast(result)
    result = sharpen(result, sigma=config.document_sharpen_sigma)
    result = adjust_brightness(result, config.document_brightness)
    return binarize(result, threshold=config.document_threshold)


def temp_variant_path(source: Path, variant: str) -> Path:
    """Build a collision-resistant temporary path beside ``source``.

    Concurrent requests share the directory, so the name carries the
    original stem, a nanosecond timestamp and a random suffix.
    """
    token = f"{time.time_ns()}_{uuid.uuid4().hex[:8]}"
    return source.with_name(f"{source.stem}_{token}_{variant}.png")


class ImagePreprocessor:
    """Builds OCR image variants on disk.

    Failures never propagate: a variant that cannot be built falls back
    to the original file so OCR can still run on it.

    Args:
        config: Preprocessing configuration.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def general_variant(self, source: Path) -> Path:
        return self._write_variant(source, "ocr", build_general_variant)

    def document_variant(self, source: Path) -> Path:
        return self._write_variant(source, "doc_ocr", build_document_variant)

    @contextmanager
    def prepare(self, source: Path) -> Iterator[OCRVariants]:
        """Create both variants and remove them afterwards.

        Args:
            source: Path of the uploaded image.

        Yields:
            The variant paths. Temporary files are deleted on every exit
            path, including exceptions raised inside the block.
        """
        source = Path(source)
        if not self.config.enabled:
            yield OCRVariants(source=source, general=source, document=source)
            return

        variants = OCRVariants(source=source, general=source, document=source)
        try:
            variants = OCRVariants(source=source, general=self.general_variant(source), document=source)
            variants = OCRVariants(
                source=source,
                general=variants.general,
                document=self.document_variant(source),
            )
            yield variants
        finally:
            self.cleanup(variants)

    def cleanup(self, variants: OCRVariants) -> None:
        for path in variants.temporary_paths():
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove temporary file %s: %s", path, exc)

    def _write_variant(self, source: Path, name: str, builder) -> Path:
        target = temp_variant_path(source, name)
        try:
            image = cv2.imread(str(source), cv2.IMREAD_UNCHANGED)
            if image is None:
                raise ValueError(f"unreadable image: {source.name}")
            if image.dtype != np.uint8:
                image = cv2.convertScaleAbs(image, alpha=255.0 / max(float(image.max()), 1.0))

            result = builder(image, self.config)
            if not cv2.imwrite(str(target), result):
                raise OSError(f"could not write {target.name}")
        except (cv2.error, ValueError, OSError) as exc:
            logger.warning("Preprocessing (%s) failed for %s, using original: %s", name, source.name, exc)
            target.unlink(missing_ok=True)
            return source

        logger.info(
            "Built %s variant for %s: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            name,
            source.name,
            calculate_sharpness(image),
            calculate_sharpness(result),
            calculate_contrast(image),
            calculate_contrast(result),
        )
        return target
