"""OpenCV building blocks for the OCR image variants.

Bounded resizing, grayscale conversion, min-max normalization, unsharp
masking, brightness scaling and global thresholding.
"""

import cv2
import numpy as np

from docextract.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        return cv2.cvtColor(image, code)
    return image


def resize_to_fit(image: np.ndarray, max_side: int) -> np.ndarray:
    """Scale an image so its longest side equals ``max_side``.

    Small photos are enlarged as well as large ones shrunk; Tesseract
    reads small glyphs poorly.

    Args:
        image: Input image.
        max_side: Target length of the longest side in pixels.

    Returns:
        Resized image with the original aspect ratio.
    """
    h, w = image.shape[:2]
    longest = max(h, w)
    if longest == 0 or longest == max_side:
        return image

    scale = max_side / longest
    interpolation = cv2.INTER_CUBIC if scale > 1 else cv2.INTER_AREA
    size = (max(1, round(w * scale)), max(1, round(h * scale)))
    logger.debug("Resizing %dx%d by %.2f", w, h, scale)
    return cv2.resize(image, size, interpolation=interpolation)


def normalize_contrast(image: np.ndarray) -> np.ndarray:
    """Stretch pixel intensities to the full 0-255 range."""
    return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)


def sharpen(image: np.ndarray, sigma: float = 2.0, amount: float = 1.0) -> np.ndarray:
    """Sharpen with an unsharp mask.

    Args:
        image: Input image.
        sigma: Gaussian blur sigma for the mask.
        amount: Strength of the sharpening.

    Returns:
        Sharpened image.
    """
    blurred = cv2.GaussianBlur(image, (0, 0), sigma)
    return cv2.addWeighted(image, 1.0 + amount, blurred, -amount, 0)


def adjust_brightness(image: np.ndarray, factor: float) -> np.ndarray:
    """Multiply pixel intensities by ``factor``, saturating at 255."""
    return cv2.convertScaleAbs(image, alpha=factor, beta=0)


def binarize(image: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Binarize a grayscale image with a fixed global threshold.

    Args:
        image: Input image (BGR or grayscale).
        threshold: Pixels above this become white, the rest black.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_gray(image)
    _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    logger.debug("Applied threshold binarization at %d", threshold)
    return binary
