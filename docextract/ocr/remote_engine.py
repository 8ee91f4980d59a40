"""OCR.space recognition service client.

Posts the document as a base64 data URI and retries transient failures
with linear backoff. The service reports no confidence, so one is
estimated from the response.
"""

import base64
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from docextract.utils.config import RemoteOCRConfig
from docextract.utils.errors import (
    ExtractionError,
    HardProviderError,
    NoTextFoundError,
    TransientProviderError,
)
from docextract.utils.logger import get_logger, preview

from .result import REMOTE, OCRResult

logger = get_logger(__name__)

BACKEND = "ocr.space"
BASE_CONFIDENCE = 85.0
STRUCTURED_TEXT_BONUS = 5.0
STRUCTURED_TEXT_MIN_CHARS = 50
INLINE_ERROR_PENALTY = 10.0

_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}


def calculate_confidence(parsed_result: dict[str, Any]) -> float:
    """Estimate a 0-100 confidence for one OCR.space parsed result.

    This is a heuristic, not a calibrated probability. Long text earns a
    bonus; an error message attached to a successful result costs a penalty.
    """
    confidence = BASE_CONFIDENCE
    if len(parsed_result.get("ParsedText") or "") > STRUCTURED_TEXT_MIN_CHARS:
        confidence += STRUCTURED_TEXT_BONUS
    if parsed_result.get("ErrorMessage"):
        confidence -= INLINE_ERROR_PENALTY
    return max(0.0, min(100.0, confidence))


def _error_text(value: Any) -> str:
    if isinstance(value, list):
        return "; ".join(str(v) for v in value if v)
    return str(value or "")


class OCRSpaceClient:
    """Client for the OCR.space ``parse/image`` endpoint.

    Args:
        config: Remote OCR configuration.
        client: Optional pre-built ``httpx.Client``. A short-lived client
            is opened per request when omitted.
        sleep: Called with the backoff delay between attempts.
    """

    def __init__(
        self,
        config: RemoteOCRConfig,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._client = client
        self._sleep = sleep
        if not config.api_key:
            logger.warning("OCR.space API key not configured. Set OCR_SPACE_API_KEY.")

    def extract_text(
        self,
        path: Path,
        language: str | None = None,
        is_table: bool = False,
    ) -> OCRResult:
        """Recognize a document through OCR.space.

        Args:
            path: Image or PDF to send.
            language: Language code; defaults to the configured one.
            is_table: Ask the service to keep table rows on one line.

        Returns:
            OCR result with the heuristic confidence.

        Raises:
            HardProviderError: Missing key, rejected request, or the
                provider reported a processing error.
            TransientProviderError: Network failures outlasted the retries.
            NoTextFoundError: The service answered without any text.
        """
        if not self.config.api_key:
            raise HardProviderError("OCR.space API key is not configured", backend=BACKEND)

        path = Path(path)
        language = language or self.config.language
        payload = self._build_payload(path, language, is_table)
        logger.info("OCR.space processing %s (language=%s, table=%s)", path.name, language, is_table)

        body = self._post_with_retries(payload)

        if body.get("IsErroredOnProcessing"):
            message = _error_text(body.get("ErrorMessage")) or "OCR processing failed"
            logger.warning("OCR.space reported an error for %s: %s", path.name, preview(str(body)))
            raise HardProviderError(f"OCR.space error: {message}", backend=BACKEND)

        parsed_results = body.get("ParsedResults") or []
        if not parsed_results:
            raise NoTextFoundError(f"OCR.space returned no results for {path.name}", backend=BACKEND)

        first = parsed_results[0]
        text = "\n".join((r.get("ParsedText") or "").strip() for r in parsed_results).strip()
        if not text:
            raise NoTextFoundError(f"OCR.space found no text in {path.name}", backend=BACKEND)

        confidence = calculate_confidence(first)
        logger.info("OCR.space extraction complete for %s, confidence %.0f", path.name, confidence)
        return OCRResult(
            text=text,
            confidence=confidence,
            source_method=REMOTE,
            language=language,
            page_count=len(parsed_results),
        )

    def extract_with_auto_language(self, path: Path, is_table: bool = False) -> OCRResult:
        """Try the primary language, then the bilingual setting."""
        try:
            return self.extract_text(path, is_table=is_table)
        except ExtractionError as exc:
            logger.info("Primary-language OCR failed (%s), trying %s", exc, self.config.bilingual_language)
            return self.extract_text(path, language=self.config.bilingual_language, is_table=is_table)

    def _build_payload(self, path: Path, language: str, is_table: bool) -> dict[str, str]:
        mime = _MIME_TYPES.get(path.suffix.lower(), "image/png")
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return {
            "base64Image": f"data:{mime};base64,{encoded}",
            "apikey": self.config.api_key or "",
            "language": language,
            "isTable": str(is_table).lower(),
            "detectOrientation": str(self.config.detect_orientation).lower(),
            "scale": str(self.config.scale).lower(),
            "isOverlayRequired": "false",
            "OCREngine": str(self.config.engine),
        }

    def _post_with_retries(self, payload: dict[str, str]) -> dict[str, Any]:
        attempts = max(1, self.config.max_retries)
        attempt = 1
        while True:
            try:
                return self._post(payload)
            except TransientProviderError as exc:
                logger.warning("OCR.space attempt %d/%d failed: %s", attempt, attempts, exc)
                if attempt >= attempts:
                    raise TransientProviderError(
                        f"OCR.space failed after {attempts} attempts: {exc}", backend=BACKEND
                    ) from exc
                self._sleep(self.config.backoff_s * attempt)
                attempt += 1

    def _post(self, payload: dict[str, str]) -> dict[str, Any]:
        if self._client is not None:
            return self._send(self._client, payload)
        with httpx.Client(timeout=self.config.timeout_s) as client:
            return self._send(client, payload)

    def _send(self, client: httpx.Client, payload: dict[str, str]) -> dict[str, Any]:
        try:
            response = client.post(self.config.api_url, data=payload, timeout=self.config.timeout_s)
        except httpx.TransportError as exc:
            raise TransientProviderError(f"{type(exc).__name__}: {exc}", backend=BACKEND) from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientProviderError(f"HTTP {response.status_code}", backend=BACKEND)
        if response.status_code >= 400:
            raise HardProviderError(
                f"HTTP {response.status_code}: {response.text[:500]}", backend=BACKEND
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise HardProviderError(f"Invalid JSON from OCR.space: {preview(response.text)}", backend=BACKEND) from exc
        if not isinstance(body, dict):
            # The service answers some key errors with a bare JSON string.
            raise HardProviderError(f"Unexpected OCR.space response: {preview(str(body))}", backend=BACKEND)
        return body
