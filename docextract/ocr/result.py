"""OCR output shared by the local and remote engines."""

from dataclasses import dataclass

LOCAL = "local"
REMOTE = "remote"


@dataclass(frozen=True)
class OCRResult:
    """Text read from one document.

    Attributes:
        text: Recognized text, pages joined by blank lines.
        confidence: Heuristic reliability score in the 0-100 range.
        source_method: ``"local"`` or ``"remote"``.
        language: Language hint the engine ran with.
        page_count: Number of pages read.
    """

    text: str
    confidence: float
    source_method: str
    language: str = "eng"
    page_count: int = 1

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())
