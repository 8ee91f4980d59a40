"""Configuration management for the extraction pipeline.

Loads and validates YAML configuration with defaults for preprocessing,
the local and remote OCR backends, the AI parser, and the extraction
waterfall. Credentials and backend switches may be overridden from the
environment. Configuration is read once and frozen.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class PreprocessingConfig(_FrozenModel):
    """Configuration for the OCR image variants."""

    enabled: bool = True
    general_max_side: int = 2500
    general_sharpen_sigma: float = 2.0
    general_brightness: float = 1.1
    document_max_side: int = 3500
    document_sharpen_sigma: float = 3.0
    document_brightness: float = 1.2
    document_threshold: int = 100


class OCRConfig(_FrozenModel):
    """Configuration for the local Tesseract engine."""

    tesseract_cmd: str | None = None
    lang: str = "eng+hin"
    fallback_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    supported_extensions: tuple[str, ...] = (
        ".jpg",
        ".jpeg",
        ".png",
        ".webp",
        ".bmp",
        ".tif",
        ".tiff",
        ".pdf",
    )


class RemoteOCRConfig(_FrozenModel):
    """Configuration for the OCR.space recognition service."""

    enabled: bool = True
    api_url: str = "https://api.ocr.space/parse/image"
    api_key: str | None = None
    language: str = "eng"
    bilingual_language: str = "eng,hin"
    engine: int = 2
    detect_orientation: bool = True
    scale: bool = True
    timeout_s: float = 30.0
    max_retries: int = 2
    backoff_s: float = 1.0


class AIConfig(_FrozenModel):
    """Configuration for the OpenAI-compatible text-completion backend."""

    enabled: bool = False
    base_url: str = "https://api.groq.com/openai/v1"
    api_key: str | None = None
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.1
    max_tokens: int = 500
    timeout_s: float = 30.0
    max_retries: int = 2
    json_mode: bool = True
    max_scan_chars: int = 8000


class ExtractionConfig(_FrozenModel):
    """Thresholds for the extraction waterfall."""

    remote_accept_threshold: float = 70.0
    high_confidence_threshold: float = 60.0


class AppConfig(_FrozenModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    remote_ocr: RemoteOCRConfig = Field(default_factory=RemoteOCRConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Merge environment overrides into raw YAML data.

    Args:
        raw: Parsed YAML mapping (not modified).

    Returns:
        New mapping with environment values applied.
    """
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in raw.items()}
    remote = merged.setdefault("remote_ocr", {})
    ai = merged.setdefault("ai", {})
    ocr = merged.setdefault("ocr", {})

    if "USE_OCR_SPACE" in os.environ:
        remote["enabled"] = os.environ["USE_OCR_SPACE"].strip().lower() != "false"
    if os.getenv("OCR_SPACE_API_KEY"):
        remote["api_key"] = os.environ["OCR_SPACE_API_KEY"]
    if "USE_AI_EXTRACTION" in os.environ:
        ai["enabled"] = _env_flag(os.environ["USE_AI_EXTRACTION"])
    if os.getenv("GROQ_API_KEY"):
        ai["api_key"] = os.environ["GROQ_API_KEY"]
    if os.getenv("GROQ_MODEL"):
        ai["model"] = os.environ["GROQ_MODEL"]
    if os.getenv("TESSERACT_CMD"):
        ocr["tesseract_cmd"] = os.environ["TESSERACT_CMD"]
    if os.getenv("LOG_LEVEL"):
        merged["log_level"] = os.environ["LOG_LEVEL"]
    return merged


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated, frozen application configuration.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    raw: dict[str, Any] = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    config = AppConfig(**_apply_env_overrides(raw))
    logger.info(
        "Backends: remote OCR %s, AI %s",
        "enabled" if config.remote_ocr.enabled else "disabled",
        "enabled" if config.ai.enabled else "disabled",
    )
    return config
