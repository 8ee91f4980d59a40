"""AI text parser backed by an OpenAI-compatible chat completion API.

Sends OCR text with a field-extraction prompt, pulls the first JSON
object out of the reply and normalizes every field through the shared
validators. The model is asked for null rather than guesses, and the
validators null out anything implausible it still returns.
"""

import json
from typing import Any

import openai

from docextract.utils.config import AIConfig
from docextract.utils.errors import HardProviderError, ParseError, TransientProviderError
from docextract.utils.logger import get_logger, preview
from docextract.validation.field_validators import (
    derive_age,
    filter_name,
    normalize_age,
    normalize_blood_group,
    normalize_date,
    normalize_gender,
    normalize_id_number,
)

from . import prompts
from .records import ExtractionMethod, IdentityRecord, ReportRecord

logger = get_logger(__name__)

BACKEND = "ai"

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def extract_json_object(text: str, max_scan: int = 8000) -> dict[str, Any]:
    """Return the first balanced JSON object found in ``text``.

    Braces inside string literals are ignored. The scan stops after
    ``max_scan`` characters from the opening brace.

    Args:
        text: Model reply, possibly wrapped in prose or code fences.
        max_scan: Maximum number of characters examined.

    Returns:
        The decoded object.

    Raises:
        ParseError: No object was found, it was cut off, or it is not
            valid JSON.
    """
    start = text.find("{")
    if start < 0:
        raise ParseError(f"No JSON object in model output: {preview(text, 200)}", backend=BACKEND)

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, min(len(text), start + max_scan)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start : index + 1]
                try:
                    parsed = json.loads(candidate)
                except json.JSONDecodeError as exc:
                    raise ParseError(f"Invalid JSON from model: {exc}", backend=BACKEND) from exc
                if not isinstance(parsed, dict):
                    raise ParseError("Model output is not a JSON object", backend=BACKEND)
                return parsed

    raise ParseError("Unterminated JSON object in model output", backend=BACKEND)


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.upper() in {"NULL", "NONE", "N/A", "NOT_FOUND", "UNKNOWN"}:
        return None
    return text


class AITextParser:
    """Structured field extraction from OCR text with a chat model.

    Args:
        config: AI configuration (endpoint, model, sampling, timeouts).
        client: Optional pre-built ``openai.OpenAI`` client. Created on
            first use from ``config`` when omitted.
    """

    def __init__(self, config: AIConfig, client: openai.OpenAI | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            if not self.config.api_key:
                raise HardProviderError("AI API key is not configured", backend=BACKEND)
            self._client = openai.OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_s,
                max_retries=self.config.max_retries,
            )
        return self._client

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw reply text.

        Raises:
            TransientProviderError: Timeouts, connection errors, rate
                limits and server errors left after the client's retries.
            HardProviderError: Missing key or any other API rejection.
            ParseError: The reply had no content.
        """
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": prompts.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        if self.config.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(**kwargs)
        except _TRANSIENT_ERRORS as exc:
            raise TransientProviderError(f"{type(exc).__name__}: {exc}", backend=BACKEND) from exc
        except openai.APIError as exc:
            raise HardProviderError(f"{type(exc).__name__}: {exc}", backend=BACKEND) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ParseError("Empty response from model", backend=BACKEND)
        logger.debug("AI raw response: %s", preview(content))
        return content

    def parse_identity(self, text: str) -> IdentityRecord:
        """Extract identity-card fields from OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            Record with normalized fields; implausible values are None.
        """
        data = self._request(prompts.IDENTITY_PROMPT, text)

        date_of_birth = normalize_date(_clean_str(data.get("date_of_birth")))
        record = IdentityRecord(
            id_number=normalize_id_number(_clean_str(data.get("id_number"))),
            name=filter_name(_clean_str(data.get("name"))),
            date_of_birth=date_of_birth,
            gender=normalize_gender(_clean_str(data.get("gender"))),
            derived_age=derive_age(date_of_birth),
            extraction_method=ExtractionMethod.AI,
        )
        logger.info(
            "AI identity parse: id=%s name=%s dob=%s",
            "found" if record.id_number else "missing",
            record.name,
            record.date_of_birth,
        )
        return record

    def parse_report(self, text: str) -> ReportRecord:
        """Extract blood-report fields from OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            Record with normalized fields; implausible values are None.
        """
        data = self._request(prompts.REPORT_PROMPT, text)

        record = ReportRecord(
            blood_group=normalize_blood_group(_clean_str(data.get("blood_group"))),
            patient_name=filter_name(_clean_str(data.get("patient_name"))),
            patient_age=normalize_age(data.get("age")),
            gender=normalize_gender(_clean_str(data.get("gender"))),
            test_date=normalize_date(_clean_str(data.get("test_date"))),
            extraction_method=ExtractionMethod.AI,
        )
        logger.info(
            "AI report parse: blood_group=%s name=%s age=%s",
            record.blood_group,
            record.patient_name,
            record.patient_age,
        )
        return record

    def parse_blood_group(self, text: str) -> str | None:
        """Extract only a canonical blood group, or None."""
        data = self._request(prompts.BLOOD_GROUP_PROMPT, text)
        return normalize_blood_group(_clean_str(data.get("blood_group")))

    def _request(self, template: str, text: str) -> dict[str, Any]:
        if not text or not text.strip():
            raise ParseError("No OCR text to parse", backend=BACKEND)
        reply = self.complete(prompts.render(template, text))
        try:
            return extract_json_object(reply, self.config.max_scan_chars)
        except ParseError:
            logger.warning("Could not parse AI response: %s", preview(reply))
            raise
