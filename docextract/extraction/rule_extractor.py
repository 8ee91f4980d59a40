"""Deterministic regex rescue for identity cards and blood reports.

Runs over raw OCR text and fills only the fields an earlier stage left
empty. Identity cards are bilingual (Latin and Devanagari), reports are
usually tables rendered as ``Label | Value`` or ``Label: Value`` rows.
"""

import re
from dataclasses import replace

from docextract.utils.logger import get_logger
from docextract.validation.field_validators import (
    derive_age,
    filter_name,
    is_plausible_name,
    normalize_age,
    normalize_blood_group,
    normalize_date,
    normalize_gender,
    normalize_id_number,
)

from .names import NAME_DICTIONARY
from .records import IdentityRecord, ReportRecord

logger = get_logger(__name__)

_DATE = r"(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4})"
_SIGN = r"(?:\(\s*[+\-]\s*\)|[+\-](?:\s*VE\b)?|POSITIVE|NEGATIVE|POS\b|NEG\b)"
_SEP = r"\s*[|:]?\s*[|:]?\s*"

# Twelve digits, optionally grouped 4-4-4 by single spaces; not part of a longer run.
_ID_NUMBER_RE = re.compile(r"(?<!\d)(\d{4} ?\d{4} ?\d{4})(?! ?\d)")
# A standalone 4-digit group right before a match makes it the tail of a 16-digit VID.
_LEADING_GROUP_RE = re.compile(r"(?:^|[^\d/\-.])\d{4} $")

_DOB_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"(?:जन्म\s*तिथि\s*[/\\]?\s*)?(?:DOB|D\.O\.B\.?|Date\s+of\s+Birth)\s*[:|\-\s]*" + _DATE,
        re.IGNORECASE,
    ),
    re.compile(r"जन्म\s*तिथि\s*[:\s]*" + _DATE),
    re.compile(r"\b(\d{2}/\d{2}/\d{4})\b"),
]

_TITLE_WORDS = r"[A-Z][a-z]{2,}(?:[ \t]+[A-Z][a-z]+)*"

# Positional name heuristics, tried in order when the dictionary misses.
_NAME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"^[ \t]*(" + _TITLE_WORDS + r")[ \t]*\n[^\n]*(?:\bDOB\b|D\.O\.B|Date\s+of\s+Birth|जन्म)",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(r"[\u0900-\u097F]+[ \t]*\n?[ \t]*(" + _TITLE_WORDS + r")"),
    re.compile(
        r"(" + _TITLE_WORDS + r")[ \t]*\n[^\n]*(?:\bFEMALE\b|\bMALE\b|पुरुष|महिला)",
        re.IGNORECASE,
    ),
    re.compile(r"\b([A-Z][a-z]*[aeiou][a-z]{2,})\b"),
]
_NAME_TAIL_RE = re.compile(r"\s*(?:\b(?:DOB|FEMALE|MALE)\b|जन्म|पुरुष|महिला).*", re.IGNORECASE | re.DOTALL)
MIN_POSITIONAL_NAME_LENGTH = 4

_GENDER_LABEL_RE = re.compile(r"\b(?:Gender|Sex)" + _SEP + r"(Male|Female|M|F)\b", re.IGNORECASE)
_GENDER_BILINGUAL_RE = re.compile(r"(पुरुष|महिला)")
_FEMALE_RE = re.compile(r"\bFEMALE\b", re.IGNORECASE)
_MALE_RE = re.compile(r"\bMALE\b", re.IGNORECASE)

_FINAL_BLOOD_GROUP_RE = re.compile(
    r"FINAL\s*BLOOD\s*GROUP(?:ING)?" + _SEP + r"((?:AB|A|B|O)\s*" + _SIGN + r")",
    re.IGNORECASE,
)
_ABO_GROUP_RE = re.compile(
    r"\bABO\s*(?:BLOOD\s*)?GROUP(?:ING)?" + _SEP + r"(AB|A|B|O)\b",
    re.IGNORECASE,
)
_RH_FACTOR_RE = re.compile(
    r"\bRH\s*(?:\(\s*D\s*\)\s*)?(?:FACTOR|TYPE|TYPING)?" + _SEP + r"(" + _SIGN + r")",
    re.IGNORECASE,
)
_BLOOD_GROUP_RE = re.compile(
    r"\bBLOOD\s*GROUP" + _SEP + r"((?:AB|A|B|O)\s*" + _SIGN + r")",
    re.IGNORECASE,
)

_ROW_END = r"\s*(?=\r|\n|\||\bGender\b|\bSex\b|\bDate\b|\bAge\b|$)"
_PATIENT_NAME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bPatient(?:'s)?\s*Name" + _SEP + r"((?:Mr|Mrs|Ms|Miss)?\.?\s*[A-Za-z][A-Za-z. ]*?)" + _ROW_END, re.IGNORECASE),
    re.compile(r"\bName" + _SEP + r"((?:Mr|Mrs|Ms|Miss)?\.?\s*[A-Za-z][A-Za-z. ]*?)" + _ROW_END, re.IGNORECASE),
]
_HONORIFIC_RE = re.compile(r"^(?:Mr|Mrs|Ms|Miss)\.?\s+", re.IGNORECASE)
_AGE_SEX_RE = re.compile(
    r"\bAge\s*/\s*(?:Sex|Gender)" + _SEP + r"(\d{1,3})\s*(?:Years?|Yrs?|Y)?\s*/\s*(Male|Female|M|F)\b",
    re.IGNORECASE,
)
_AGE_RE = re.compile(r"\bAge" + _SEP + r"(\d{1,3})\s*(?:Years?|Yrs?|Y)?\b", re.IGNORECASE)
_TEST_DATE_RE = re.compile(
    r"\b(?:Report(?:ed)?|Test|Collection|Collected|Sample|Registration|Reg\.?)?\s*"
    r"(?:Date|On)\s*(?:&\s*Time)?" + _SEP + r"(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})",
    re.IGNORECASE,
)


class RuleExtractor:
    """Regex-based field extractor for identity cards and blood reports.

    Only fields missing from the ``seed`` record are searched for, so the
    extractor can follow an AI or remote-OCR pass without overriding it.
    """

    def __init__(self, name_dictionary: tuple[str, ...] = NAME_DICTIONARY) -> None:
        self._name_patterns = [
            (name, re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE)) for name in name_dictionary
        ]

    def extract_identity(self, text: str, seed: IdentityRecord | None = None) -> IdentityRecord:
        """Fill missing identity fields from OCR text.

        Args:
            text: Raw OCR text of an identity card.
            seed: Record from an earlier stage, if any.

        Returns:
            A new record; ``seed`` is not modified.
        """
        record = replace(seed) if seed else IdentityRecord()

        if not record.id_number:
            record.id_number = self.find_id_number(text)
        if not is_plausible_name(record.name):
            record.name = self.find_name(text)
        if not record.date_of_birth:
            record.date_of_birth = self.find_date_of_birth(text)
        if not record.gender:
            record.gender = self.find_identity_gender(text)
        if record.derived_age is None:
            record.derived_age = derive_age(record.date_of_birth)

        logger.info(
            "Identity regex pass: id=%s name=%s dob=%s gender=%s",
            "found" if record.id_number else "missing",
            record.name,
            record.date_of_birth,
            record.gender,
        )
        return record

    def extract_report(self, text: str, seed: ReportRecord | None = None) -> ReportRecord:
        """Fill missing blood-report fields from OCR text.

        Args:
            text: Raw OCR text of a laboratory report.
            seed: Record from an earlier stage, if any.

        Returns:
            A new record; ``seed`` is not modified.
        """
        record = replace(seed) if seed else ReportRecord()

        if not record.blood_group:
            record.blood_group = self.find_blood_group(text)
        if not record.patient_name:
            record.patient_name = self.find_patient_name(text)

        age, gender = self._find_age_sex(text)
        if record.patient_age is None:
            record.patient_age = age if age is not None else self.find_age(text)
        if not record.gender:
            record.gender = gender or self.find_report_gender(text)
        if not record.test_date:
            record.test_date = self.find_test_date(text)

        logger.info(
            "Report regex pass: blood_group=%s name=%s age=%s gender=%s",
            record.blood_group,
            record.patient_name,
            record.patient_age,
            record.gender,
        )
        return record

    def find_id_number(self, text: str) -> str | None:
        for match in _ID_NUMBER_RE.finditer(text):
            if _LEADING_GROUP_RE.search(text[max(0, match.start() - 6) : match.start()]):
                continue
            return normalize_id_number(match.group(1))
        return None

    def find_name(self, text: str) -> str | None:
        """Find a person's name on an identity card.

        The curated dictionary is tried first, then positional heuristics:
        the line above the date of birth, a title-case word after
        Devanagari text, the line above the gender, and finally any
        title-case word of four or more letters with a vowel.
        """
        for name, pattern in self._name_patterns:
            if pattern.search(text):
                logger.debug("Dictionary name match: %s", name)
                return name

        for pattern in _NAME_PATTERNS:
            for match in pattern.finditer(text):
                candidate = _NAME_TAIL_RE.sub("", match.group(1)).strip()
                if len(candidate) >= MIN_POSITIONAL_NAME_LENGTH and is_plausible_name(candidate):
                    logger.debug("Positional name match: %s", candidate)
                    return candidate
        return None

    def find_date_of_birth(self, text: str) -> str | None:
        for pattern in _DOB_PATTERNS:
            for match in pattern.finditer(text):
                normalized = normalize_date(match.group(1))
                if normalized:
                    return normalized
        return None

    def find_identity_gender(self, text: str) -> str | None:
        match = _GENDER_LABEL_RE.search(text)
        if match:
            return normalize_gender(match.group(1))
        match = _GENDER_BILINGUAL_RE.search(text)
        if match:
            return normalize_gender(match.group(1))
        return _bare_gender(text)

    def find_blood_group(self, text: str) -> str | None:
        """Find the blood group on a laboratory report.

        Prefers a "Final Blood Group" row, then combines separate ABO and
        Rh rows, then any other labelled blood-group value.
        """
        match = _FINAL_BLOOD_GROUP_RE.search(text)
        if match:
            group = normalize_blood_group(match.group(1))
            if group:
                return group

        abo = _ABO_GROUP_RE.search(text)
        rh = _RH_FACTOR_RE.search(text)
        if abo and rh:
            token = rh.group(1).upper()
            sign = "+" if "POS" in token or "+" in token else "-"
            group = normalize_blood_group(abo.group(1) + sign)
            if group:
                return group

        for match in _BLOOD_GROUP_RE.finditer(text):
            group = normalize_blood_group(match.group(1))
            if group:
                return group
        return None

    def find_patient_name(self, text: str) -> str | None:
        for pattern in _PATIENT_NAME_PATTERNS:
            for match in pattern.finditer(text):
                candidate = filter_name(_HONORIFIC_RE.sub("", match.group(1).strip()))
                if candidate:
                    return candidate
        return None

    def find_age(self, text: str) -> int | None:
        match = _AGE_RE.search(text)
        if match:
            return normalize_age(match.group(1))
        return None

    def find_report_gender(self, text: str) -> str | None:
        match = _GENDER_LABEL_RE.search(text)
        if match:
            return normalize_gender(match.group(1))
        return _bare_gender(text)

    def find_test_date(self, text: str) -> str | None:
        for match in _TEST_DATE_RE.finditer(text):
            normalized = normalize_date(match.group(1))
            if normalized:
                return normalized
        return None

    def _find_age_sex(self, text: str) -> tuple[int | None, str | None]:
        match = _AGE_SEX_RE.search(text)
        if not match:
            return None, None
        return normalize_age(match.group(1)), normalize_gender(match.group(2))


def _bare_gender(text: str) -> str | None:
    # FEMALE contains MALE, so it is checked first.
    if _FEMALE_RE.search(text):
        return "Female"
    if _MALE_RE.search(text):
        return "Male"
    return None
