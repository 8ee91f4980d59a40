"""Field-level validators shared by the AI and regex extraction paths.

Normalizes blood groups, identity numbers and genders, derives ages from
dates of birth, and filters implausible names. All functions are pure:
the same input always yields the same output.
"""

import re
from datetime import date

from docextract.utils.errors import ValidationRejection
from docextract.utils.logger import get_logger

logger = get_logger(__name__)

# Checked in this order so that "AB+" is never reduced to "B+".
CANONICAL_BLOOD_GROUPS: tuple[str, ...] = ("AB+", "AB-", "A+", "A-", "B+", "B-", "O+", "O-")

# (pattern, replacement) applied after upper-casing and whitespace removal.
_SIGN_MARKERS: tuple[tuple[str, str], ...] = (
    ("POSITIVE", "+"),
    ("NEGATIVE", "-"),
    ("(+)", "+"),
    ("(-)", "-"),
    ("+VE", "+"),
    ("-VE", "-"),
    ("POS", "+"),
    ("NEG", "-"),
)

# Rh labels carry no ABO information; only the sign after them matters.
_RH_NOISE_RE = re.compile(r"RH(?:\(D\))?(?:FACTOR|TYPE)?|\(D\)")

NAME_DENY_LIST: frozenset[str] = frozenset(
    {
        "AADHAAR",
        "AADHAR",
        "ADDRESS",
        "AGE",
        "AUTHORITY",
        "BIRTH",
        "BLOOD",
        "DATE",
        "DOB",
        "DOWNLOAD",
        "ENROLLMENT",
        "FATHER",
        "FEMALE",
        "GENDER",
        "GOVERNMENT",
        "GROUP",
        "HELP",
        "IDENTIFICATION",
        "INDIA",
        "ISSUE",
        "ISSUED",
        "MOBILE",
        "MALE",
        "NAME",
        "PATIENT",
        "REPORT",
        "SEX",
        "SIGNATURE",
        "UIDAI",
        "UNIQUE",
        "VID",
        "YEAR",
        "YEARS",
    }
)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50
MIN_AGE = 0
MAX_AGE = 120

_VOWEL_RE = re.compile(r"[aeiouAEIOU]")
_LETTER_RE = re.compile(r"[^\W\d_]")
_DATE_RE = re.compile(r"^\s*(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})\s*$")

_GENDER_ALIASES: dict[str, str] = {
    "M": "Male",
    "MALE": "Male",
    "पुरुष": "Male",
    "F": "Female",
    "FEMALE": "Female",
    "महिला": "Female",
}


def normalize_blood_group(value: str | None) -> str | None:
    """Reduce free-form blood-group text to a canonical value.

    Case, whitespace and punctuation are ignored; verbal sign markers
    such as ``POSITIVE``, ``+ve`` or ``(-)`` are mapped to ``+``/``-``.

    Args:
        value: Raw blood-group text, e.g. ``"b positive"`` or ``"AB (+)"``.

    Returns:
        One of :data:`CANONICAL_BLOOD_GROUPS`, or ``None`` when the text
        cannot be reduced to one.
    """
    if not value:
        return None

    text = value.upper().replace("−", "-").replace("–", "-")
    text = re.sub(r"\s+", "", text)
    text = _RH_NOISE_RE.sub("", text)
    for marker, sign in _SIGN_MARKERS:
        text = text.replace(marker, sign)
    text = re.sub(r"[^A-Z+\-]", "", text)

    if text in CANONICAL_BLOOD_GROUPS:
        return text

    for group in CANONICAL_BLOOD_GROUPS:
        if group in text:
            return group

    logger.debug("Blood group %r is not reducible to a canonical value", value)
    return None


def normalize_id_number(value: str | int | None) -> str | None:
    """Strip whitespace from an identity number and require 12 digits.

    Args:
        value: Raw identity number, possibly space-grouped.

    Returns:
        The 12-digit string, or ``None``.
    """
    if value is None:
        return None
    digits = re.sub(r"\s+", "", str(value))
    if re.fullmatch(r"\d{12}", digits):
        return digits
    return None


def normalize_gender(value: str | None) -> str | None:
    """Map gender text to ``"Male"``/``"Female"``.

    Args:
        value: Raw value, e.g. ``"MALE"``, ``"f"`` or ``"पुरुष/MALE"``.

    Returns:
        ``"Male"``, ``"Female"`` or ``None``.
    """
    if not value:
        return None
    for token in re.split(r"[\s/|,]+", value.strip()):
        mapped = _GENDER_ALIASES.get(token.upper())
        if mapped:
            return mapped
    return None


def parse_date(value: str | None) -> date | None:
    """Parse a ``DD/MM/YYYY`` date, accepting ``-`` and ``.`` separators.

    Two-digit years pivot at 50: ``49`` is 2049, ``50`` is 1950.

    Args:
        value: Date text.

    Returns:
        The parsed date, or ``None`` for malformed or impossible dates.
    """
    if not value:
        return None
    match = _DATE_RE.match(value)
    if not match:
        return None

    day, month, year = (int(part) for part in match.groups())
    if len(match.group(3)) == 2:
        year += 2000 if year < 50 else 1900

    try:
        return date(year, month, day)
    except ValueError:
        return None


def normalize_date(value: str | None) -> str | None:
    """Rewrite a parseable date as zero-padded ``DD/MM/YYYY``."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.strftime("%d/%m/%Y")


def derive_age(date_of_birth: str | None, today: date | None = None) -> int | None:
    """Compute an integer age from a ``DD/MM/YYYY`` date of birth.

    The age is decremented when the birthday has not yet occurred in the
    current year.

    Args:
        date_of_birth: Date of birth text.
        today: Reference date. Defaults to :func:`datetime.date.today`.

    Returns:
        Age in years strictly between 0 and 120, else ``None``.
    """
    born = parse_date(date_of_birth)
    if born is None:
        return None

    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1

    if MIN_AGE < age < MAX_AGE:
        return age
    return None


def normalize_age(value: str | int | None) -> int | None:
    """Coerce an age such as ``"21 Years"`` to a plausible integer."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        age = value
    else:
        digits = re.search(r"\d{1,3}", str(value))
        if not digits:
            return None
        age = int(digits.group(0))
    if MIN_AGE < age < MAX_AGE:
        return age
    return None


def check_name(name: str | None) -> str:
    """Apply the name plausibility filter.

    Args:
        name: Candidate name.

    Returns:
        The stripped name when plausible.

    Raises:
        ValidationRejection: With the reason the name was rejected.
    """
    if name is None:
        raise ValidationRejection("name", name, "missing")

    candidate = name.strip()
    if len(candidate) < MIN_NAME_LENGTH:
        raise ValidationRejection("name", name, "too short")
    if len(candidate) > MAX_NAME_LENGTH:
        raise ValidationRejection("name", name, "too long")
    if not _LETTER_RE.search(candidate):
        raise ValidationRejection("name", name, "no letters")
    if not _VOWEL_RE.search(candidate):
        raise ValidationRejection("name", name, "no vowel")
    if not ("A" <= candidate[0].upper() <= "Z"):
        raise ValidationRejection("name", name, "does not start with a letter")
    if any(token in NAME_DENY_LIST for token in re.split(r"[\s.]+", candidate.upper())):
        raise ValidationRejection("name", name, "structural word")
    return candidate


def is_plausible_name(name: str | None) -> bool:
    """Return whether ``name`` passes the plausibility filter."""
    try:
        check_name(name)
    except ValidationRejection:
        return False
    return True


def filter_name(name: str | None) -> str | None:
    """Return the cleaned name, or ``None`` if it is implausible."""
    try:
        return check_name(name)
    except ValidationRejection as exc:
        if name is not None:
            logger.info("%s", exc)
        return None
