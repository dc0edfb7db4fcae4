"""
RSCP Utility Functions

Dates, names, levels, simple format checks and score-to-level mapping for
issuer applications built on the core.
"""

import math
import re
import unicodedata
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from .models import CertificationLevel, PublicAttributes
from .protocol import parse_iso_date

LevelLike = Union[CertificationLevel, str]

_WHITESPACE = re.compile(r"\s+")
_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PHONE = re.compile(r"\+?[0-9]{10,15}")
_PHONE_SEPARATORS = re.compile(r"[\s-]")
_COUNTRY_CODE = re.compile(r"[A-Za-z]{2}")
_ISSUER_CODE = re.compile(r"[A-Za-z]{3}")


def _level(level: LevelLike) -> CertificationLevel:
    cert_level = CertificationLevel.coerce(level)
    if cert_level is None:
        raise ValueError(f"Unknown certification level: {level!r}")
    return cert_level


# ============================================================
# Dates
# ============================================================

def get_today_iso() -> str:
    """Today's UTC date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 February in a non-leap target year rolls over to 1 March
        return start.replace(year=start.year + years, month=3, day=1)


def get_expiry_date(level: LevelLike, from_date: Optional[date] = None) -> str:
    """
    Expiry date for a certificate issued on ``from_date`` (default today, UTC).

    Example:
        >>> get_expiry_date("gold", date(2026, 1, 15))
        '2028-01-15'
    """
    start = from_date or datetime.now(timezone.utc).date()
    if isinstance(start, datetime):
        start = start.date()
    return add_years(start, _level(level).validity_years).isoformat()


def _start_of_day(today: Optional[date]) -> datetime:
    day = today or datetime.now(timezone.utc).date()
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _parse_expiry(valid_until: str) -> datetime:
    parsed = parse_iso_date(valid_until)
    if parsed is None:
        raise ValueError(f"Invalid ISO 8601 date: {valid_until!r}")
    return parsed


def is_expired(valid_until: str, today: Optional[date] = None) -> bool:
    """
    True once ``valid_until`` lies before the start of ``today`` (UTC).

    A certificate is still valid on its expiry date.

    Raises:
        ValueError: if ``valid_until`` is not an ISO 8601 date
    """
    return _parse_expiry(valid_until) < _start_of_day(today)


def days_until_expiry(valid_until: str, today: Optional[date] = None) -> int:
    """Whole days left, rounded up; negative once expired."""
    remaining = _parse_expiry(valid_until) - _start_of_day(today)
    return math.ceil(remaining / timedelta(days=1))


# ============================================================
# Names
# ============================================================

def format_full_name(attributes: PublicAttributes) -> str:
    return attributes.full_name


def normalize_name(name: str) -> str:
    """
    Normalize a name for comparison: lowercase, strip diacritics,
    collapse whitespace.

    Example:
        >>> normalize_name("  José   García ")
        'jose garcia'
    """
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(c for c in decomposed if not "\u0300" <= c <= "\u036f")
    return _WHITESPACE.sub(" ", stripped).strip()


# ============================================================
# Levels
# ============================================================

def compare_levels(a: LevelLike, b: LevelLike) -> int:
    """-1, 0 or 1 as ``a`` ranks below, equal to or above ``b``."""
    rank_a, rank_b = _level(a).rank, _level(b).rank
    return (rank_a > rank_b) - (rank_a < rank_b)


def meets_level_requirement(actual: LevelLike, minimum: LevelLike) -> bool:
    return compare_levels(actual, minimum) >= 0


def get_level_display_name(level: LevelLike) -> str:
    return _level(level).display_name


def get_level_training_hours(level: LevelLike) -> int:
    return _level(level).training_hours


def get_level_min_score(level: LevelLike) -> int:
    return _level(level).min_score


def get_level_validity_years(level: LevelLike) -> int:
    return _level(level).validity_years


# ============================================================
# Format Checks
# ============================================================

def is_valid_country_code(code: str) -> bool:
    """Two letters, any case. Shape only; not checked against ISO 3166-1."""
    return isinstance(code, str) and _COUNTRY_CODE.fullmatch(code) is not None


def is_valid_issuer_code(code: str) -> bool:
    return isinstance(code, str) and _ISSUER_CODE.fullmatch(code) is not None


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and _EMAIL.fullmatch(email) is not None


def is_valid_phone(phone: str) -> bool:
    """10 to 15 digits with optional leading +; spaces and dashes ignored."""
    if not isinstance(phone, str):
        return False
    return _PHONE.fullmatch(_PHONE_SEPARATORS.sub("", phone)) is not None


# ============================================================
# Scoring
# ============================================================

def determine_level_from_scores(
    test_score: float,
    hazard_score: Optional[float] = None
) -> Optional[CertificationLevel]:
    """
    Highest level earned by an assessment, or None for a fail.

    Gold and silver need both scores at or above their minimum; bronze
    needs only the test score.
    """
    gold, silver, bronze = (
        CertificationLevel.GOLD, CertificationLevel.SILVER, CertificationLevel.BRONZE
    )
    if hazard_score is not None:
        if test_score >= gold.min_score and hazard_score >= gold.min_score:
            return gold
        if test_score >= silver.min_score and hazard_score >= silver.min_score:
            return silver
    if test_score >= bronze.min_score:
        return bronze
    return None
