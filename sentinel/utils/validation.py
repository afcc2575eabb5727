"""
Reference data and input checks shared by all request handlers.

Suburb and category lists are fixed at import time. Matching is
case-insensitive; canonical_* helpers return the reference spelling that
gets stored, so equality queries in Firestore stay consistent.
"""

from typing import Dict, Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email

PE_SUBURBS = (
    "Walmer", "Korsten", "Bethelsdorp", "Summerstrand", "Newton Park",
    "New Brighton", "Zwide", "Amsterdamhoek", "Mill Park", "Lorraine",
    "Sydenham", "North End", "Central", "Greenacres", "Parsons Hill",
    "Gelvandale", "Schauderville", "Algoa Park", "Malabar", "Kensington",
    "Fernglen", "Linton Grange", "Prospect Hill", "Mount Pleasant", "Booysens Park",
    "Salt Lake", "Cradock Place", "Humerail", "Jabavu", "KwaZakhele",
    "Kwamagxaki", "Kwamaxaka", "Motherwell", "Port Elizabeth Central", "Red Location",
    "Sweden Park", "Windvogel", "Wells Estate", "Chatty", "Colchester",
)

VALID_CATEGORIES = (
    "Robbery", "GBV", "Hazard", "General", "Theft", "Accident",
    "Suspicious Activity", "Community Event", "Safety Tip",
)

DEFAULT_NOTIFICATION_CATEGORIES = ("Robbery", "GBV", "Hazard", "General")
DEFAULT_CATEGORY = "General"

MIN_SHARE_DURATION = 15
MAX_SHARE_DURATION = 120
DEFAULT_SHARE_DURATION = 30

_SUBURB_LOOKUP: Dict[str, str] = {s.casefold(): s for s in PE_SUBURBS}
_CATEGORY_LOOKUP: Dict[str, str] = {c.casefold(): c for c in VALID_CATEGORIES}


def canonical_suburb(suburb: Optional[str]) -> Optional[str]:
    if not suburb:
        return None
    return _SUBURB_LOOKUP.get(suburb.strip().casefold())


def canonical_category(category: Optional[str]) -> Optional[str]:
    if not category:
        return None
    return _CATEGORY_LOOKUP.get(category.strip().casefold())


def is_valid_suburb(suburb: Optional[str]) -> bool:
    return canonical_suburb(suburb) is not None


def is_valid_category(category: Optional[str]) -> bool:
    return canonical_category(category) is not None


def is_valid_duration(duration: int) -> bool:
    return MIN_SHARE_DURATION <= duration <= MAX_SHARE_DURATION


def is_valid_email(email: Optional[str]) -> bool:
    """
    Syntax-only email check (no DNS lookups).

    The address must round-trip unchanged and its domain must contain a dot,
    which rules out intranet-style addresses like "user@localhost".
    """
    if not email or not email.strip():
        return False
    try:
        result = validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return result.normalized.casefold() == email.casefold() and "." in result.domain


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def dedupe(values: Iterable[str]) -> List[str]:
    """Remove duplicates while keeping first-seen order."""
    return list(dict.fromkeys(values))


def suburb_list() -> List[str]:
    return list(PE_SUBURBS)


def category_list() -> List[str]:
    return list(VALID_CATEGORIES)
