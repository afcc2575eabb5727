"""
Firestore query helpers.

where_filter uses the keyword FieldFilter API so queries don't emit the
positional-argument deprecation warning.
"""

from datetime import datetime, timezone
from typing import Iterator, List, TypeVar

from firebase_admin import firestore

T = TypeVar("T")


def where_filter(query, field_path: str, op_string: str, value):
    """
    Usage:
        query = where_filter(collection, "suburb", "==", "Walmer")
        query = where_filter(query, "groups", "array_contains", group_id)
    """
    return query.where(filter=firestore.FieldFilter(field_path, op_string, value))


def chunked(items: List[T], size: int) -> Iterator[List[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

