"""Identifier handling.

Services pass ids around as plain strings. Inside MongoDB, ids that look like
ObjectIds are stored as ObjectIds; anything else (e.g. the built-in catalog's
"lender1") is stored verbatim. Both directions go through this module so
queries and writes always agree on the representation.
"""

from typing import Any, Union

from bson import ObjectId

from errors import InvalidIdError


def new_id() -> str:
    return str(ObjectId())


def to_object_id(value: Any) -> ObjectId:
    """Strict conversion for primary keys; raises InvalidIdError."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise InvalidIdError(f"Invalid id: {value!r}")


def to_store_id(value: Any) -> Union[ObjectId, str]:
    """Lenient conversion for reference fields (userId, lenderId, reportId)."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def from_store_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def check_id(value: Any) -> str:
    """Validate a primary-key string without converting it."""
    return str(to_object_id(value))
