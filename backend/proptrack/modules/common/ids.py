import uuid
from proptrack.core.exceptions import InvalidInputError


def parse_id(value) -> uuid.UUID:
    """Path/body identifier to UUID; malformed ids are a 400, not a 404"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid ID format", error=f"'{value}' is not a valid id")
