"""UUID helpers: ids for things that never get a row, and checks on ids read from JSON."""

import re
import uuid

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_uuid() -> str:
    """Return a random (version 4) UUID in canonical string form."""
    return str(uuid.uuid4())


def is_valid_uuid(value) -> bool:
    """True for canonical RFC 4122 strings of versions 1-5, any letter case."""
    if not isinstance(value, str):
        return False
    return bool(_UUID_PATTERN.match(value))
