"""Paste identifier generation and shape checks.

Identifiers are 8 symbols drawn from a 62-character alphabet with a CSPRNG.
No uniqueness check is made against stored pastes: with 62^8 (~2.2e14)
possible values a collision is an accepted risk, and the primary key rejects
the second insert if one ever happens.
"""

import re
import secrets
import string

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
ID_LENGTH = 8
MAX_ID_LENGTH = 10

_ID_PATTERN = re.compile(r"[0-9A-Za-z]+")


def generate_paste_id(length: int = ID_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid_paste_id(value: str) -> bool:
    """Cheap shape check done before any cache or database lookup."""
    if not value or len(value) > MAX_ID_LENGTH:
        return False
    return bool(_ID_PATTERN.fullmatch(value))
