"""
Webhook identifier generation.

Ids are drawn from the `secrets` CSPRNG over a base62 alphabet, so they
are URL-safe without escaping. Uniqueness is enforced by the caller
against persistence, not here.
"""

import re
import secrets
import string

ALPHABET = string.ascii_letters + string.digits
DEFAULT_ID_LENGTH = 12

# Accepted on the public ingestion path; generated ids are a subset.
_VALID_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def generate_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """
    Generate a random URL-safe identifier.

    Args:
        length: Number of characters

    Returns:
        Identifier of exactly `length` characters

    Raises:
        ValueError: length is not positive
    """
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid_id(value: str) -> bool:
    """Syntactic check for webhook ids arriving on public routes."""
    return bool(_VALID_ID.fullmatch(value))
