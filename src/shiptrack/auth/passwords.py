"""
shiptrack.auth.passwords

Credential hashing and verification (bcrypt).

Responsibilities:
- Hash secrets for storage and verify candidates against stored hashes.
- Detect values that are already hashed so repeated saves never double-hash.
- Normalize login identifiers (username/email).
"""

from __future__ import annotations

import bcrypt

from shiptrack.errors import ValidationFailed

# bcrypt hashes start with $2a$, $2b$ or $2y$.
HASH_PREFIX = "$2"

# bcrypt only looks at the first 72 bytes of a secret.
MAX_SECRET_BYTES = 72


def normalize_identifier(value: str) -> str:
    return value.strip().lower()


def looks_hashed(value: str | None) -> bool:
    return bool(value) and value.strip().startswith(HASH_PREFIX)


def hash_password(secret: str, *, rounds: int = 10) -> str:
    raw = secret.strip().encode("utf-8")
    if not raw:
        raise ValidationFailed("Password is required")
    if len(raw) > MAX_SECRET_BYTES:
        raise ValidationFailed(f"Password must be at most {MAX_SECRET_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def prepare_password(secret: str, *, rounds: int = 10) -> str:
    """
    Storage transform for write paths that may receive an existing hash.
    """

    value = secret.strip()
    if looks_hashed(value):
        return value
    return hash_password(value, rounds=rounds)


def verify_password(candidate: str | None, stored_hash: str | None) -> bool:
    if not candidate or not stored_hash:
        return False
    cleaned = candidate.strip().encode("utf-8")
    if not cleaned:
        return False
    try:
        return bcrypt.checkpw(cleaned, stored_hash.strip().encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long candidate.
        return False


# --- Module Notes -----------------------------------------------------------
# Hashing is CPU-bound; services call these through `asyncio.to_thread`.
