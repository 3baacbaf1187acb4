"""
tests.test_passwords

Credential hashing, verification and the already-hashed guard.
"""

from __future__ import annotations

import pytest

from shiptrack.auth.passwords import (
    hash_password,
    looks_hashed,
    normalize_identifier,
    prepare_password,
    verify_password,
)
from shiptrack.errors import ValidationFailed


def test_hash_then_verify_accepts_original_and_trims() -> None:
    stored = hash_password("  s3cret!  ", rounds=4)
    assert looks_hashed(stored)
    assert verify_password("s3cret!", stored)
    assert verify_password(" s3cret! ", stored)
    assert not verify_password("s3cret", stored)


def test_prepare_password_never_double_hashes() -> None:
    stored = hash_password("hunter22", rounds=4)
    assert prepare_password(stored, rounds=4) == stored
    assert prepare_password(f"  {stored}\n", rounds=4) == stored

    fresh = prepare_password("hunter22", rounds=4)
    assert fresh != "hunter22"
    assert verify_password("hunter22", fresh)


@pytest.mark.parametrize(
    "candidate, stored",
    [
        (None, "$2b$04$abcdefghijklmnopqrstuu"),
        ("", "$2b$04$abcdefghijklmnopqrstuu"),
        ("   ", "$2b$04$abcdefghijklmnopqrstuu"),
        ("password", None),
        ("password", "not-a-bcrypt-hash"),
    ],
)
def test_verify_password_rejects_missing_or_malformed(candidate, stored) -> None:
    assert verify_password(candidate, stored) is False


def test_hash_password_rejects_empty_and_over_long_secrets() -> None:
    with pytest.raises(ValidationFailed):
        hash_password("   ", rounds=4)
    with pytest.raises(ValidationFailed):
        hash_password("x" * 73, rounds=4)


def test_normalize_identifier() -> None:
    assert normalize_identifier("  Admin@TMS.com ") == "admin@tms.com"
