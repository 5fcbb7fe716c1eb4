"""Unit tests for password hashing and fingerprinting."""

import pytest

from tenancy.application.security import (
    dummy_verify,
    fingerprint_password,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_verifies(self):
        password_hash = hash_password("s3cret")

        assert password_hash != "s3cret"
        assert verify_password("s3cret", password_hash)
        assert not verify_password("S3cret", password_hash)

    def test_hashes_are_salted(self):
        assert hash_password("s3cret") != hash_password("s3cret")

    def test_rejects_password_longer_than_bcrypt_accepts(self):
        with pytest.raises(ValueError):
            hash_password("x" * 73)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("s3cret", "not-a-bcrypt-hash") is False

    def test_dummy_verify_accepts_any_password(self):
        dummy_verify("whatever")
        dummy_verify("x" * 200)


class TestFingerprint:
    def test_is_deterministic(self):
        assert fingerprint_password("pw", "ana@acme.com", "salt") == (
            fingerprint_password("pw", "ana@acme.com", "salt")
        )

    def test_depends_on_every_input(self):
        base = fingerprint_password("pw", "ana@acme.com", "salt")

        assert fingerprint_password("pw2", "ana@acme.com", "salt") != base
        assert fingerprint_password("pw", "bob@acme.com", "salt") != base
        assert fingerprint_password("pw", "ana@acme.com", "pepper") != base

    def test_does_not_contain_the_password(self):
        assert "hunter2" not in fingerprint_password("hunter2", "ana@acme.com", "salt")
