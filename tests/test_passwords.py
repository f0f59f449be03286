"""Tests for zenith.security.passwords: argon2id hashing."""

import pytest
from argon2 import PasswordHasher

from zenith.security.passwords import hash_password, needs_rehash, verify_password


class TestHashPassword:
    def test_phc_format(self) -> None:
        assert hash_password("secret").startswith("$argon2id$")

    def test_salted(self) -> None:
        assert hash_password("secret") != hash_password("secret")

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            hash_password("")


class TestVerifyPassword:
    def test_correct(self) -> None:
        assert verify_password("secret", hash_password("secret")) is True

    def test_wrong(self) -> None:
        assert verify_password("nope", hash_password("secret")) is False

    def test_missing_hash(self) -> None:
        assert verify_password("secret", None) is False
        assert verify_password("secret", "") is False

    def test_empty_password(self) -> None:
        assert verify_password("", hash_password("secret")) is False

    def test_foreign_hash_format(self) -> None:
        bcrypt_like = "$2y$10$abcdefghijklmnopqrstuuJ0Qy1Ow9ZrZJxZ0m5J1Qy1Ow9ZrZJx"
        assert verify_password("secret", bcrypt_like) is False


class TestNeedsRehash:
    def test_current_parameters(self) -> None:
        assert needs_rehash(hash_password("secret")) is False

    def test_weaker_parameters(self) -> None:
        weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash("secret")
        assert needs_rehash(weak) is True
