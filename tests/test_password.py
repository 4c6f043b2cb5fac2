"""Unit tests for password hashing and strength rules."""

from unittest.mock import patch

import bcrypt
import pytest

from common.auth.exceptions import InvalidCredentialsError, NoPasswordSetError
from common.utils.password import PasswordHasher, validate_password


class TestPasswordHasher:
    def test_hash_and_verify(self, password_hasher):
        digest = password_hasher.hash("Abcdef12")

        assert digest != "Abcdef12"
        assert password_hasher.verify("Abcdef12", digest) is True
        assert password_hasher.verify("Abcdef13", digest) is False

    def test_salted(self, password_hasher):
        assert password_hasher.hash("Abcdef12") != password_hasher.hash("Abcdef12")

    def test_long_passwords_are_not_truncated(self, password_hasher):
        base = "Aa1" + "x" * 80
        digest = password_hasher.hash(base + "1")

        assert password_hasher.verify(base + "2", digest) is False

    def test_accepts_legacy_plain_bcrypt_digest(self, password_hasher):
        legacy = bcrypt.hashpw(b"Abcdef12", bcrypt.gensalt(rounds=4, prefix=b"2a")).decode("utf-8")

        assert password_hasher.verify("Abcdef12", legacy) is True
        assert password_hasher.verify("wrong", legacy) is False

    def test_missing_digest(self, password_hasher):
        with pytest.raises(NoPasswordSetError):
            password_hasher.verify("Abcdef12", None)

        assert issubclass(NoPasswordSetError, InvalidCredentialsError)

    @pytest.mark.parametrize("legacy", [False, True])
    def test_wrong_password_costs_one_comparison(self, password_hasher, legacy):
        if legacy:
            digest = bcrypt.hashpw(b"Abcdef12", bcrypt.gensalt(rounds=4, prefix=b"2a")).decode("utf-8")
        else:
            digest = password_hasher.hash("Abcdef12")

        with patch("common.utils.password.bcrypt_lib.checkpw", wraps=bcrypt.checkpw) as checkpw:
            assert password_hasher.verify("Wrong1234", digest) is False

        assert checkpw.call_count == 1

    def test_missing_digest_still_costs_one_comparison(self, password_hasher):
        with patch("common.utils.password.bcrypt_lib.checkpw", wraps=bcrypt.checkpw) as checkpw:
            with pytest.raises(NoPasswordSetError):
                password_hasher.verify("Abcdef12", None)

        assert checkpw.call_count == 1
        compared_digest = checkpw.call_args[0][1]
        assert compared_digest.startswith(b"$2b$04$")

    def test_malformed_digest(self, password_hasher):
        assert password_hasher.verify("Abcdef12", "not-a-bcrypt-digest") is False

    def test_rounds_bounds(self):
        with pytest.raises(ValueError):
            PasswordHasher(rounds=3)
        with pytest.raises(ValueError):
            PasswordHasher(rounds=32)


class TestValidatePassword:
    def test_strong_password(self):
        assert validate_password("Abcdef12") == (True, [])

    @pytest.mark.parametrize(
        "password",
        ["Abc12", "abcdefg12", "ABCDEFG12", "Abcdefghi"],
    )
    def test_weak_passwords(self, password):
        is_valid, errors = validate_password(password)

        assert is_valid is False
        assert errors

    def test_common_password(self):
        is_valid, errors = validate_password("Password1")

        assert is_valid is False
        assert "Password is too common" in errors
