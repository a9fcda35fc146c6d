"""
Tests for hrportal/core/security.py - Password hashing and token management.
"""
from datetime import timedelta

from jose import jwt


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password_produces_bcrypt_hash(self):
        """Hash should be in bcrypt format ($2b$...)."""
        from hrportal.core.security import get_password_hash

        result = get_password_hash("testpassword")

        assert result.startswith("$2b$")

    def test_hash_password_is_unique(self):
        """Same password should produce different hashes (due to salt)."""
        from hrportal.core.security import get_password_hash

        assert get_password_hash("testpassword") != get_password_hash("testpassword")

    def test_verify_password_correct(self):
        from hrportal.core.security import get_password_hash, verify_password

        hashed = get_password_hash("admin123")

        assert verify_password("admin123", hashed) is True

    def test_verify_password_incorrect(self):
        from hrportal.core.security import get_password_hash, verify_password

        hashed = get_password_hash("admin123")

        assert verify_password("wrong", hashed) is False
        assert verify_password("", hashed) is False

    def test_verify_password_without_hash(self):
        """Accounts that never had a password set cannot log in."""
        from hrportal.core.security import verify_password

        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_verify_password_malformed_hash(self):
        from hrportal.core.security import verify_password

        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_verify_password_long(self):
        """Passwords past bcrypt's 72 byte limit still verify."""
        from hrportal.core.security import get_password_hash, verify_password

        password = "a" * 100
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True


class TestAccessTokens:
    """Test token creation and verification."""

    def test_token_carries_claims(self):
        from hrportal.core.config import settings
        from hrportal.core.security import create_access_token

        token = create_access_token({"sub": 7, "role": "HR", "company_id": 3})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        assert payload["sub"] == "7"
        assert payload["role"] == "HR"
        assert payload["company_id"] == 3
        assert "exp" in payload

    def test_decode_round_trip(self):
        from hrportal.core.security import create_access_token, decode_access_token

        token = create_access_token({"sub": "1", "email": "admin@company.com"})

        claims = decode_access_token(token)

        assert claims["email"] == "admin@company.com"

    def test_decode_expired_token_returns_none(self):
        from hrportal.core.security import create_access_token, decode_access_token

        token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))

        assert decode_access_token(token) is None

    def test_decode_tampered_token_returns_none(self):
        from hrportal.core.security import decode_access_token

        forged = jwt.encode({"sub": "1"}, "some-other-secret", algorithm="HS256")

        assert decode_access_token(forged) is None
        assert decode_access_token("garbage") is None


class TestTemporaryPassword:
    def test_meets_minimum_length(self):
        from hrportal.core.config import settings
        from hrportal.core.security import generate_temporary_password

        password = generate_temporary_password()

        assert len(password) >= max(settings.MIN_PASSWORD_LENGTH, 12)

    def test_passwords_differ(self):
        from hrportal.core.security import generate_temporary_password

        assert generate_temporary_password() != generate_temporary_password()
