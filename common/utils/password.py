"""
Password hashing and strength validation.

Example:
    from common.utils import PasswordHasher, validate_password

    is_valid, errors = validate_password("weakpass")
    if not is_valid:
        print("Password errors:", errors)

    hasher = PasswordHasher(rounds=12)
    digest = hasher.hash("Abcdef12")
    assert hasher.verify("Abcdef12", digest)
"""

import base64
import hashlib
import re
import secrets
from typing import List, Tuple, Optional

import bcrypt as bcrypt_lib

from common.auth.exceptions import NoPasswordSetError

COMMON_PASSWORDS = frozenset(
    [
        "123456",
        "password",
        "12345678",
        "qwerty",
        "123456789",
        "12345",
        "1234",
        "111111",
        "1234567",
        "dragon",
        "123123",
        "baseball",
        "iloveyou",
        "trustno1",
        "sunshine",
        "princess",
        "football",
        "welcome",
        "shadow",
        "superman",
        "michael",
        "password1",
        "password123",
        "admin",
        "letmein",
        "monkey",
        "abc123",
        "starwars",
    ]
)


class PasswordHasher:
    """
    bcrypt password hasher with SHA-256 pre-hashing.

    Pre-hashing sidesteps bcrypt's 72-byte input limit. Digests produced by
    plain bcrypt (accounts imported from the previous customer store, which
    carry the ``$2a$``/``$2y$`` prefix) are still accepted by verify().

    Every verify() call costs exactly one bcrypt comparison, including the
    calls for accounts without a digest, so response times do not reveal
    which accounts exist.
    """

    PREHASHED_PREFIX = "$2b$"

    def __init__(self, rounds: int = 12):
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        # Stand-in digest compared against when an account has none
        self._dummy_digest = self.hash(secrets.token_urlsafe(32)).encode("utf-8")

    @staticmethod
    def _prehash(password: str) -> bytes:
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash)

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        salt = bcrypt_lib.gensalt(rounds=self.rounds)
        return bcrypt_lib.hashpw(self._prehash(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: Optional[str]) -> bool:
        """
        Verify a password against its digest.

        Raises:
            NoPasswordSetError: If the account has no digest at all, after
                spending the same bcrypt work as a real comparison
        """
        if not hashed:
            bcrypt_lib.checkpw(self._prehash(password), self._dummy_digest)
            raise NoPasswordSetError("No password set for this account")

        hashed_bytes = hashed.encode("utf-8")

        if hashed.startswith(self.PREHASHED_PREFIX):
            candidate = self._prehash(password)
        else:
            # Legacy digests: bcrypt applied directly to the password
            candidate = password.encode("utf-8")

        try:
            return bcrypt_lib.checkpw(candidate, hashed_bytes)
        except ValueError:
            # Malformed digest, or a password too long for direct bcrypt
            return False


def check_common_passwords(password: str) -> bool:
    """Return True if the password is on the common-password list."""
    return password.lower() in COMMON_PASSWORDS


def validate_password(
    password: str,
    min_length: int = 8,
    max_length: int = 128,
    require_uppercase: bool = True,
    require_lowercase: bool = True,
    require_digit: bool = True,
    require_special: bool = False,
    special_chars: str = r"!@#$%^&*(),.?\":{}|<>",
) -> Tuple[bool, List[str]]:
    """
    Validate password strength.

    Args:
        password: The password to validate
        min_length: Minimum password length
        max_length: Maximum password length
        require_uppercase: Require at least one uppercase letter
        require_lowercase: Require at least one lowercase letter
        require_digit: Require at least one digit
        require_special: Require at least one special character
        special_chars: String of allowed special characters

    Returns:
        Tuple of (is_valid: bool, errors: List[str])

    Examples:
        >>> validate_password("weak")[0]
        False
        >>> validate_password("Abcdef12")
        (True, [])
    """
    errors: List[str] = []

    if len(password) < min_length:
        errors.append(f"Password must be at least {min_length} characters")

    if len(password) > max_length:
        errors.append(f"Password must be no more than {max_length} characters")

    if require_uppercase and not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")

    if require_lowercase and not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")

    if require_digit and not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")

    if require_special:
        escaped_chars = re.escape(special_chars)
        if not re.search(f"[{escaped_chars}]", password):
            errors.append("Password must contain at least one special character")

    if check_common_passwords(password):
        errors.append("Password is too common")

    return len(errors) == 0, errors
