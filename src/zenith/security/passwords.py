"""Password hashing with argon2id.

Hashes are PHC-format strings (``$argon2id$v=19$m=...``) safe to store
in the ``users.password`` column.

Usage::

    from zenith.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash *password* with argon2id.

    Raises ``ValueError`` for an empty password.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, phc_hash: str | None) -> bool:
    """Check *password* against a stored hash.

    Returns ``False`` for a mismatch, a missing hash (accounts created
    through Google sign-in have none) or a hash that is not argon2.
    """
    if not password or not phc_hash:
        return False
    try:
        return _hasher.verify(phc_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(phc_hash: str) -> bool:
    """Whether *phc_hash* was made with weaker parameters than the current ones."""
    return _hasher.check_needs_rehash(phc_hash)
