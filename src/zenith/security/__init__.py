"""Security utilities: password hashing and Google sign-in.

Password hashing (argon2id)::

    from zenith.security import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)

Route guards live in ``zenith.middleware.auth`` (``login_required``,
``guest_only``).
"""

from zenith.security.oauth import GoogleOAuth, Identity, OAuthError
from zenith.security.passwords import hash_password, needs_rehash, verify_password

__all__ = [
    "GoogleOAuth",
    "Identity",
    "OAuthError",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
