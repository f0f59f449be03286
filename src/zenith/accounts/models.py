"""The user entity, mapped from rows of the ``users`` table."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    """A registered account.

    ``password`` is an argon2 hash, or ``None`` for accounts created
    through Google sign-in. ``id`` is assigned by the store and never
    changes.
    """

    id: int
    name: str
    email: str
    password: str | None = None
    google_id: str | None = None
    avatar: str | None = None
    role: str = "user"
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def full_name(self) -> str:
        return self.name
