"""User accounts: the ``User`` entity, its repository and the ``Auth`` service."""

from zenith.accounts.models import User
from zenith.accounts.repository import USERS_TABLE, UserRepository
from zenith.accounts.service import Auth

__all__ = [
    "USERS_TABLE",
    "Auth",
    "User",
    "UserRepository",
]
