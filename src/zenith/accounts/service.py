"""Authentication service: credentials, registration and Google sign-in.

``Auth`` works on the request-scoped session and user set up by
``SessionMiddleware`` and ``AuthMiddleware``; it holds no per-request
state of its own, so one instance serves every request.

Usage::

    auth = Auth(UserRepository(store), google=GoogleOAuth(config.auth.google))

    @app.post("/login")
    async def do_login(request: Request, auth: Auth):
        form = await request.form()
        if await auth.attempt(form.get("email", ""), form.get("password", "")):
            return Redirect("/")
        flash("error", "Invalid credentials")
        return Redirect("/login")
"""

import logging

from zenith.accounts.models import User
from zenith.accounts.repository import UserRepository
from zenith.errors import ValidationFailure
from zenith.middleware import auth as auth_middleware
from zenith.security.oauth import GoogleOAuth, Identity, OAuthError
from zenith.security.passwords import hash_password, needs_rehash, verify_password

logger = logging.getLogger("zenith.security")


class Auth:
    """Sign users in and out."""

    __slots__ = ("_google", "_register_url", "_users")

    def __init__(
        self,
        users: UserRepository,
        *,
        google: GoogleOAuth | None = None,
        register_url: str = "/register",
    ) -> None:
        self._users = users
        self._google = google
        self._register_url = register_url

    @property
    def users(self) -> UserRepository:
        return self._users

    @property
    def google(self) -> GoogleOAuth | None:
        return self._google

    async def attempt(self, email: str, password: str) -> bool:
        """Sign in with email and password. Returns whether it worked."""
        if not email or not password:
            return False
        user = await self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password):
            logger.info("Failed sign-in for %s", email)
            return False
        if user.password is not None and needs_rehash(user.password):
            await self._users.update(user.id, password=hash_password(password))
        self.login(user)
        return True

    def login(self, user: User) -> None:
        auth_middleware.login(user)

    def logout(self) -> None:
        auth_middleware.logout()

    def user(self) -> User | None:
        """The signed-in user, loaded once per request by ``AuthMiddleware``."""
        current = auth_middleware.current_user()
        return current if current.is_authenticated else None

    def check(self) -> bool:
        return self.user() is not None

    def guest(self) -> bool:
        return not self.check()

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an account and sign it in.

        Raises ``ValidationFailure`` (redirecting back to the register
        page) when a field is blank or the email is taken.
        """
        name, email = name.strip(), email.strip()
        if not name or not email or not password:
            raise ValidationFailure("All fields are required", redirect_to=self._register_url)
        if await self._users.find_by_email(email) is not None:
            raise ValidationFailure("Email already exists", redirect_to=self._register_url)

        user = await self._users.create(
            name=name,
            email=email,
            password=hash_password(password),
        )
        self.login(user)
        return user

    async def login_with_identity(self, identity: Identity) -> User:
        """Sign in the account matching *identity*, creating it if needed.

        Accounts are matched by email. An existing account keeps its own
        name and password.
        """
        user = await self._users.find_by_email(identity.email)
        if user is None:
            user = await self._users.create(
                name=identity.name,
                email=identity.email,
                google_id=identity.external_id,
                avatar=identity.avatar_url,
            )
            logger.info("Created account %s from Google sign-in", user.id)
        self.login(user)
        return user

    async def handle_google_callback(self, code: str | None) -> bool:
        """Finish Google sign-in for the ``code`` query parameter."""
        if self._google is None or not code:
            return False
        try:
            identity = await self._google.exchange(code)
        except OAuthError as exc:
            logger.warning("Google sign-in failed: %s", exc)
            return False
        await self.login_with_identity(identity)
        return True
