"""Starter: the complete scaffold application.

Email/password accounts, optional Google sign-in, a guarded logout
route and kida views sharing one layout. The users table is created by
the migration in ``migrations/`` when the app starts.

Demonstrates:
- ``AppConfig.from_env()`` with ``.env`` support
- SessionMiddleware + AuthMiddleware setup
- ``Auth`` service injected through ``app.provide()``
- ``guest_only`` / ``login_required`` guards
- ``ValidationFailure`` turned into a flash message and a redirect
- a single-use OAuth ``state`` kept in the session

Run:
    uvicorn app:app --reload
"""

import secrets
from dataclasses import replace
from pathlib import Path

from zenith import App, AppConfig, Redirect, Request, Template, flash
from zenith.accounts import Auth, UserRepository
from zenith.config import env
from zenith.middleware.auth import AuthConfig, AuthMiddleware, guest_only, login_required
from zenith.middleware.sessions import SessionConfig, SessionMiddleware, get_session
from zenith.security.oauth import GoogleOAuth

HERE = Path(__file__).parent
OAUTH_STATE_KEY = "google_oauth_state"

config = AppConfig.from_env(template_dir=HERE / "templates")
config = replace(
    config,
    database=replace(
        config.database,
        url=env("DATABASE_URL", "sqlite:///:memory:") or "sqlite:///:memory:",
        migrations=str(HERE / "migrations"),
    ),
)

app = App(config)

users = UserRepository(app.store)
google = GoogleOAuth(config.auth.google)
auth = Auth(users, google=google)

app.add_middleware(
    SessionMiddleware(
        SessionConfig(
            secret_key=config.secret_key or "change-me-in-production",
            cookie_name=config.auth.session.cookie_name,
            max_age=config.auth.session.lifetime * 60,
            secure=config.auth.session.secure_cookie,
        )
    )
)
app.add_middleware(
    AuthMiddleware(
        AuthConfig(
            load_user=users.find,
            login_url=config.auth.login_url,
            home_url=config.auth.home_url,
        )
    )
)
app.provide(Auth, lambda: auth)


# ---------------------------------------------------------------------------
# Home
# ---------------------------------------------------------------------------


@app.get("/")
def home(auth: Auth):
    return Template("home/index.html", title=f"Welcome to {config.name}", user=auth.user())


# ---------------------------------------------------------------------------
# Email / password
# ---------------------------------------------------------------------------


@app.get("/login", guards=[guest_only])
def login_page():
    google_url = None
    if google.enabled:
        state = secrets.token_urlsafe(32)
        get_session()[OAUTH_STATE_KEY] = state
        google_url = google.authorization_url(state=state)
    return Template("auth/login.html", title="Login", google_url=google_url)


@app.post("/login")
async def do_login(request: Request, auth: Auth):
    form = await request.form()
    if await auth.attempt(form.get("email", ""), form.get("password", "")):
        return Redirect("/")
    flash("error", "Invalid credentials")
    return Redirect("/login")


@app.get("/register", guards=[guest_only])
def register_page():
    return Template("auth/register.html", title="Register")


@app.post("/register")
async def do_register(request: Request, auth: Auth):
    form = await request.form()
    await auth.register(form.get("name", ""), form.get("email", ""), form.get("password", ""))
    return Redirect("/")


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


@app.get("/auth/google/callback")
async def google_callback(request: Request, auth: Auth):
    # The state issued by the login page is single use.
    expected = get_session().pop(OAUTH_STATE_KEY, None)
    state = request.query.get("state") or ""
    if (
        expected
        and secrets.compare_digest(expected.encode(), state.encode())
        and await auth.handle_google_callback(request.query.get("code"))
    ):
        return Redirect("/")
    flash("error", "Google authentication failed")
    return Redirect("/login")


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@app.get("/logout", guards=[login_required])
def do_logout(auth: Auth):
    auth.logout()
    return Redirect("/login")
