"""Google OAuth 2.0 sign-in via raw HTTP (httpx), no provider SDK.

Only the authorization-code flow is covered: build the consent URL,
then trade the returned ``code`` for the user's identity.

Usage::

    google = GoogleOAuth(config.auth.google)

    # Login page
    url = google.authorization_url(state=token)

    # Callback handler
    identity = await google.exchange(request.query["code"])
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from zenith.config import GoogleSettings
from zenith.errors import ZenithError

logger = logging.getLogger("zenith.security")

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
SCOPES = ("email", "profile")


class OAuthError(ZenithError):
    """The identity provider refused the code or returned unusable data."""


@dataclass(frozen=True, slots=True)
class Identity:
    """A user identity asserted by the provider."""

    email: str
    name: str
    external_id: str
    avatar_url: str | None = None


class GoogleOAuth:
    """Google authorization-code client.

    Pass *transport* to route requests elsewhere (``httpx.MockTransport``
    in tests).
    """

    __slots__ = ("_settings", "_timeout", "_transport")

    def __init__(
        self,
        settings: GoogleSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    def authorization_url(self, state: str | None = None) -> str:
        """The Google consent page URL to send the browser to."""
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "online",
        }
        if state:
            params["state"] = state
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange(self, code: str) -> Identity:
        """Trade an authorization *code* for the user's identity.

        Raises ``OAuthError`` when the token request fails, the provider
        reports an error, or the profile has no email.
        """
        if not code:
            msg = "Missing authorization code"
            raise OAuthError(msg)

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            try:
                token = await self._fetch_token(client, code)
                profile = await self._fetch_profile(client, token)
            except httpx.HTTPError as exc:
                logger.warning("Google token exchange failed: %s", exc)
                msg = f"Google request failed: {exc}"
                raise OAuthError(msg) from exc

        return _identity_from_profile(profile)

    async def _fetch_token(self, client: httpx.AsyncClient, code: str) -> str:
        response = await client.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "redirect_uri": self._settings.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        data = _json(response)
        if response.status_code != 200 or "error" in data:
            msg = f"Token request rejected: {data.get('error', response.status_code)}"
            raise OAuthError(msg)
        access_token = data.get("access_token")
        if not access_token:
            msg = "Token response has no access_token"
            raise OAuthError(msg)
        return access_token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict[str, Any]:
        response = await client.get(
            USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != 200:
            msg = f"Userinfo request rejected: {response.status_code}"
            raise OAuthError(msg)
        return _json(response)


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        msg = f"Provider returned non-JSON body (status {response.status_code})"
        raise OAuthError(msg) from None
    return data if isinstance(data, dict) else {}


def _identity_from_profile(profile: dict[str, Any]) -> Identity:
    email = profile.get("email")
    if not email:
        msg = "Google profile has no email address"
        raise OAuthError(msg)
    return Identity(
        email=email,
        name=profile.get("name") or email.split("@", 1)[0],
        external_id=str(profile.get("id", "")),
        avatar_url=profile.get("picture"),
    )
