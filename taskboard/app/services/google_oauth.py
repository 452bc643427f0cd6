"""Google OAuth 2.0 authorization-code flow.

Only the two network calls live here: exchanging the callback ``code`` for
an access token and reading the user's OpenID profile. Account linking is
done by ``services.accounts``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from taskboard.app.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthError(Exception):
    """Raised when the Google token exchange or profile lookup fails."""


@dataclass(frozen=True)
class OAuthProfile:
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: bool = True


def authorization_url(settings: Settings, state: str) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def _profile_from_userinfo(payload: Dict[str, Any]) -> OAuthProfile:
    email = (payload.get("email") or "").strip()
    if not email:
        raise GoogleOAuthError("Google profile has no email")
    return OAuthProfile(
        email=email,
        name=payload.get("name") or payload.get("given_name"),
        image=payload.get("picture"),
        email_verified=bool(payload.get("email_verified", True)),
    )


async def fetch_profile(code: str, settings: Settings) -> OAuthProfile:
    """Exchange an authorization code and return the signed-in Google profile."""
    form = {
        "code": code,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "redirect_uri": settings.google_redirect_uri,
        "grant_type": "authorization_code",
    }
    try:
        async with httpx.AsyncClient(timeout=20) as client:
            token_resp = await client.post(GOOGLE_TOKEN_URL, data=form)
            token_resp.raise_for_status()
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise GoogleOAuthError("Google token response has no access_token")

            info_resp = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info_resp.raise_for_status()
            payload = info_resp.json()
    except httpx.HTTPError as exc:  # pragma: no cover - network dependent
        logger.warning("Google OAuth request failed: %s", exc)
        raise GoogleOAuthError(str(exc)) from exc

    return _profile_from_userinfo(payload)
