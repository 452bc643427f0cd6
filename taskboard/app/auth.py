import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Optional

import bcrypt
from fastapi import Request

from taskboard.app.config import Settings, get_settings

COOKIE_NAME = "tb_session"
OAUTH_STATE_TTL_SECONDS = 600


def require_session_secret(settings: Settings) -> str:
    secret = (settings.session_secret or "").strip()
    if not secret:
        raise RuntimeError("AUTH misconfigured: SESSION_SECRET is required")
    return secret


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("utf-8"))


def sign_session(payload: dict[str, Any], secret: str) -> str:
    data = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), data, hashlib.sha256).digest()
    return f"{_b64url_encode(data)}.{_b64url_encode(sig)}"


def verify_session(token: str, secret: str) -> Optional[dict[str, Any]]:
    """Return the payload of a well-signed, unexpired token, else None."""
    try:
        data_b64, sig_b64 = token.split(".", 1)
        data = _b64url_decode(data_b64)
        sig = _b64url_decode(sig_b64)
    except (ValueError, TypeError):
        return None
    expected = hmac.new(secret.encode("utf-8"), data, hashlib.sha256).digest()
    if not hmac.compare_digest(sig, expected):
        return None
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = int(payload.get("exp", 0) or 0)
    if exp and time.time() > exp:
        return None
    return payload


def issue_session(user_id: str, ttl_seconds: int, secret: str) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "exp": now + ttl_seconds,
        "iat": now,
        "v": 1,
    }
    return sign_session(payload, secret)


def issue_oauth_state(secret: str, next_location: str = "/") -> str:
    now = int(time.time())
    payload = {
        "purpose": "oauth",
        "nonce": secrets.token_urlsafe(16),
        "next": next_location,
        "exp": now + OAUTH_STATE_TTL_SECONDS,
    }
    return sign_session(payload, secret)


def verify_oauth_state(state: Optional[str], secret: str) -> Optional[dict[str, Any]]:
    if not state:
        return None
    payload = verify_session(state, secret)
    if not payload or payload.get("purpose") != "oauth":
        return None
    return payload


# bcrypt only looks at the first 72 bytes; pre-hash so long passwords still count.
def _pw_prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(_pw_prehash(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_pw_prehash(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


class CookieSessionProvider:
    """Resolve the current user from the signed session cookie on a request."""

    def __init__(self, request: Request, settings: Optional[Settings] = None) -> None:
        self._request = request
        self._settings = settings or get_settings()

    def current_user_id(self) -> Optional[str]:
        token = self._request.cookies.get(COOKIE_NAME)
        if not token:
            return None
        payload = verify_session(token, require_session_secret(self._settings))
        if not payload:
            return None
        sub = payload.get("sub")
        return str(sub) if sub else None


class StaticSessionProvider:
    """Fixed identity, for tests, scripts and the demo backend."""

    def __init__(self, user_id: Optional[str]) -> None:
        self.user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self.user_id
