import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from taskboard.app.auth import (
    COOKIE_NAME,
    issue_oauth_state,
    issue_session,
    require_session_secret,
    verify_oauth_state,
)
from taskboard.app.config import Settings, get_settings
from taskboard.app.core.errors import Unauthenticated
from taskboard.app.core.features import get_features
from taskboard.app.db import get_db
from taskboard.app.deps import get_current_user_id
from taskboard.app.schemas import AuthResponse, LoginBody, SignUpBody, UserOut
from taskboard.app.services import accounts, google_oauth
from taskboard.app.services.accounts import AuthFailure, AuthResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

_FAILURE_STATUS = {
    AuthFailure.MISSING_FIELDS: 400,
    AuthFailure.INVALID_CREDENTIALS: 401,
    AuthFailure.USER_EXISTS: 409,
    AuthFailure.SIGNUP_DISABLED: 403,
    AuthFailure.OAUTH_FAILED: 401,
}


def _set_session_cookie(resp, user_id: str, settings: Settings) -> None:
    token = issue_session(user_id, settings.session_ttl_seconds, require_session_secret(settings))
    resp.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        max_age=settings.session_ttl_seconds,
    )


def _auth_response(result: AuthResult) -> JSONResponse:
    """Translate an AuthResult into JSON; on success the session cookie is attached."""
    if not result.ok:
        body = AuthResponse(ok=False, reason=result.reason.value if result.reason else None)
        status = _FAILURE_STATUS.get(result.reason, 400) if result.reason else 400
        return JSONResponse(status_code=status, content=body.model_dump())

    body = AuthResponse(
        ok=True,
        next_location=result.next_location,
        user=UserOut.model_validate(result.user),
    )
    resp = JSONResponse(content=body.model_dump())
    _set_session_cookie(resp, result.user.id, get_settings())
    return resp


@router.post("/signup")
def signup(body: SignUpBody, db: Session = Depends(get_db)):
    if not get_features()["allow_signup"]:
        return _auth_response(AuthResult.failure(AuthFailure.SIGNUP_DISABLED))
    return _auth_response(accounts.sign_up(db, body.name, body.email, body.password))


@router.post("/login")
def login(body: LoginBody, db: Session = Depends(get_db)):
    return _auth_response(accounts.sign_in_with_credentials(db, body.email, body.password))


@router.post("/logout")
def logout():
    resp = JSONResponse(content={"ok": True, "next_location": accounts.LOGIN_PAGE})
    resp.delete_cookie(COOKIE_NAME)
    return resp


@router.get("/me", response_model=UserOut)
def me(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = accounts.get_user(db, user_id)
    if user is None:
        # Signed cookie for an account that no longer exists.
        raise Unauthenticated("Unauthorized")
    return UserOut.model_validate(user)


def _google_available(settings: Settings) -> bool:
    return settings.google_enabled and get_features()["google_login"]


@router.get("/google/login")
def google_login(next_url: Optional[str] = Query(None, alias="next")):
    settings = get_settings()
    if not _google_available(settings):
        return JSONResponse(status_code=404, content={"detail": "Google sign-in is not enabled"})
    state = issue_oauth_state(require_session_secret(settings), accounts.safe_next_location(next_url))
    return RedirectResponse(google_oauth.authorization_url(settings, state), status_code=302)


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    settings = get_settings()
    if not _google_available(settings):
        return JSONResponse(status_code=404, content={"detail": "Google sign-in is not enabled"})

    state_payload = verify_oauth_state(state, require_session_secret(settings))
    if error or not code or state_payload is None:
        logger.warning("Google callback rejected error=%s state_ok=%s", error, state_payload is not None)
        return RedirectResponse(f"{accounts.LOGIN_PAGE}?error={AuthFailure.OAUTH_FAILED.value}", status_code=302)

    try:
        profile = await google_oauth.fetch_profile(code, settings)
    except google_oauth.GoogleOAuthError as exc:
        logger.warning("Google profile lookup failed: %s", exc)
        return RedirectResponse(f"{accounts.LOGIN_PAGE}?error={AuthFailure.OAUTH_FAILED.value}", status_code=302)

    result = accounts.sign_in_with_oauth_profile(db, profile, state_payload.get("next") or accounts.HOME)
    if not result.ok:
        return RedirectResponse(f"{accounts.LOGIN_PAGE}?error={result.reason.value}", status_code=302)

    resp = RedirectResponse(result.next_location or accounts.HOME, status_code=302)
    _set_session_cookie(resp, result.user.id, settings)
    return resp
