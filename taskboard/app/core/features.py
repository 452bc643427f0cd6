from __future__ import annotations

import os
from typing import Dict


def _bool_env(name: str, default: str = "false") -> bool:
    """
    Parse env var into bool.
    True values: 1, true, yes, on (case-insensitive).
    """
    val = os.getenv(name, default)
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def get_features() -> Dict[str, bool]:
    """
    Operational feature flags (runtime toggles).
    Read on every call so tests and operators can flip them without a restart.
    """
    return {
        # Email/password account creation. Existing accounts can still sign in.
        "allow_signup": _bool_env("FEATURE_SIGNUP", "true"),

        # "Sign in with Google". Also requires GOOGLE_CLIENT_ID/SECRET.
        "google_login": _bool_env("FEATURE_GOOGLE_LOGIN", "true"),
    }
