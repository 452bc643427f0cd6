"""Port interface for the identity/session provider."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ISessionProvider(Protocol):
    def current_user_id(self) -> Optional[str]:
        """Return the signed-in user's id, or None when there is no valid session."""
