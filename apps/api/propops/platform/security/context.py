from __future__ import annotations

from dataclasses import dataclass


PUBLIC_ACTOR_LABEL = "Public intake"


@dataclass(slots=True)
class AuthContext:
    """Acting principal for one request, as seen by services and the activity log."""

    user_id: str | None
    role: str | None = None
    display_name: str | None = None
    correlation_id: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def actor_label(self) -> str:
        return self.display_name or self.user_id or PUBLIC_ACTOR_LABEL
