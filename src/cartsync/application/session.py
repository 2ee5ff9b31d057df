"""Current user identity, as handed over by the authentication flow."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Session:
    user_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def sign_in(self, user_id: str) -> None:
        self.user_id = user_id

    def sign_out(self) -> None:
        self.user_id = None
