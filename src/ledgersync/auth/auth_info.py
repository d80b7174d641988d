"""Credentials configuration for the Firestore remote store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "oauth": ("client_secrets_file", "token_file"),
    "service_account": ("service_account_file",),
}


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    kind = "oauth":
        data must include client_secrets_file and token_file (installed-app
        flow, one signed-in user).
    kind = "service_account":
        data must include service_account_file (JSON key).
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind not in _REQUIRED_KEYS:
            allowed = ", ".join(sorted(_REQUIRED_KEYS))
            raise ValueError(f"AuthInfo.kind must be one of: {allowed}")

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        for key in _REQUIRED_KEYS[self.kind]:
            value = self.data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.data['{key}'] must be a non-empty string")

    @property
    def client_secrets_file(self) -> str:
        """Path to OAuth client secrets JSON."""
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        """Path to OAuth token JSON (authorized user)."""
        return str(self.data["token_file"])

    @property
    def service_account_file(self) -> str:
        return str(self.data["service_account_file"])
