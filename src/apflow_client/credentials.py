"""Credential store consumed by the transport."""

from collections.abc import Mapping
from typing import Protocol

AUTH_TOKEN_KEY = "auth_token"
API_URL_KEY = "api_url"


class CredentialStore(Protocol):
    """Protocol for key-value credential lookups."""

    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None."""
        ...


class MemoryCredentialStore:
    """In-memory credential store.

    Setting an empty value removes the key, so a cleared token reads back
    as absent rather than as an empty string.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        """Initialize store, dropping empty initial values."""
        self._values: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str | None) -> None:
        if value:
            self._values[key] = value
        else:
            self._values.pop(key, None)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)
