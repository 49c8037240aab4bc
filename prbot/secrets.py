"""Reads secrets from a secrets-manager style API."""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class SecretDoesNotExistError(LookupError):
    """The secret is missing or empty."""

    def __init__(self, message: str = "secret does not exist") -> None:
        super().__init__(message)


class SecretsAPI(Protocol):
    def get_secret_value(self, *, SecretId: str) -> Mapping[str, Any] | None: ...


class SecretManager:
    """Looks up secret strings by id."""

    def __init__(self, api: SecretsAPI) -> None:
        self._api = api

    def get_secret(self, secret_id: str) -> str:
        """Return the secret string; errors from the API propagate unchanged."""
        result = self._api.get_secret_value(SecretId=secret_id)
        value = (result or {}).get("SecretString")
        if not value:
            raise SecretDoesNotExistError()
        return value