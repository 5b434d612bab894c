"""Local key-value storage for provider API keys.

Keys are stored in a JSON file under fixed key names and are only ever
handed to the matching provider's client.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import SecretStr

from wandermind.models.common import Provider

logger = logging.getLogger(__name__)

CREDENTIAL_KEYS: dict[Provider, str] = {
    Provider.groq: "groq_api_key",
    Provider.gemini: "gemini_api_key",
}


class CredentialStore:
    """JSON-file backed store, one entry per provider."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable credential store {self._path}: {type(e).__name__}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self._path)

    def get(self, provider: Provider) -> SecretStr | None:
        """Stored key for a provider, if any."""
        value = self._read().get(CREDENTIAL_KEYS[provider])
        return SecretStr(value) if value else None

    def set(self, provider: Provider, api_key: SecretStr | str) -> None:
        """Store (or replace) a provider key."""
        if isinstance(api_key, SecretStr):
            api_key = api_key.get_secret_value()
        data = self._read()
        data[CREDENTIAL_KEYS[provider]] = api_key.strip()
        self._write(data)

    def clear(self, provider: Provider) -> None:
        """Forget a provider key."""
        data = self._read()
        if data.pop(CREDENTIAL_KEYS[provider], None) is not None:
            self._write(data)
