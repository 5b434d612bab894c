"""Unit tests for the local credential store."""

import json
import stat
from pathlib import Path

from pydantic import SecretStr

from wandermind.credentials import CredentialStore
from wandermind.models.common import Provider


def test_set_and_get(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "creds" / "credentials.json")

    store.set(Provider.groq, SecretStr(" gsk-123 "))

    assert store.get(Provider.groq) == SecretStr("gsk-123")
    assert store.get(Provider.gemini) is None


def test_fixed_key_names_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "credentials.json"
    store = CredentialStore(path)

    store.set(Provider.groq, "gsk")
    store.set(Provider.gemini, "aiza")

    assert json.loads(path.read_text()) == {"groq_api_key": "gsk", "gemini_api_key": "aiza"}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_clear(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "credentials.json")
    store.set(Provider.gemini, "aiza")

    store.clear(Provider.gemini)

    assert store.get(Provider.gemini) is None


def test_missing_or_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "credentials.json"
    store = CredentialStore(path)
    assert store.get(Provider.groq) is None

    path.write_text("{not json")
    assert store.get(Provider.groq) is None

    path.write_text(json.dumps(["groq_api_key"]))
    assert store.get(Provider.groq) is None
