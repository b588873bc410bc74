import json

import pytest

from demos_toolkit.config.store import ConfigStore


class StubPasswordProvider:
    """Hands out canned passwords and records every prompt."""

    def __init__(self, *passwords):
        self.passwords = list(passwords)
        self.prompts = []

    def get_password(self, prompt, *, confirm=False):
        self.prompts.append((prompt, confirm))
        if not self.passwords:
            raise AssertionError(f"unexpected password prompt: {prompt!r}")
        return self.passwords.pop(0)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the real environment and home config out of every test."""
    for key in ("PRIVATE_KEY", "DEMOS_RPC", "REFERRAL_CODE", "DEMOS_MASTER_PWD"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "demos" / "config.json"


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def env_file(tmp_path):
    return tmp_path / ".env"


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
