import json
import logging
import os
import stat

import pytest

from conftest import read_json
from demos_toolkit.config.errors import ConfigFileCorrupt, ConfigIOError
from demos_toolkit.config.models import EncryptedConfig, PlainConfig, Settings
from demos_toolkit.config.store import ConfigStore, default_config_path
from demos_toolkit.wallet.security import decrypt_secret


def test_default_path_follows_xdg_config_home(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    assert default_config_path() == tmp_path / "cfg" / "demos" / "config.json"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    assert default_config_path().parts[-3:] == (".config", "demos", "config.json")


def test_missing_file_loads_as_none(store):
    assert not store.exists()
    assert store.load() is None
    assert store.read_raw() is None


def test_write_plain_creates_directory_and_reads_back(store, config_path):
    settings = Settings(private_key="abc", demos_rpc="https://x", referral_code="ref")

    store.write_plain(settings)

    assert config_path.is_file()
    assert read_json(config_path) == {"PRIVATE_KEY": "abc", "DEMOS_RPC": "https://x", "REFERRAL_CODE": "ref"}
    loaded = store.load()
    assert isinstance(loaded, PlainConfig)
    assert loaded.settings == settings


@pytest.mark.skipif(os.name != "posix", reason="file modes are POSIX only")
def test_written_file_is_owner_only(store, config_path):
    store.write_plain(Settings(private_key="abc"))

    assert stat.S_IMODE(os.stat(config_path).st_mode) == 0o600


def test_include_empty_writes_placeholders(store, config_path):
    store.write_plain(Settings(demos_rpc="https://x"), include_empty=True)

    assert read_json(config_path) == {"PRIVATE_KEY": "", "DEMOS_RPC": "https://x", "REFERRAL_CODE": ""}
    assert store.load().settings == Settings(demos_rpc="https://x")


def test_write_encrypted_keeps_other_fields_plaintext(store, config_path):
    store.write_encrypted(Settings(private_key="abc", demos_rpc="https://x", referral_code="ref"), "hunter2")

    raw = read_json(config_path)
    assert raw["encrypted"] is True
    assert raw["DEMOS_RPC"] == "https://x"
    assert raw["REFERRAL_CODE"] == "ref"
    assert set(raw["PRIVATE_KEY"]) == {"encrypted", "salt", "iv", "mac"}
    assert "abc" not in config_path.read_text()

    loaded = store.load()
    assert isinstance(loaded, EncryptedConfig)
    assert loaded.demos_rpc == "https://x"
    assert decrypt_secret(loaded.credential, "hunter2") == "abc"


def test_unknown_keys_are_ignored(store, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({"DEMOS_RPC": "https://x", "THEME": "dark", "retries": 3}))

    assert store.load().settings == Settings(demos_rpc="https://x")


def test_encrypted_flag_with_plain_string_key_is_plain(store, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({"encrypted": True, "PRIVATE_KEY": "abc"}))

    loaded = store.load()
    assert isinstance(loaded, PlainConfig)
    assert loaded.settings.private_key == "abc"


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"DEMOS_RPC": 42}),
        json.dumps({"encrypted": True, "PRIVATE_KEY": {"salt": "00"}}),
    ],
)
def test_corrupt_file_raises_on_load(store, config_path, content):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(content)

    with pytest.raises(ConfigFileCorrupt) as exc_info:
        store.load()
    assert exc_info.value.path == config_path


def test_corrupt_file_degrades_to_absent_with_warning(store, config_path, caplog):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("{not json")

    with caplog.at_level(logging.WARNING, logger="demos_toolkit.config.store"):
        assert store.read_raw() is None

    assert "ignoring config file" in caplog.text
    assert str(config_path) in caplog.text


def test_failed_replace_keeps_previous_file(store, config_path, monkeypatch):
    store.write_plain(Settings(private_key="old"))

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(ConfigIOError):
        store.write_plain(Settings(private_key="new"))

    assert read_json(config_path) == {"PRIVATE_KEY": "old"}
    assert [p.name for p in config_path.parent.iterdir()] == ["config.json"]


def test_store_accepts_string_path(tmp_path):
    store = ConfigStore(str(tmp_path / "c.json"))
    store.write_plain(Settings(referral_code="r"))

    assert store.exists()


def test_unreadable_file_raises_io_error_and_degrades(store, config_path, caplog):
    config_path.mkdir(parents=True)

    with pytest.raises(ConfigIOError):
        store.load()

    with caplog.at_level(logging.WARNING, logger="demos_toolkit.config.store"):
        assert store.read_raw() is None
    assert "ignoring config file" in caplog.text
