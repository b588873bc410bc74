import getpass

import pytest

from conftest import StubPasswordProvider
from demos_toolkit.config.errors import MissingCredentialError, PasswordMismatchError, PasswordUnavailableError
from demos_toolkit.config.gate import GetpassPasswordProvider, SecretAccessGate
from demos_toolkit.config.models import DEFAULT_RPC_URL, EncryptedConfig, PlainConfig, Settings
from demos_toolkit.config.resolver import resolve
from demos_toolkit.wallet.security import DecryptionError, encrypt_secret


def _encrypted_gate(provider, private_key="abc", password="hunter2"):
    stored = EncryptedConfig(credential=encrypt_secret(private_key, password))
    return SecretAccessGate(resolve(stored, {}, {}), provider)


def test_plaintext_credential_never_prompts():
    provider = StubPasswordProvider()
    gate = SecretAccessGate(resolve(PlainConfig(settings=Settings(private_key="abc")), {}, {}), provider)

    assert gate.get_credential() == "abc"
    assert provider.prompts == []


def test_encrypted_credential_prompts_once_per_process():
    provider = StubPasswordProvider("hunter2")
    gate = _encrypted_gate(provider)

    assert gate.get_credential() == "abc"
    assert gate.get_credential() == "abc"
    assert provider.prompts == [("Password: ", False)]
    assert gate.has_cached_password


def test_wrong_password_fails_and_clears_cache():
    provider = StubPasswordProvider("wrong", "hunter2")
    gate = _encrypted_gate(provider)

    with pytest.raises(DecryptionError):
        gate.get_credential()
    assert not gate.has_cached_password

    assert gate.get_credential() == "abc"
    assert len(provider.prompts) == 2


def test_forget_password_prompts_again():
    provider = StubPasswordProvider("hunter2", "hunter2")
    gate = _encrypted_gate(provider)
    gate.get_credential()

    gate.forget_password()
    gate.get_credential()

    assert len(provider.prompts) == 2


def test_missing_credential_explains_how_to_configure():
    gate = SecretAccessGate(resolve(None, {}, {}), StubPasswordProvider())

    with pytest.raises(MissingCredentialError) as exc_info:
        gate.get_credential()

    message = str(exc_info.value)
    assert message.startswith("PRIVATE_KEY not configured!")
    assert "demostools config init" in message
    assert '--config private_key="your_key"' in message


def test_endpoint_falls_back_to_default_node():
    gate = SecretAccessGate(resolve(None, {}, {}), StubPasswordProvider())
    assert gate.get_endpoint() == DEFAULT_RPC_URL
    assert gate.get_referral_code() is None

    gate = SecretAccessGate(resolve(None, {"DEMOS_RPC": "https://x", "REFERRAL_CODE": "r"}, {}), StubPasswordProvider())
    assert gate.get_endpoint() == "https://x"
    assert gate.get_referral_code() == "r"


def test_repr_does_not_leak_password():
    provider = StubPasswordProvider("hunter2")
    gate = _encrypted_gate(provider)
    gate.get_credential()

    assert "hunter2" not in repr(gate)
    assert "abc" not in repr(gate)


def test_getpass_provider_prefers_master_password_env(monkeypatch):
    monkeypatch.setenv("DEMOS_MASTER_PWD", "from-env")

    def fail_getpass(prompt=""):
        raise AssertionError("should not prompt")

    monkeypatch.setattr(getpass, "getpass", fail_getpass)

    assert GetpassPasswordProvider().get_password("Password: ", confirm=True) == "from-env"


def test_getpass_provider_confirms_new_passwords(monkeypatch):
    answers = iter(["one", "one"])
    monkeypatch.setattr(getpass, "getpass", lambda prompt="": next(answers))

    assert GetpassPasswordProvider().get_password("New config password: ", confirm=True) == "one"


def test_getpass_provider_rejects_mismatched_confirmation(monkeypatch):
    answers = iter(["one", "two"])
    monkeypatch.setattr(getpass, "getpass", lambda prompt="": next(answers))

    with pytest.raises(PasswordMismatchError):
        GetpassPasswordProvider().get_password("New config password: ", confirm=True)


def test_getpass_provider_without_terminal_names_master_password(monkeypatch):
    def closed_stdin(prompt=""):
        raise EOFError

    monkeypatch.setattr(getpass, "getpass", closed_stdin)

    with pytest.raises(PasswordUnavailableError) as exc_info:
        GetpassPasswordProvider().get_password("Password: ")
    assert "DEMOS_MASTER_PWD" in str(exc_info.value)
