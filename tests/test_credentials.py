"""
Tests for password resolution
"""
from unittest.mock import MagicMock, patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from rutt.security import CredentialManager, KeyStore
from rutt.utils.errors import ErrorHandler, MissingCredentialsError


@pytest.fixture
def keystore():
    store = MagicMock(spec=KeyStore)
    store.retrieve.return_value = None
    store.store.return_value = True
    return store


@pytest.fixture
def credentials(config_manager, keystore):
    return CredentialManager(config_manager, keystore=keystore)


class TestCredentialManager:
    """Tests for the config -> keyring -> prompt lookup order"""

    def test_password_from_config(self, config_manager, credentials, keystore):
        config_manager.config.account.app_password = "from-config"

        assert credentials.get_password() == "from-config"
        keystore.retrieve.assert_not_called()

    def test_password_from_keyring(self, credentials, keystore):
        keystore.retrieve.return_value = "from-keyring"

        assert credentials.get_password() == "from-keyring"
        keystore.retrieve.assert_called_once_with("user@example.com")

    def test_prompt_when_missing(self, credentials, keystore):
        with patch("rutt.security.credential_manager.sys.stdin") as stdin, patch(
            "rutt.security.credential_manager.getpass.getpass", return_value="typed"
        ) as prompt:
            stdin.isatty.return_value = True
            assert credentials.get_password() == "typed"

        prompt.assert_called_once()
        keystore.store.assert_called_once_with("user@example.com", "typed")

    def test_no_terminal_raises(self, credentials):
        with patch("rutt.security.credential_manager.sys.stdin") as stdin:
            stdin.isatty.return_value = False
            with pytest.raises(MissingCredentialsError):
                credentials.get_password()

    def test_cancelled_prompt_raises(self, credentials):
        with patch("rutt.security.credential_manager.sys.stdin") as stdin, patch(
            "rutt.security.credential_manager.getpass.getpass", side_effect=KeyboardInterrupt
        ):
            stdin.isatty.return_value = True
            with pytest.raises(MissingCredentialsError):
                credentials.get_password()

    def test_missing_username(self, config_manager, credentials):
        config_manager.config.account.username = ""
        with pytest.raises(MissingCredentialsError) as exc_info:
            credentials.get_password()

        text = ErrorHandler.describe(exc_info.value)
        assert text.startswith("No username configured\n")
        assert f"Set account.username in {config_manager.path}" in text

    def test_password_is_cached(self, credentials, keystore):
        keystore.retrieve.return_value = "cached"
        credentials.get_password()
        credentials.get_password()
        assert keystore.retrieve.call_count == 1

    def test_forget_password(self, credentials, keystore):
        keystore.retrieve.side_effect = ["old", "new"]
        credentials.get_password()

        credentials.forget_password()

        keystore.delete.assert_called_once_with("user@example.com")
        assert credentials.get_password() == "new"


class TestKeyStore:
    """Tests for the keyring wrapper"""

    def test_round_trip_calls(self):
        with patch("rutt.security.credential_manager.keyring") as backend:
            backend.get_password.return_value = "pw"
            store = KeyStore()

            assert store.retrieve("me") == "pw"
            assert store.store("me", "pw")
            store.delete("me")

        backend.get_password.assert_called_once_with("rutt", "me")
        backend.set_password.assert_called_once_with("rutt", "me", "pw")
        backend.delete_password.assert_called_once_with("rutt", "me")

    def test_backend_errors_are_contained(self):
        with patch("rutt.security.credential_manager.keyring") as backend:
            backend.get_password.side_effect = KeyringError("locked")
            backend.set_password.side_effect = KeyringError("locked")
            backend.delete_password.side_effect = PasswordDeleteError("missing")
            store = KeyStore()

            assert store.retrieve("me") is None
            assert store.store("me", "pw") is False
            store.delete("me")
