"""Tests for token_store module."""

from unittest import mock

from keyring.errors import PasswordDeleteError

from codetective import token_store


def _patched(mock_keyring):
    return mock.patch.dict(token_store.__dict__, {"keyring": mock_keyring, "_AVAILABLE": True})


class TestWhenUnavailable:
    def test_is_available_returns_bool(self):
        assert isinstance(token_store.is_available(), bool)

    def test_load_returns_none(self):
        with mock.patch.object(token_store, "_AVAILABLE", False):
            assert token_store.load("github_token") is None

    def test_save_returns_false(self):
        with mock.patch.object(token_store, "_AVAILABLE", False):
            assert token_store.save("github_token", "value") is False

    def test_delete_returns_false(self):
        with mock.patch.object(token_store, "_AVAILABLE", False):
            assert token_store.delete("github_token") is False


class TestApiKeyName:
    def test_per_provider_name(self):
        assert token_store.api_key_name("openai") == "openai_api_key"


class TestWithKeyring:
    def test_load_returns_password(self):
        mock_keyring = mock.MagicMock()
        mock_keyring.get_password.return_value = "sk-test"
        with _patched(mock_keyring):
            assert token_store.load("openai_api_key") == "sk-test"
        mock_keyring.get_password.assert_called_once_with("codetective", "openai_api_key")

    def test_load_returns_none_on_backend_failure(self):
        mock_keyring = mock.MagicMock()
        mock_keyring.get_password.side_effect = RuntimeError("no backend")
        with _patched(mock_keyring):
            assert token_store.load("openai_api_key") is None

    def test_save_empty_value_is_refused(self):
        mock_keyring = mock.MagicMock()
        with _patched(mock_keyring):
            assert token_store.save("github_token", "") is False
        mock_keyring.set_password.assert_not_called()

    def test_save_returns_true(self):
        mock_keyring = mock.MagicMock()
        with _patched(mock_keyring):
            assert token_store.save("github_token", "ghp_x") is True
        mock_keyring.set_password.assert_called_once_with("codetective", "github_token", "ghp_x")

    def test_save_returns_false_on_failure(self):
        mock_keyring = mock.MagicMock()
        mock_keyring.set_password.side_effect = RuntimeError("locked")
        with _patched(mock_keyring):
            assert token_store.save("github_token", "ghp_x") is False

    def test_delete_returns_true(self):
        mock_keyring = mock.MagicMock()
        with _patched(mock_keyring):
            assert token_store.delete("github_token") is True

    def test_delete_missing_entry_returns_false(self):
        mock_keyring = mock.MagicMock()
        mock_keyring.delete_password.side_effect = PasswordDeleteError("missing")
        with _patched(mock_keyring):
            assert token_store.delete("github_token") is False
