"""Tests for chat completion classifiers and the client factory."""

import json
from unittest import mock

import pytest
import responses

from codetective import config, token_store
from codetective.errors import (
    CallParseError,
    CallStatusError,
    CredentialAsciiError,
    CredentialLimitError,
    CredentialParseError,
    CredentialStatusError,
)
from codetective.providers.classifiers import (
    ApiProvider,
    GroqClassifier,
    OpenAIClassifier,
    OpenRouterClassifier,
    create_client,
    forget_credential,
    parse_verdict,
)

MODEL_URL = f"{OpenAIClassifier.API_BASE}/models/{OpenAIClassifier.MODEL}"
CHAT_URL = f"{OpenAIClassifier.API_BASE}/chat/completions"


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestValidate:
    @responses.activate
    def test_valid_key(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-4o"})
        OpenAIClassifier("sk-test").validate()
        assert responses.calls[0].request.headers["Authorization"] == "Bearer sk-test"

    @responses.activate
    def test_rejected_key(self):
        responses.add(responses.GET, MODEL_URL, status=401, body="invalid key")
        with pytest.raises(CredentialStatusError, match="401"):
            OpenAIClassifier("sk-bad").validate()

    @responses.activate
    def test_unexpected_model(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-3.5"})
        with pytest.raises(CredentialStatusError, match="unexpected model"):
            OpenAIClassifier("sk-test").validate()

    @responses.activate
    def test_malformed_json(self):
        responses.add(responses.GET, MODEL_URL, body="<html>")
        with pytest.raises(CredentialParseError):
            OpenAIClassifier("sk-test").validate()


class TestCall:
    @responses.activate
    def test_success(self):
        verdict = json.dumps({"likelihood": 73, "reasoning": "boilerplate comments"})
        responses.add(responses.POST, CHAT_URL, json=_completion(verdict))
        assert OpenAIClassifier("sk-test").call("print(1)") == (73, "boilerplate comments")

        body = json.loads(responses.calls[0].request.body)
        assert body["model"] == "gpt-4o"
        assert body["messages"][1] == {"role": "user", "content": "print(1)"}

    @responses.activate
    def test_rate_limited(self):
        responses.add(responses.POST, CHAT_URL, status=429, body="slow down")
        with pytest.raises(CallStatusError, match="429"):
            OpenAIClassifier("sk-test").call("x")

    @responses.activate
    def test_missing_choices(self):
        responses.add(responses.POST, CHAT_URL, json={"error": "truncated"})
        with pytest.raises(CallParseError):
            OpenAIClassifier("sk-test").call("x")

    @responses.activate
    def test_non_json_verdict(self):
        responses.add(responses.POST, CHAT_URL, json=_completion("I think it's AI"))
        with pytest.raises(CallParseError, match="malformed detection verdict"):
            OpenAIClassifier("sk-test").call("x")

    @responses.activate
    def test_null_content_is_parse_error(self):
        responses.add(responses.POST, CHAT_URL, json=_completion(None))
        with pytest.raises(CallParseError, match="malformed detection verdict: None"):
            OpenAIClassifier("sk-test").call("x")


class TestParseVerdict:
    def test_numeric_string_likelihood(self):
        assert parse_verdict('{"likelihood": "55", "reasoning": "mixed"}') == (55, "mixed")

    @pytest.mark.parametrize(
        "content",
        ['{"reasoning": "no score"}', '{"likelihood": "high", "reasoning": ""}', "[]", "", None],
    )
    def test_malformed(self, content):
        with pytest.raises(CallParseError):
            parse_verdict(content)


class TestCreateClient:
    @responses.activate
    def test_explicit_credential(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-4o"})
        client = create_client(ApiProvider.OPENAI, "sk-test")
        assert isinstance(client, OpenAIClassifier)

    @responses.activate
    def test_saved_credential(self):
        url = f"{GroqClassifier.API_BASE}/models/{GroqClassifier.MODEL}"
        responses.add(responses.GET, url, json={"id": GroqClassifier.MODEL})
        with mock.patch.object(token_store, "load", return_value="gsk-saved") as load:
            client = create_client(ApiProvider.GROQ)
        load.assert_called_once_with("groq_api_key")
        assert client.api_key == "gsk-saved"

    def test_no_credential(self):
        with mock.patch.object(token_store, "load", return_value=None):
            with pytest.raises(CredentialLimitError):
                create_client(ApiProvider.OPENAI)

    def test_non_ascii_credential(self):
        with pytest.raises(CredentialAsciiError):
            create_client(ApiProvider.OPENAI, "sk-ключ")

    @responses.activate
    def test_invalid_credential_not_returned(self):
        responses.add(responses.GET, MODEL_URL, status=401)
        with pytest.raises(CredentialStatusError):
            create_client(ApiProvider.OPENAI, "sk-bad")

    def test_free_without_keys(self):
        with mock.patch.dict(config.FREE_QUOTA_KEYS, clear=True):
            with pytest.raises(CredentialLimitError, match="no free quota"):
                create_client(ApiProvider.FREE)

    @responses.activate
    def test_free_uses_preset_key(self):
        url = f"{OpenRouterClassifier.API_BASE}/models/{OpenRouterClassifier.MODEL}"
        responses.add(responses.GET, url, json={"id": OpenRouterClassifier.MODEL})
        with mock.patch.dict(config.FREE_QUOTA_KEYS, {"openrouter": "or-free"}, clear=True):
            client = create_client(ApiProvider.FREE)
        assert isinstance(client, OpenRouterClassifier)
        assert client.api_key == "or-free"


class TestRememberCredential:
    @responses.activate
    def test_saved_after_validation(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-4o"})
        with mock.patch.object(token_store, "save", return_value=True) as save:
            create_client(ApiProvider.OPENAI, "sk-test", remember=True)
        save.assert_called_once_with("openai_api_key", "sk-test")

    @responses.activate
    def test_not_saved_by_default(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-4o"})
        with mock.patch.object(token_store, "save") as save:
            create_client(ApiProvider.OPENAI, "sk-test")
        save.assert_not_called()

    @responses.activate
    def test_rejected_key_not_saved(self):
        responses.add(responses.GET, MODEL_URL, status=401)
        with mock.patch.object(token_store, "save") as save:
            with pytest.raises(CredentialStatusError):
                create_client(ApiProvider.OPENAI, "sk-bad", remember=True)
        save.assert_not_called()

    @responses.activate
    def test_loaded_key_not_saved_again(self):
        responses.add(responses.GET, MODEL_URL, json={"id": "gpt-4o"})
        with mock.patch.object(token_store, "load", return_value="sk-saved"), \
                mock.patch.object(token_store, "save") as save:
            create_client(ApiProvider.OPENAI, remember=True)
        save.assert_not_called()

    def test_forget(self):
        with mock.patch.object(token_store, "delete", return_value=True) as delete:
            assert forget_credential(ApiProvider.GROQ) is True
        delete.assert_called_once_with("groq_api_key")
