"""OpenAI-compatible chat completion classifiers and the client factory."""

from __future__ import annotations

import json
import logging
import random
from enum import Enum

import requests

from codetective import config, token_store
from codetective.errors import (
    CallParseError,
    CallStatusError,
    CredentialAsciiError,
    CredentialLimitError,
    CredentialParseError,
    CredentialStatusError,
)
from codetective.providers.base import Classifier

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert code reviewer. Estimate the likelihood, as an integer "
    "percentage from 0 to 100, that the code given by the user was written by "
    "an AI model rather than a human. Reply with a JSON object only, in the "
    'form {"likelihood": <integer>, "reasoning": "<one short paragraph>"}.'
)


class ApiProvider(Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GROQ = "groq"
    FREE = "free"

    @property
    def display_name(self) -> str:
        return {
            ApiProvider.OPENAI: "OpenAI (GPT-4o)",
            ApiProvider.OPENROUTER: "OpenRouter (Auto)",
            ApiProvider.GROQ: "Groq (Llama-3-70B)",
            ApiProvider.FREE: "Free Quota (Preset)",
        }[self]


class ChatCompletionClassifier(Classifier):
    """Classifier speaking the OpenAI chat completions protocol."""

    API_BASE = ""
    MODEL = ""
    PROVIDER: ApiProvider

    def __init__(self, api_key: str, session: requests.Session | None = None):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = config.USER_AGENT
        self.session.headers["Authorization"] = f"Bearer {api_key}"

    def validate(self) -> None:
        logger.debug("Checking API key for %s", self.PROVIDER.display_name)
        try:
            resp = self.session.get(
                f"{self.API_BASE}/models/{self.MODEL}", timeout=config.HTTP_TIMEOUT
            )
        except requests.RequestException as exc:
            raise CredentialStatusError(f"API key validation failed: {exc}") from exc

        if not resp.ok:
            # probably network error or authorization failure
            raise CredentialStatusError(
                f"API key validation failed with {resp.status_code}: {resp.text}"
            )
        try:
            model_id = resp.json().get("id")
        except (ValueError, AttributeError) as exc:
            raise CredentialParseError("API key validation returned malformed JSON") from exc
        if model_id != self.MODEL:
            raise CredentialStatusError(
                f"API key validation successful, but unexpected model name: {model_id}"
            )

    def call(self, text: str) -> tuple[int, str]:
        payload = {
            "model": self.MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0,
        }
        try:
            resp = self.session.post(
                f"{self.API_BASE}/chat/completions", json=payload, timeout=config.HTTP_TIMEOUT
            )
        except requests.RequestException as exc:
            raise CallStatusError(f"detection call failed: {exc}") from exc

        if not resp.ok:
            raise CallStatusError(
                f"detection call failed with {resp.status_code}: {resp.text}"
            )
        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise CallParseError("detection response missing message content") from exc
        return parse_verdict(content)


def parse_verdict(content: str) -> tuple[int, str]:
    """Parse the model's JSON verdict into ``(likelihood, reasoning)``."""
    try:
        verdict = json.loads(content)
        likelihood = int(verdict["likelihood"])
        reasoning = str(verdict["reasoning"])
    except (ValueError, KeyError, TypeError) as exc:
        raise CallParseError(f"malformed detection verdict: {content!r:.200}") from exc
    return likelihood, reasoning


class OpenAIClassifier(ChatCompletionClassifier):
    API_BASE = "https://api.openai.com/v1"
    MODEL = "gpt-4o"
    PROVIDER = ApiProvider.OPENAI


class OpenRouterClassifier(ChatCompletionClassifier):
    API_BASE = "https://openrouter.ai/api/v1"
    MODEL = "openrouter/auto"
    PROVIDER = ApiProvider.OPENROUTER


class GroqClassifier(ChatCompletionClassifier):
    API_BASE = "https://api.groq.com/openai/v1"
    MODEL = "llama3-70b-8192"
    PROVIDER = ApiProvider.GROQ


_CLASSIFIERS: dict[ApiProvider, type[ChatCompletionClassifier]] = {
    ApiProvider.OPENAI: OpenAIClassifier,
    ApiProvider.OPENROUTER: OpenRouterClassifier,
    ApiProvider.GROQ: GroqClassifier,
}

# Providers that may have a preset free-quota key
FREEABLE_PROVIDERS = (ApiProvider.OPENROUTER, ApiProvider.GROQ)


def create_client(
    provider: ApiProvider,
    credential: str | None = None,
    session: requests.Session | None = None,
    remember: bool = False,
) -> Classifier:
    """Create and validate a classification client.

    Without a *credential*, a key saved in the OS keychain is used. With
    *remember* set, an explicitly given credential is saved to the keychain
    once it has been validated. The ``FREE`` provider picks one of the
    free-capable providers at random and uses its preset key.
    """
    if provider is ApiProvider.FREE:
        available = [p for p in FREEABLE_PROVIDERS if p.value in config.FREE_QUOTA_KEYS]
        if not available:
            raise CredentialLimitError("no free quota available for any provider")
        chosen = random.choice(available)
        logger.info("Using free quota of %s", chosen.display_name)
        client = _CLASSIFIERS[chosen](config.FREE_QUOTA_KEYS[chosen.value], session=session)
        client.validate()
        return client

    key_name = token_store.api_key_name(provider.value)
    explicit = credential is not None
    if credential is None:
        credential = token_store.load(key_name)
    if not credential:
        raise CredentialLimitError(
            f"API provider {provider.display_name} has no free quota available"
        )
    if not credential.isascii():
        raise CredentialAsciiError("API key contains non-ASCII characters")

    client = _CLASSIFIERS[provider](credential, session=session)
    client.validate()
    if remember and explicit:
        token_store.save(key_name, credential)
    return client


def forget_credential(provider: ApiProvider) -> bool:
    """Remove a saved API key. Returns True if one was removed."""
    return token_store.delete(token_store.api_key_name(provider.value))
