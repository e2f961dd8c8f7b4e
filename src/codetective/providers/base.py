"""Abstract base class for AI-authorship classification providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Classifier(ABC):
    """A provider-backed client that scores code for AI authorship."""

    @abstractmethod
    def validate(self) -> None:
        """Check the credential with the provider.

        Raises a ``CredentialError`` subclass if the client is unusable.
        """

    @abstractmethod
    def call(self, text: str) -> tuple[int, str]:
        """Score *text* and return ``(likelihood percent, reasoning)``.

        Raises ``CallParseError`` for malformed responses and
        ``CallStatusError`` for network, authorization or quota failures.
        """
