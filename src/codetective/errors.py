"""Error types for code import, credential checks, and detection calls."""

from __future__ import annotations


class CodeImportError(Exception):
    """Raised when an import action fails. Aborts only that action."""

    kind = "Import"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind} error: {self.message}"


class ParseError(CodeImportError):
    """Malformed input, URL, or JSON."""

    kind = "Parse"


class ExistsError(CodeImportError):
    """A file with the same path was already imported."""

    kind = "Exists"


class ExtenError(CodeImportError):
    """Wrong or missing file extension."""

    kind = "Extension"


class StatusError(CodeImportError):
    """HTTP non-success status or transport failure."""

    kind = "Status"


class LimitError(CodeImportError):
    """Size or count quota exceeded."""

    kind = "Limit"


class AsciiError(CodeImportError):
    """Non-ASCII characters in a URL."""

    kind = "Ascii"


class GitHubError(CodeImportError):
    """GitHub repository listing failed."""

    kind = "GitHub"


class RateLimitError(GitHubError):
    """GitHub refused the request, most likely due to rate limiting."""


class UploadError(CodeImportError):
    """Uploaded file or archive could not be read."""

    kind = "Upload"


class CredentialError(Exception):
    """Raised when a classification client cannot be created."""

    kind = "Credential"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind} error: {self.message}"


class CredentialParseError(CredentialError):
    kind = "Parse"


class CredentialStatusError(CredentialError):
    kind = "Status"


class CredentialLimitError(CredentialError):
    kind = "Limit"


class CredentialAsciiError(CredentialError):
    kind = "Ascii"


class CallError(Exception):
    """Raised by a classification call. Never aborts the scheduler."""

    kind = "Call"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind} error: {self.message}"


class CallParseError(CallError):
    """Malformed or truncated response from the provider."""

    kind = "Parse"


class CallStatusError(CallError):
    """Network, authorization, or rate-limit failure."""

    kind = "Status"
