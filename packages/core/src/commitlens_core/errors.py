"""Exception hierarchy shared by every commitlens package.

File validation failures and degraded model output are *not* exceptions —
they are ordinary return values (ValidationOutcome, ParseResult) handled at
the call site. Only conditions that abort a unit of work raise.
"""

from __future__ import annotations


class CommitLensError(Exception):
    """Base class for all commitlens errors."""


class ConfigError(CommitLensError):
    """Configuration values are missing or out of range."""


class RepositoryError(CommitLensError):
    """The git repository cannot be opened or read."""


class BackendError(CommitLensError):
    """The inference backend rejected a request or could not be reached."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is not None:
            return f"{message} (HTTP {self.status}: {self.body[:200]})"
        return message


class BackendTimeoutError(BackendError):
    """A generation request exceeded the configured timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"Backend request timed out after {timeout:g}s")
        self.timeout = timeout


class EmptyResponseError(BackendError):
    """The backend answered successfully but with no generated text."""

    def __init__(self, model: str):
        super().__init__(f"Backend returned an empty response for model {model!r}")
        self.model = model


class BackendUnavailable(CommitLensError):
    """The backend is down or does not serve the configured model."""


class PersistenceError(CommitLensError):
    """An analysis could not be written to or read from the store."""
