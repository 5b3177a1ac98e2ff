"""Decide whether a changed file is worth sending to the model."""

from __future__ import annotations

from commitlens_core.models import ChangeKind, FileChange, ValidationOutcome
from commitlens_core.utils.code import BINARY_MARKER, DENIED_EXTENSIONS, extension_of, is_source_file

MAX_FILE_SIZE = 100_000
MAX_NON_PRINTABLE_RATIO = 0.05

_ALLOWED_CONTROL_CHARS = {"\t", "\n", "\r"}


def looks_binary(content: str) -> bool:
    """Heuristic binary detector: too many control characters for text."""
    non_printable = sum(1 for ch in content if ord(ch) < 32 and ch not in _ALLOWED_CONTROL_CHARS)
    return non_printable > len(content) * MAX_NON_PRINTABLE_RATIO


def validate_file(change: FileChange, max_size: int = MAX_FILE_SIZE) -> ValidationOutcome:
    path = change.path
    if not path:
        return ValidationOutcome.failure("file path is missing")

    if change.change_kind is ChangeKind.DELETED:
        return ValidationOutcome.failure(f"{path} was deleted")

    extension = extension_of(path)
    if extension in DENIED_EXTENSIONS:
        return ValidationOutcome.failure(f"unsupported file extension: {extension}")

    if not is_source_file(path):
        return ValidationOutcome.failure(f"{path} is not a source code file")

    content = change.modified_content
    if not content or not content.strip():
        return ValidationOutcome.failure(f"{path} is empty")

    if len(content) > max_size:
        return ValidationOutcome.failure(
            f"{path} is too large ({len(content) / 1024:.0f} KB, limit {max_size / 1024:.0f} KB)"
        )

    if content == BINARY_MARKER or looks_binary(content):
        return ValidationOutcome.failure(f"{path} appears to contain binary data")

    return ValidationOutcome.success()
