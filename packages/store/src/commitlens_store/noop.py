"""No-op store for dry runs (`commitlens analyze --no-save`, `store: none`).

Nothing is remembered, so every commit looks unanalysed. Using a NoOpStore
rather than None lets the orchestrator always call the store without
conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from commitlens_store.base import BaseStore

if TYPE_CHECKING:
    from commitlens_core.models import CommitAnalysis, FileAnalysis


class NoOpStore(BaseStore):
    """Silently discards all records — zero configuration required."""

    def has_analysis(self, commit_id: str, file_path: str | None = None) -> bool:
        return False

    def save_file_analysis(self, analysis: FileAnalysis) -> None:
        pass  # intentional no-op

    def save_commit_analysis(self, analysis: CommitAnalysis) -> None:
        pass  # intentional no-op

    def get_commit_analysis(self, commit_id: str) -> CommitAnalysis | None:
        return None

    def list_file_analyses(self, commit_id: str) -> list[FileAnalysis]:
        return []

    def list_commit_analyses(self, since=None, until=None, author=None) -> list[CommitAnalysis]:
        return []
