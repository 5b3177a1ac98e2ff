"""Abstract store interface.

The orchestrator and the CLI depend on BaseStore, not on a concrete backend,
so storage engines are swappable without touching the analysis pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commitlens_core.models import CommitAnalysis, FileAnalysis


class BaseStore(ABC):
    """Pluggable persistence layer for analysis results.

    Implementations are called from several worker threads at once and must
    serialise their own access. Write failures raise PersistenceError so the
    orchestrator leaves the commit unmarked and retries it next cycle.
    """

    @abstractmethod
    def has_analysis(self, commit_id: str, file_path: str | None = None) -> bool:
        """Whether a commit analysis (or, with file_path, a file analysis) exists.

        The per-file form is part of the store contract for callers checking a
        single file. The orchestrator resumes interrupted commits from
        list_file_analyses instead, since it needs the stored scores and not
        just their presence.
        """

    @abstractmethod
    def save_file_analysis(self, analysis: FileAnalysis) -> None:
        """Persist one file analysis, replacing any record for the same (commit, file)."""

    @abstractmethod
    def save_commit_analysis(self, analysis: CommitAnalysis) -> None:
        """Persist a completed commit analysis together with its file analyses."""

    @abstractmethod
    def get_commit_analysis(self, commit_id: str) -> CommitAnalysis | None:
        """Return the stored analysis for a commit, or None."""

    @abstractmethod
    def list_file_analyses(self, commit_id: str) -> list[FileAnalysis]:
        """Return the file analyses stored for a commit, in path order."""

    @abstractmethod
    def list_commit_analyses(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
        author: str | None = None,
    ) -> list[CommitAnalysis]:
        """Return commit analyses whose commit date falls in [since, until], oldest first.

        ``author`` matches the author name or email, case-insensitively.
        Returns an empty list if nothing matches — never raises for "not found".
        """

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
