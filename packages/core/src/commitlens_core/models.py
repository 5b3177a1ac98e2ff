"""Domain records passed between the pipeline stages and the store.

Commits and file changes are read-only snapshots of repository state. File
and commit analyses are created by the orchestrator and handed to the store;
nothing mutates them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from commitlens_core.scoring import aggregate, commit_type
from commitlens_core.utils.code import detect_language

DEFAULT_JUSTIFICATION = "analysis unavailable"

# Canonical criterion names, in prompt and display order.
CRITERIA = (
    "variable_naming",
    "function_size",
    "self_explanatory",
    "method_cohesion",
    "dead_code",
)

CRITERION_LABELS = {
    "variable_naming": "Variable naming",
    "function_size": "Function size",
    "self_explanatory": "Self-explanatory code",
    "method_cohesion": "Method cohesion",
    "dead_code": "Dead code",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Commit:
    id: str
    author: str
    email: str
    timestamp: datetime
    message: str
    parents: tuple[str, ...] = ()

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None


@dataclass(frozen=True)
class FileChange:
    path: str
    change_kind: ChangeKind
    old_path: str | None = None
    original_content: str = ""
    modified_content: str = ""
    added_lines: int = 0
    removed_lines: int = 0
    diff_text: str = ""

    @property
    def language(self) -> str:
        return detect_language(self.path)


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> ValidationOutcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> ValidationOutcome:
        return cls(ok=False, reason=reason)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class CriterionScore:
    score: int
    justification: str = ""


@dataclass
class Suggestion:
    title: str
    description: str
    priority: str = "medium"
    category: str = ""
    difficulty: str = ""
    study_references: list[str] = field(default_factory=list)


@dataclass
class FileAnalysis:
    commit_id: str
    file_path: str
    change_kind: ChangeKind
    criteria: dict[str, CriterionScore]
    language: str = "Unknown"
    added_lines: int = 0
    removed_lines: int = 0
    suggestions: list[Suggestion] = field(default_factory=list)
    comment: str = ""
    analyzed_at: str = field(default_factory=_now)

    @property
    def overall_score(self) -> float:
        if not self.criteria:
            return 0.0
        return sum(c.score for c in self.criteria.values()) / len(self.criteria)

    @property
    def is_degraded(self) -> bool:
        """True when the scores are the fallback used for unparseable model output."""
        return bool(self.criteria) and all(
            c.justification == DEFAULT_JUSTIFICATION for c in self.criteria.values()
        )


@dataclass
class CommitAnalysis:
    """Aggregated result for one commit. Owns its FileAnalysis children."""

    commit_id: str
    author: str = ""
    email: str = ""
    committed_at: str = ""
    message: str = ""
    files: list[FileAnalysis] = field(default_factory=list)
    analyzed_at: str = field(default_factory=_now)

    @classmethod
    def for_commit(cls, commit: Commit, files: list[FileAnalysis]) -> CommitAnalysis:
        return cls(
            commit_id=commit.id,
            author=commit.author,
            email=commit.email,
            committed_at=commit.timestamp.isoformat(),
            message=commit.message,
            files=list(files),
        )

    @property
    def overall_score(self) -> float:
        return aggregate(self.files).overall

    @property
    def has_analyzable_content(self) -> bool:
        return aggregate(self.files).has_content

    @property
    def commit_type(self) -> str:
        return commit_type(self.message)
