"""Commit-level aggregation of per-file scores."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commitlens_core.models import FileAnalysis

SCORED = "scored"
NO_ANALYZABLE_CONTENT = "no analyzable content"

# (minimum score, label), checked in order.
_QUALITY_LEVELS = (
    (9.0, "Excellent"),
    (7.5, "Very Good"),
    (6.0, "Good"),
    (5.0, "Acceptable"),
    (3.5, "Needs Improvement"),
)

COMMIT_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore", "ci", "build", "perf")
_COMMIT_TYPE_RE = re.compile(r"^\s*([a-zA-Z]+)(\([^)]*\))?!?:")


@dataclass(frozen=True)
class CommitScore:
    overall: float
    analyzed_files: int
    criteria: dict[str, float] = field(default_factory=dict)

    @property
    def has_content(self) -> bool:
        return self.analyzed_files > 0

    @property
    def status(self) -> str:
        return SCORED if self.has_content else NO_ANALYZABLE_CONTENT


def aggregate(files: list[FileAnalysis]) -> CommitScore:
    """Combine completed file analyses into a commit score.

    Only files that produced a FileAnalysis are passed in; skipped files never
    reach this point, so they do not pull the mean towards zero. An empty
    collection yields 0 with the "no analyzable content" status, which callers
    must not read as a zero-quality commit.
    """
    if not files:
        return CommitScore(overall=0.0, analyzed_files=0)

    overall = sum(f.overall_score for f in files) / len(files)

    totals: dict[str, list[int]] = {}
    for f in files:
        for name, criterion in f.criteria.items():
            totals.setdefault(name, []).append(criterion.score)
    criteria = {name: sum(scores) / len(scores) for name, scores in totals.items()}

    return CommitScore(overall=overall, analyzed_files=len(files), criteria=criteria)


def quality_level(score: float) -> str:
    for minimum, label in _QUALITY_LEVELS:
        if score >= minimum:
            return label
    return "Problematic"


def commit_type(message: str) -> str:
    """Conventional-commit type of a message ("feat: ...", "fix(api): ..."), else "other"."""
    match = _COMMIT_TYPE_RE.match(message or "")
    if match and match.group(1).lower() in COMMIT_TYPES:
        return match.group(1).lower()
    return "other"
