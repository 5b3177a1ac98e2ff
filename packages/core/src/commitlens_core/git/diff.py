"""Turn a commit into the list of FileChange records the pipeline consumes."""

from __future__ import annotations

import logging

from commitlens_core.models import ChangeKind, FileChange
from commitlens_core.utils.code import should_skip_path

logger = logging.getLogger(__name__)

_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "T": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
    "R": ChangeKind.RENAMED,
}


def change_kind_for(status: str) -> ChangeKind:
    return _STATUS_KINDS.get(status[:1], ChangeKind.UNKNOWN)


def count_patch_lines(patch: str) -> tuple[int, int]:
    """Count added and removed lines in a unified diff, ignoring file headers."""
    added = removed = 0
    for line in patch.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return added, removed


class DiffExtractor:
    """Shapes repository data into FileChange records.

    All git access goes through ``repository``, which only needs
    get_commit / get_tree_changes / get_file_content / get_file_diff.
    """

    def __init__(self, repository, exclude=(), context_lines: int = 3):
        self.repository = repository
        self.exclude = list(exclude)
        self.context_lines = context_lines

    def extract(self, commit_id: str) -> list[FileChange]:
        commit = self.repository.get_commit(commit_id)
        if commit is None:
            logger.warning("Commit %s could not be resolved", commit_id[:8])
            return []

        parent_id = commit.first_parent
        changes: list[FileChange] = []

        for entry in self.repository.get_tree_changes(commit.id, parent_id):
            if should_skip_path(entry.path, self.exclude):
                logger.debug("Skipping %s (filtered path)", entry.path)
                continue

            kind = change_kind_for(entry.status)
            before_path = entry.old_path or entry.path

            original = ""
            if parent_id is not None and kind is not ChangeKind.ADDED:
                original = self.repository.get_file_content(parent_id, before_path) or ""

            modified = ""
            if kind is not ChangeKind.DELETED:
                modified = self.repository.get_file_content(commit.id, entry.path) or ""

            patch = self.repository.get_file_diff(
                entry.path,
                commit.id,
                parent_id=parent_id,
                old_path=entry.old_path,
                context=self.context_lines,
            )
            added, removed = count_patch_lines(patch)

            changes.append(
                FileChange(
                    path=entry.path,
                    change_kind=kind,
                    old_path=entry.old_path,
                    original_content=original,
                    modified_content=modified,
                    added_lines=added,
                    removed_lines=removed,
                    diff_text=patch,
                )
            )

        logger.debug("Commit %s: %d changed file(s) extracted", commit.short_id, len(changes))
        return changes
