"""Read-only access to a local git repository through the git CLI.

Every query returns an empty value when git fails (unknown revision, missing
path, timeout) so callers treat "not found" and "unreadable" alike. Only
construction on something that is not a git work tree raises.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from commitlens_core.errors import RepositoryError
from commitlens_core.models import Commit
from commitlens_core.utils.code import BINARY_MARKER

logger = logging.getLogger(__name__)

# git's well-known empty tree object, used as the "before" side of root commits.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%H%x1f%P%x1f%an%x1f%ae%x1f%aI%x1f%B%x1e"

# git's own heuristic: a NUL byte in the first 8000 bytes means binary.
_BINARY_SNIFF_BYTES = 8000


def _git_date(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S +0000")


@dataclass(frozen=True)
class TreeChange:
    status: str  # first letter of git's name-status code: A, M, D, R, T, ...
    path: str
    old_path: str | None = None


class GitRepository:
    def __init__(self, path: str = ".", timeout: float = 30):
        self.timeout = timeout
        root = Path(path).expanduser()
        if not root.is_dir():
            raise RepositoryError(f"Repository path does not exist: {path}")
        self.path = str(root.resolve())
        if self._git(["rev-parse", "--git-dir"]) is None:
            raise RepositoryError(f"Not a git repository: {path}")

    def _git(self, args: list[str], binary: bool = False):
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
            logger.warning("git %s failed: %s", args[0], e)
            return None
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.debug("git %s exited %d: %s", " ".join(args), result.returncode, stderr)
            return None
        if binary:
            return result.stdout
        return result.stdout.decode("utf-8", errors="replace")

    # ------------------------------------------------------------------ #
    # Commits                                                              #
    # ------------------------------------------------------------------ #

    def get_commits_in_period(self, since: datetime, until: datetime | None = None) -> list[Commit]:
        """Commits reachable from HEAD authored in [since, until], newest first."""
        args = ["log", f"--format={_LOG_FORMAT}", f"--since={_git_date(since)}"]
        if until is not None:
            args.append(f"--until={_git_date(until)}")
        args.append("HEAD")
        output = self._git(args)
        if not output:
            return []
        return [c for c in (self._parse_commit(r) for r in output.split(_RECORD_SEP)) if c is not None]

    def get_commit(self, commit_id: str) -> Commit | None:
        output = self._git(["log", "-1", f"--format={_LOG_FORMAT}", commit_id, "--"])
        if not output:
            return None
        return self._parse_commit(output.split(_RECORD_SEP)[0])

    @staticmethod
    def _parse_commit(record: str) -> Commit | None:
        record = record.strip("\n")
        if not record:
            return None
        fields = record.split(_FIELD_SEP)
        if len(fields) < 6:
            logger.debug("Unexpected git log record: %r", record[:120])
            return None
        sha, parents, author, email, date, message = fields[:6]
        return Commit(
            id=sha,
            author=author,
            email=email,
            timestamp=datetime.fromisoformat(date),
            message=message.strip(),
            parents=tuple(parents.split()),
        )

    # ------------------------------------------------------------------ #
    # Trees, blobs, patches                                                #
    # ------------------------------------------------------------------ #

    def get_tree_changes(self, commit_id: str, parent_id: str | None = None) -> list[TreeChange]:
        """Changed paths between parent and commit trees, with rename detection."""
        args = ["diff-tree", "-r", "-M", "-z", "--name-status", "--no-commit-id"]
        if parent_id is None:
            args += ["--root", commit_id]
        else:
            args += [parent_id, commit_id]
        output = self._git(args)
        if not output:
            return []

        tokens = output.split("\0")
        changes = []
        i = 0
        while i < len(tokens) and tokens[i]:
            status = tokens[i][0]
            if status in ("R", "C"):
                changes.append(TreeChange(status=status, old_path=tokens[i + 1], path=tokens[i + 2]))
                i += 3
            else:
                changes.append(TreeChange(status=status, path=tokens[i + 1]))
                i += 2
        return changes

    def get_file_content(self, revision: str, path: str) -> str | None:
        """Blob text at revision, BINARY_MARKER for binary blobs, None if absent."""
        data = self._git(["show", f"{revision}:{path}"], binary=True)
        if data is None:
            return None
        if b"\0" in data[:_BINARY_SNIFF_BYTES]:
            return BINARY_MARKER
        return data.decode("utf-8", errors="replace")

    def get_file_diff(
        self,
        path: str,
        commit_id: str,
        parent_id: str | None = None,
        old_path: str | None = None,
        context: int = 3,
    ) -> str:
        base = parent_id or EMPTY_TREE
        paths = [old_path, path] if old_path and old_path != path else [path]
        output = self._git(["diff", f"-U{context}", "-M", base, commit_id, "--", *paths])
        return output or ""
