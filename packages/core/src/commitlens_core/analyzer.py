"""Commit analysis orchestration.

One cycle:
    CHECKING_BACKEND → FETCHING_COMMITS → PROCESSING → SLEEPING → ...

Commits are processed concurrently on a small thread pool; the files of one
commit are analysed one after another so a single commit never has more than
one request in flight against the backend. A commit is persisted only after
all of its files have been handled, and the store is asked before any work
whether the commit was already analysed, which is what keeps re-runs free of
duplicate records and duplicate model calls.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from commitlens_core.config import MAX_WORKERS_CAP
from commitlens_core.errors import BackendError, BackendUnavailable
from commitlens_core.git.diff import DiffExtractor
from commitlens_core.models import Commit, CommitAnalysis, FileAnalysis, FileChange
from commitlens_core.parsing import combine_results, parse_scores, parse_suggestions
from commitlens_core.prompts import build_prompts, build_suggestions_prompt
from commitlens_core.validation import validate_file

logger = logging.getLogger(__name__)


class CycleState(str, Enum):
    IDLE = "idle"
    CHECKING_BACKEND = "checking_backend"
    FETCHING_COMMITS = "fetching_commits"
    PROCESSING = "processing"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class ResultCounter:
    """Files analysed per commit during one cycle, shared by the worker threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}

    def record(self, commit_id: str, files_analyzed: int) -> bool:
        """Insert if absent. Returns False when the commit was already recorded."""
        with self._lock:
            if commit_id in self._counts:
                return False
            self._counts[commit_id] = files_analyzed
            return True

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


@dataclass
class CycleSummary:
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    skipped_reason: str = ""
    candidates: int = 0
    results: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return bool(self.skipped_reason)

    @property
    def files_analyzed(self) -> int:
        return sum(self.results.values())


def resolve_concurrency(max_workers: int = MAX_WORKERS_CAP) -> int:
    """Worker count: min(available CPUs, configured value, 4), at least 1."""
    return max(1, min(os.cpu_count() or 1, max_workers, MAX_WORKERS_CAP))


class AnalysisOrchestrator:
    def __init__(self, repository, client, store, config: dict, stop_event: threading.Event | None = None):
        self.repository = repository
        self.client = client
        self.store = store
        self.config = config
        self.extractor = DiffExtractor(repository, exclude=config.get("exclude", []))
        self.concurrency = resolve_concurrency(config.get("max_workers", MAX_WORKERS_CAP))
        self.state = CycleState.IDLE

        self._stop_event = stop_event or threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------ #
    # Loop control                                                         #
    # ------------------------------------------------------------------ #

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Run the loop on a background thread."""
        self._thread = threading.Thread(target=self.run_forever, name="commitlens-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5) -> None:
        """Signal the loop to stop; in-flight file analyses finish on their own."""
        logger.debug("Stopping analysis loop...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Analysis loop did not exit within %ss (waiting on the backend)", timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the background loop exits or timeout passes. True once it has exited."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def run_forever(self) -> None:
        interval = self.config["scan_interval_minutes"] * 60
        logger.info(
            "Analysis loop started: %s every %d min, %d worker(s)",
            self.repository.path,
            self.config["scan_interval_minutes"],
            self.concurrency,
        )
        while not self.stopping:
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Analysis cycle failed")
            self.state = CycleState.SLEEPING
            if self._stop_event.wait(interval):
                break
        self.state = CycleState.STOPPED
        logger.info("Analysis loop stopped")

    # ------------------------------------------------------------------ #
    # One cycle                                                            #
    # ------------------------------------------------------------------ #

    def _check_backend(self) -> None:
        if not self.client.is_available():
            raise BackendUnavailable(f"backend at {getattr(self.client, 'base_url', '?')} is not responding")
        model = self.config["model"]
        if not self.client.has_model(model):
            raise BackendUnavailable(f"model {model!r} is not served by the backend")

    def run_cycle(self) -> CycleSummary:
        summary = CycleSummary()

        self.state = CycleState.CHECKING_BACKEND
        try:
            self._check_backend()
        except BackendUnavailable as e:
            logger.warning("Skipping analysis cycle: %s", e)
            summary.skipped_reason = str(e)
            return summary

        self.state = CycleState.FETCHING_COMMITS
        until = datetime.now(timezone.utc)
        since = until - timedelta(days=self.config["lookback_days"])
        commits = self.repository.get_commits_in_period(since, until)[: self.config["max_commits_per_cycle"]]
        summary.candidates = len(commits)
        logger.info("Found %d commit(s) since %s", len(commits), since.date().isoformat())

        self.state = CycleState.PROCESSING
        counter = ResultCounter()
        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="commitlens") as executor:
            futures = {executor.submit(self._process_commit, commit, counter): commit for commit in commits}
            for future in as_completed(futures):
                commit = futures[future]
                try:
                    future.result()
                except Exception as e:
                    logger.error("Commit %s failed and will be retried next cycle: %s", commit.short_id, e)
                    summary.failed.append(commit.id)

        summary.results = counter.snapshot()
        for commit_id, count in summary.results.items():
            logger.info("Commit %s: %d files analyzed", commit_id[:8], count)
        return summary

    def _process_commit(self, commit: Commit, counter: ResultCounter) -> None:
        if self.stopping:
            return
        analysis = self.analyze_commit(commit)
        if analysis is not None:
            counter.record(commit.id, len(analysis.files))

    # ------------------------------------------------------------------ #
    # Per commit / per file                                                #
    # ------------------------------------------------------------------ #

    def analyze_commit(self, commit: Commit) -> CommitAnalysis | None:
        """Analyse and persist one commit.

        Returns None when the commit was already analysed, could not be read,
        had a file fail at the backend, or the run was cancelled part-way. In
        the last three cases no commit record is saved, so the next cycle picks
        it up again and only re-sends files without a stored analysis. Store
        errors propagate.
        """
        if self.store.has_analysis(commit.id):
            logger.debug("Commit %s already analyzed, skipping", commit.short_id)
            return None

        subject = commit.message.splitlines()[0] if commit.message else ""
        logger.info("Analyzing commit %s by %s: %s", commit.short_id, commit.author, subject)
        changes = self.extractor.extract(commit.id)
        if not changes and self.repository.get_commit(commit.id) is None:
            logger.warning("Commit %s could not be read; will retry next cycle", commit.short_id)
            return None
        # Files saved by an earlier, interrupted run of this commit.
        existing = {fa.file_path: fa for fa in self.store.list_file_analyses(commit.id)}

        max_files = self.config["max_files_per_commit"]
        files: list[FileAnalysis] = []
        attempted = 0
        backend_failures = 0

        for change in changes:
            if self.stopping:
                logger.info("Cancelled while analyzing commit %s", commit.short_id)
                return None

            outcome = validate_file(change, max_size=self.config["max_file_size"])
            if not outcome:
                logger.info("Skipping %s: %s", change.path, outcome.reason)
                continue

            if attempted >= max_files:
                logger.info("Commit %s: file limit of %d reached", commit.short_id, max_files)
                break
            attempted += 1

            if change.path in existing:
                files.append(existing[change.path])
                continue

            analysis = self.analyze_file(commit, change)
            if analysis is None:
                backend_failures += 1
                continue
            self.store.save_file_analysis(analysis)
            files.append(analysis)

        if backend_failures:
            logger.warning(
                "Commit %s: %d file(s) failed at the backend; not marking it analyzed",
                commit.short_id,
                backend_failures,
            )
            return None

        commit_analysis = CommitAnalysis.for_commit(commit, files)
        self.store.save_commit_analysis(commit_analysis)
        return commit_analysis

    def analyze_file(self, commit: Commit, change: FileChange) -> FileAnalysis | None:
        """Score one validated file. Returns None if the backend fails."""
        use_diff = self.config.get("prompt_source") == "diff"
        prompts = build_prompts(change, budget=self.config["chunk_budget"], use_diff=use_diff)

        results = []
        try:
            for i, prompt in enumerate(prompts, start=1):
                if len(prompts) > 1:
                    logger.debug("%s: part %d/%d", change.path, i, len(prompts))
                results.append(parse_scores(self._invoke(prompt)))
        except BackendError as e:
            logger.warning("Skipping %s in %s: %s", change.path, commit.short_id, e)
            return None

        result = combine_results(results)
        if result.degraded:
            logger.warning("Unreadable model output for %s; recorded default scores", change.path)

        suggestions = []
        if self.config.get("suggestions") and not result.degraded:
            try:
                raw = self._invoke(build_suggestions_prompt(change, result, budget=self.config["chunk_budget"]))
                suggestions = parse_suggestions(raw)
            except BackendError as e:
                logger.warning("No suggestions for %s: %s", change.path, e)

        return FileAnalysis(
            commit_id=commit.id,
            file_path=change.path,
            change_kind=change.change_kind,
            language=change.language,
            added_lines=change.added_lines,
            removed_lines=change.removed_lines,
            criteria=result.criteria,
            suggestions=suggestions,
            comment=result.comment,
        )

    def _invoke(self, prompt: str) -> str:
        return self.client.invoke(
            prompt,
            self.config["model"],
            temperature=self.config["temperature"],
            max_tokens=self.config["max_tokens"],
        )
