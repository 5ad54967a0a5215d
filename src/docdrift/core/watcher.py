"""Orchestrates evaluation passes over the files changed between commits."""

import fnmatch
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path, PurePosixPath

from docdrift.core.change_analyzer import ChangeAnalyzer
from docdrift.core.database import DEFAULT_REPOSITORY, TrackingStore
from docdrift.core.doc_generator import (
    DocumentationGenerator,
    MarkdownSkeletonGenerator,
    doc_path_for,
    write_documentation,
)
from docdrift.core.errors import DocdriftError, GitError, LockError, ParseError, ReadError, StoreError
from docdrift.core.git_tracker import GitTracker
from docdrift.core.hashing import hash_text
from docdrift.core.lock import WatcherLock
from docdrift.core.models import FileOutcome, OutcomeStatus, PassReport, SignificanceResult
from docdrift.core.settings import Settings, settings
from docdrift.core.structural_parser import language_for_path, parse

logger = logging.getLogger(__name__)


def _last_reason(result: SignificanceResult) -> str:
    return result.recommendation.reasons[-1] if result.recommendation.reasons else ""


class DocumentationWatcher:
    """Runs evaluation passes: diff the commit range, score each file, regenerate what matters.

    The commit marker only advances once every file in the range reached a
    terminal outcome. A ``StoreError`` or ``GitError`` aborts the pass and
    leaves the marker where it was, so the next pass re-derives the same files.
    """

    def __init__(
        self,
        store: TrackingStore,
        git: GitTracker | None = None,
        generator: DocumentationGenerator | None = None,
        analyzer: ChangeAnalyzer | None = None,
        config: Settings | None = None,
        lock: WatcherLock | None = None,
        repository: str = DEFAULT_REPOSITORY,
    ):
        self.store = store
        self.config = config or settings
        self.git = git or GitTracker(store.project_root)
        self.generator = generator or MarkdownSkeletonGenerator(public_only=not self.config.document_private_members)
        self.analyzer = analyzer or ChangeAnalyzer(self.config.scoring)
        self.lock = lock
        self.repository = repository

    @property
    def project_root(self) -> Path:
        return self.store.project_root

    def filter_files(self, files: list[str]) -> list[str]:
        """Keep files with a watched extension, not excluded, under a watch path."""
        extensions = set(self.config.extensions)
        watch_paths = [p.replace("\\", "/").rstrip("/") for p in self.config.watch_paths]

        filtered = []
        for file in files:
            normalized = file.replace("\\", "/")
            name = PurePosixPath(normalized).name
            if PurePosixPath(normalized).suffix.lstrip(".").lower() not in extensions:
                continue
            if any(fnmatch.fnmatch(name, f"*{suffix}") for suffix in self.config.exclude_suffixes):
                continue
            if watch_paths and not any(
                normalized == watch or normalized.startswith(f"{watch}/") for watch in watch_paths
            ):
                continue
            filtered.append(normalized)
        return filtered

    def run_pass(self, force: bool = False) -> PassReport:
        """Run one evaluation pass from the commit marker to HEAD.

        Raises:
            LockError: If another pass holds the watcher lock
            StoreError: If the tracking store fails; the marker is not advanced
            GitError: If the changed-file list cannot be derived
        """
        if self.lock is None:
            return self._run_pass(force)

        with self.lock.acquire() as acquired:
            if not acquired:
                raise LockError(f"Another docdrift pass holds {self.lock.lock_file_path}")
            return self._run_pass(force)

    def _run_pass(self, force: bool) -> PassReport:
        head = self.git.current_commit_hash()
        if head is None:
            logger.info("No commits in repository, nothing to evaluate")
            return PassReport()

        marker = self.store.get_last_processed_commit(self.repository)
        if marker is None or (force and marker == head):
            # First run, or a forced rerun at HEAD: the files of the HEAD commit itself.
            files = self.filter_files(self.git.changed_files(None, head))
            logger.info(f"Evaluating {len(files)} file(s) changed in commit {head[:8]}")
            outcomes = self.evaluate_files(files, from_commit=None, force=force)

            self.store.set_last_processed_commit(head, self.repository)
            return PassReport(from_commit=marker, to_commit=head, outcomes=outcomes, marker_advanced=True)

        if marker == head:
            logger.debug(f"No new commits since {head[:8]}")
            return PassReport(from_commit=marker, to_commit=head)

        files = self.filter_files(self.git.changed_files(marker, head))
        logger.info(f"Evaluating {len(files)} file(s) changed in {marker[:8]}..{head[:8]}")

        outcomes = self.evaluate_files(files, from_commit=marker, force=force)

        self.store.set_last_processed_commit(head, self.repository)
        return PassReport(from_commit=marker, to_commit=head, outcomes=outcomes, marker_advanced=True)

    def evaluate_files(self, files: list[str], from_commit: str | None, force: bool = False) -> list[FileOutcome]:
        """Evaluate files, in parallel when ``max_workers`` allows, keeping input order."""
        if self.config.max_workers <= 1 or len(files) <= 1:
            return [self.evaluate_file(file, from_commit, force) for file in files]

        outcomes: dict[str, FileOutcome] = {}
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(self.evaluate_file, file, from_commit, force): file for file in files}
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()
        return [outcomes[file] for file in files]

    def evaluate_file(self, path: str, from_commit: str | None, force: bool = False) -> FileOutcome:
        """Drive one file to a terminal outcome.

        Per-file failures become an error outcome; ``StoreError`` propagates.
        """
        try:
            return self._evaluate_file(path, from_commit, force)
        except StoreError:
            raise
        except (DocdriftError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to evaluate {path}: {e}")
            return FileOutcome(path=path, status=OutcomeStatus.ERROR, detail=str(e))

    def _evaluate_file(self, path: str, from_commit: str | None, force: bool) -> FileOutcome:
        needs = self.store.needs_documentation(path)
        if needs.error:
            return FileOutcome(path=path, status=OutcomeStatus.ERROR, detail=needs.error)
        if not needs.needs_update and not force:
            return FileOutcome(path=path, status=OutcomeStatus.SKIPPED, detail="Unchanged since last documented")

        new_text = self._read(path)

        analysis = None
        if not force and self.config.intelligent_analysis:
            old_text = self.git.read_file_at(path, from_commit) if from_commit else None
            analysis = self._analyze(path, old_text, new_text, needs.current_hash)
            if not analysis.should_regenerate:
                return FileOutcome(
                    path=path,
                    status=OutcomeStatus.SKIPPED,
                    detail=_last_reason(analysis),
                    analysis=analysis,
                )

        markdown = self.generator.generate(path, new_text)
        doc_path = doc_path_for(path, self.config.docs_path, self.config.strip_prefixes)
        write_documentation(doc_path if doc_path.is_absolute() else self.project_root / doc_path, markdown)

        self.store.record_documentation(path, needs.current_hash, doc_path.as_posix())
        if self.config.track_documented_symbols:
            self._record_symbols(path, new_text, needs.current_hash)

        detail = "Forced regeneration" if analysis is None else _last_reason(analysis)
        return FileOutcome(
            path=path,
            status=OutcomeStatus.PROCESSED,
            detail=detail,
            doc_path=doc_path.as_posix(),
            analysis=analysis,
        )

    def _read(self, path: str) -> str:
        full_path = self.project_root / path
        try:
            return full_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ReadError(path, "File not found") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(path, str(e)) from e

    def _analyze(self, path: str, old_text: str | None, new_text: str, new_hash: str) -> SignificanceResult:
        old_hash = hash_text(old_text) if old_text else ""
        if self.config.cache_analyses:
            cached = self.store.get_cached_analysis(path, old_hash, new_hash)
            if cached is not None:
                logger.debug(f"Using cached analysis for {path}")
                return SignificanceResult(
                    score=cached.score, classification=cached.classification, recommendation=cached.recommendation
                )

        documented = None
        if self.config.track_documented_symbols:
            documented = [symbol.symbol_name for symbol in self.store.get_documented_symbols(path)]

        result = self.analyzer.analyze(path, old_text, new_text, documented).result
        if self.config.cache_analyses:
            self.store.save_analysis(path, old_hash, new_hash, result)
        return result

    def _record_symbols(self, path: str, source_text: str, file_hash: str) -> None:
        language = language_for_path(path)
        if language is None:
            return
        try:
            summary = parse(source_text, language)
        except ParseError as e:
            logger.debug(f"Not recording symbols for {path}: {e}")
            return
        self.store.record_documented_symbols(
            path, summary.symbol_names(public_only=not self.config.document_private_members), file_hash
        )

    def watch(
        self,
        stop_event: threading.Event,
        interval: float | None = None,
        on_report: Callable[[PassReport], None] | None = None,
        max_passes: int | None = None,
    ) -> int:
        """Poll until ``stop_event`` is set, checking it only between passes.

        Returns:
            Number of passes that ran
        """
        interval = self.config.watch_interval if interval is None else interval
        passes = 0
        while not stop_event.is_set():
            try:
                report = self.run_pass()
            except (StoreError, GitError, LockError) as e:
                logger.error(f"Evaluation pass aborted: {e}")
            else:
                passes += 1
                if on_report is not None:
                    on_report(report)

            if max_passes is not None and passes >= max_passes:
                break
            stop_event.wait(interval)
        return passes
