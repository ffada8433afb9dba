"""End-to-end analysis: acquire, read history, diff, scan, synthesize, clean up.

Only acquisition is fatal. Every later stage degrades to an empty or partial
result, so a successful call always yields a ``RepositoryContext``.
"""

from __future__ import annotations

import threading
import time

from .changes import changes_for_commits
from .config import AnalysisOptions
from .digest import synthesize
from .git import GitError
from .history import read_commits
from .hosting import GitHubClient, HostingError, parse_github_url
from .log import get_logger
from .metadata import detect_default_branch, read_description, read_readme
from .models import AnalysisResult, RepositoryReference
from .scanner import scan_tree
from .workspace import WorkingCopy, checked_out

logger = get_logger(__name__)


class AnalysisCancelled(Exception):
    """The caller's deadline passed or its cancel event was set."""


def _check(stage: str, deadline: float | None, cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled(f"Analysis cancelled before {stage}")
    if deadline is not None and time.monotonic() >= deadline:
        raise AnalysisCancelled(f"Deadline exceeded before {stage}")


def _remote_metadata(url: str, token: str | None):
    parsed = parse_github_url(url)
    if parsed is None:
        return None
    try:
        with GitHubClient(token=token) as client:
            return client.fetch_repository(*parsed)
    except HostingError as e:
        logger.warning("Remote metadata unavailable: %s", e)
        return None


def _snapshot(root, options: AnalysisOptions):
    tree = scan_tree(
        root,
        ignore_patterns=options.ignore_patterns,
        include_content=options.include_content,
        max_file_size_kb=options.max_file_size_kb,
        max_depth=options.max_depth,
    )
    return tree, read_readme(root), read_description(root)


def analyze_repository(
    reference: RepositoryReference | str,
    options: AnalysisOptions | None = None,
    deadline: float | None = None,
    cancel_event: threading.Event | None = None,
) -> AnalysisResult:
    """Analyze one repository and return its context.

    Args:
        reference: Repository URL/path, or a full ``RepositoryReference``.
        options: Analysis knobs; defaults apply when omitted.
        deadline: Absolute ``time.monotonic()`` value checked between stages.
        cancel_event: Checked between stages alongside ``deadline``.

    Raises:
        AcquisitionError: The repository could not be cloned or reused.
        AnalysisCancelled: The deadline passed or cancellation was requested.
    """
    if isinstance(reference, str):
        reference = RepositoryReference(url=reference)
    options = options or AnalysisOptions()

    copy = WorkingCopy(reference, workdir=options.workdir)
    try:
        _check("acquisition", deadline, cancel_event)
        repo = copy.obtain()

        _check("history", deadline, cancel_event)
        rev = reference.commit or "HEAD"
        default_branch = detect_default_branch(repo)
        commits = read_commits(repo, options.max_commits, rev=rev)
        logger.info("Read %d commits", len(commits))

        _check("change-set", deadline, cancel_event)
        changes = changes_for_commits(repo, commits)
        logger.info("Found %d changed files in the latest commit", len(changes))

        _check("tree scan", deadline, cancel_event)
        snapshot = None
        if reference.commit:
            try:
                with checked_out(repo, reference.commit):
                    snapshot = _snapshot(repo.path, options)
            except GitError as e:
                logger.warning("Could not check out %s, scanning current state: %s", reference.commit, e)
        if snapshot is None:
            snapshot = _snapshot(repo.path, options)
        tree, readme, description = snapshot

        _check("synthesis", deadline, cancel_event)
        if options.remote_metadata and (description is None or default_branch is None):
            remote = _remote_metadata(reference.url, options.github_token)
            if remote is not None:
                description = description or remote.description
                default_branch = default_branch or remote.default_branch

        context = synthesize(
            reference.url,
            copy.name,
            commits,
            changes,
            tree,
            readme=readme,
            description=description,
            default_branch=default_branch,
            commit_limit=options.digest_commit_limit,
            max_diff_chars=options.max_diff_chars,
        )
    finally:
        warning = None if options.keep_clone else copy.release()

    result = AnalysisResult(context=context)
    if warning:
        result.warnings.append(warning)
    return result
