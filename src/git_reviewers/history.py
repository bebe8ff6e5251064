"""Commit history lookups against a local git checkout."""

import logging
import re
import threading
from pathlib import Path
from typing import Optional, Protocol, Union

import git  # GitPython

from git_reviewers.errors import ProviderError
from git_reviewers.models import Stat

logger = logging.getLogger(__name__)

# Commit count followed by "Name <email>", as printed by `git shortlog -sne`.
_COUNT_RE = re.compile(r"(\d+)\s*(.*)$")


class HistoryProvider(Protocol):
    """What the reviewer lookup needs from version control."""

    def diff_changed_paths(self, base: str, head: str) -> list[str]:
        ...

    def authorship_counts(self, path: str, since: str) -> list[Stat]:
        ...

    def resolve_since_bound(self, default_date: str) -> str:
        ...

    def timestamp_of(self, ref: str) -> str:
        ...


def parse_shortlog(text: str) -> list[Stat]:
    """Parse ``git shortlog -sne`` output, skipping lines that don't fit."""
    stats: list[Stat] = []
    for line in text.splitlines():
        match = _COUNT_RE.search(line.strip())
        if not match:
            continue
        stats.append(Stat(reviewer=match.group(2), count=int(match.group(1))))
    return stats


def split_lines(text: str) -> list[str]:
    """Non-blank, stripped lines of command output."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class GitHistoryProvider:
    """History provider backed by the git repository at ``path``.

    The repository is opened on first use, searching parent directories
    the way ``git`` itself does.
    """

    def __init__(self, path: Union[str, Path] = ".") -> None:
        self.path = Path(path)
        self._repo: Optional[git.Repo] = None
        self._bounds: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            try:
                self._repo = git.Repo(self.path, search_parent_directories=True)
            except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
                raise ProviderError(f"Not a git repository: {self.path}") from e
        return self._repo

    def _git(self, command: str, *args: str) -> str:
        logger.debug("git %s %s", command, " ".join(args))
        try:
            return getattr(self.repo.git, command)(*args)
        except git.exc.CommandError as e:
            # GitCommandError and GitCommandNotFound (no git binary) both land here.
            stderr = (e.stderr or "").strip()
            raise ProviderError(f"git {command} failed: {stderr or e}") from e

    # ── Changed files ─────────────────────────────────────────────────────

    def diff_changed_paths(self, base: str, head: str) -> list[str]:
        """Paths that differ between ``base`` and ``head``."""
        return split_lines(self._git("diff", base, head, "--name-only"))

    # ── Authorship ────────────────────────────────────────────────────────

    def resolve_since_bound(self, default_date: str) -> str:
        """Oldest commit at or after ``default_date``, or HEAD if there is none.

        Cached per date; every per-file query in a run asks for the same one.
        """
        with self._lock:
            cached = self._bounds.get(default_date)
            if cached is not None:
                return cached
            lines = split_lines(
                self._git("log", "--since", default_date, "--reverse", "--format=%H")
            )
            bound = lines[0] if lines else "HEAD"
            self._bounds[default_date] = bound
            return bound

    def authorship_counts(self, path: str, since: str) -> list[Stat]:
        """Per-author non-merge commit counts touching ``path`` since ``since``."""
        bound = self.resolve_since_bound(since)
        out = self._git("shortlog", "-sne", "--no-merges", f"{bound}..HEAD", "--", path)
        return parse_shortlog(out)

    # ── Misc ──────────────────────────────────────────────────────────────

    def timestamp_of(self, ref: str) -> str:
        """Commit time of ``ref`` as a unix timestamp string."""
        lines = split_lines(self._git("show", "-s", "--format=%ct", ref))
        if not lines:
            raise ProviderError(f"No commit found for {ref}")
        return lines[0].strip('"')
