"""Pytest configuration and fixtures."""

import threading
import time

import pytest

from git_reviewers.errors import ProviderError
from git_reviewers.models import ReviewerOptions, Stat


class FakeProvider:
    """In-memory history provider.

    ``history`` maps path -> [(reviewer, count), ...]. Lookups can be
    slowed down (``delays``), made to fail (``errors``) or held until an
    event is set (``blocks``).
    """

    def __init__(
        self,
        history=None,
        changed=None,
        delays=None,
        errors=None,
        blocks=None,
        barrier=None,
    ):
        self.history = history or {}
        self.changed = changed or []
        self.delays = delays or {}
        self.errors = errors or {}
        self.blocks = blocks or {}
        self.barrier = barrier
        self.calls = []
        self.diffed = None
        self._lock = threading.Lock()

    def diff_changed_paths(self, base, head):
        self.diffed = (base, head)
        return list(self.changed)

    def authorship_counts(self, path, since):
        with self._lock:
            self.calls.append((path, since))
        if self.barrier is not None:
            self.barrier.wait()
        if path in self.blocks:
            self.blocks[path].wait(timeout=5)
        if path in self.delays:
            time.sleep(self.delays[path])
        if path in self.errors:
            raise ProviderError(self.errors[path])
        return [Stat(reviewer=r, count=c) for r, c in self.history.get(path, [])]

    def resolve_since_bound(self, default_date):
        return "abc123"

    def timestamp_of(self, ref):
        return "1700000000"


@pytest.fixture
def options():
    return ReviewerOptions(since="2015-01-01")


@pytest.fixture
def sample_history():
    """Three files; the third has no recent history."""
    return {
        "src/a.go": [("alice <alice@x.com>", 2)],
        "src/b.go": [("bob <bob@x.com>", 1), ("alice <alice@x.com>", 1)],
        "src/c.go": [],
    }


@pytest.fixture
def fake_provider(sample_history):
    return FakeProvider(history=sample_history, changed=list(sample_history))


@pytest.fixture
def sample_shortlog():
    """Output of `git shortlog -sne` with some noise mixed in."""
    return """\
    12\tJane Doe <jane@x.com>
     7\tJohn Roe <john@x.com>

not a count line
     1\tBot <bot@ci.local>
"""
