"""Data models for git-reviewers."""

from datetime import date, timedelta
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from git_reviewers.errors import PartialDataError


def default_since() -> str:
    """One year back from today, as an ISO date ``git log --since`` accepts."""
    return (date.today() - timedelta(days=365)).isoformat()


# ── Authorship stats ──────────────────────────────────────────────────────

class Stat(BaseModel):
    """One contributor's commit count, as reported by ``git shortlog``."""

    reviewer: str
    count: int = Field(default=0, ge=0)

    def __str__(self) -> str:
        return f"  {self.count}\t{self.reviewer}"


class Stats(BaseModel):
    """Commit counts keyed by reviewer identity.

    Repeated observations of the same reviewer are summed into one entry,
    so totals do not depend on the order results are accumulated in.
    Entries keep their first-seen position, which breaks ranking ties.
    """

    stats: list[Stat] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.stats)

    def add_to_set(self, stat: Stat) -> "Stats":
        for existing in self.stats:
            if existing.reviewer == stat.reviewer:
                existing.count += stat.count
                return self
        self.stats.append(stat.model_copy())
        return self

    def rank(self) -> list[Stat]:
        """Entries by descending count; ``sorted`` is stable so ties keep insertion order."""
        return sorted(self.stats, key=lambda s: -s.count)

    def top(self, n: int) -> list[Stat]:
        if n <= 0:
            return []
        return self.rank()[:n]

    def totals(self) -> dict[str, int]:
        return {s.reviewer: s.count for s in self.stats}


# ── Options ───────────────────────────────────────────────────────────────

MergeOrder = Literal["arrival", "input"]


class ReviewerOptions(BaseModel):
    """Options for one reviewer lookup. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    show_files: bool = False
    verbose: bool = False
    since: str = Field(default_factory=default_since)
    ignored_extensions: list[str] = Field(default_factory=list)
    only_extensions: list[str] = Field(default_factory=list)
    ignored_paths: list[str] = Field(default_factory=list)
    only_paths: list[str] = Field(default_factory=list)
    base: str = "master"
    head: str = "HEAD"
    max_reviewers: int = Field(default=3, ge=0)
    merge_order: MergeOrder = "arrival"
    timeout: Optional[float] = Field(default=None, gt=0)
    max_workers: Optional[int] = Field(default=None, ge=1)


# ── Results ───────────────────────────────────────────────────────────────

class PathFailure(BaseModel):
    """A changed file whose history could not be read."""

    path: str
    error: str


class ReviewerReport(BaseModel):
    """Ranked reviewers plus the files whose history lookup failed."""

    reviewers: list[Stat] = Field(default_factory=list)
    failed_paths: list[PathFailure] = Field(default_factory=list)
    timed_out: bool = False

    @property
    def lines(self) -> list[str]:
        """Display lines, one per reviewer."""
        return [str(s) for s in self.reviewers]

    @property
    def ok(self) -> bool:
        return not self.failed_paths

    def raise_for_failures(self) -> None:
        """Raise PartialDataError if any path failed."""
        if self.failed_paths:
            raise PartialDataError(self)
