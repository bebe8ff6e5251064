"""Exceptions raised by git-reviewers."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from git_reviewers.models import ReviewerReport


class ReviewerError(Exception):
    """Base class for everything the reviewer lookup raises."""


class ProviderError(ReviewerError):
    """The history backend failed (no repository, bad ref, git error)."""


class PartialDataError(ReviewerError):
    """Some changed files had no readable history.

    The best-effort report is kept on ``report`` so callers can still use
    the reviewers that were found.
    """

    def __init__(self, report: "ReviewerReport") -> None:
        self.report = report
        paths = ", ".join(f.path for f in report.failed_paths)
        super().__init__(f"History lookup failed for {len(report.failed_paths)} file(s): {paths}")

    @property
    def failed_paths(self) -> list[str]:
        return [f.path for f in self.report.failed_paths]
