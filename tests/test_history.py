"""Tests for the git history provider."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import git as gitmodule
import pytest

from git_reviewers.errors import ProviderError
from git_reviewers.finder import ReviewerFinder
from git_reviewers.history import GitHistoryProvider, parse_shortlog, split_lines


@pytest.fixture
def mock_repo():
    with patch("git_reviewers.history.git.Repo") as repo_cls:
        repo = MagicMock()
        repo_cls.return_value = repo
        yield repo


class TestParseShortlog:
    def test_parses_counts_and_identities(self, sample_shortlog):
        stats = parse_shortlog(sample_shortlog)
        assert [(s.reviewer, s.count) for s in stats] == [
            ("Jane Doe <jane@x.com>", 12),
            ("John Roe <john@x.com>", 7),
            ("Bot <bot@ci.local>", 1),
        ]

    def test_skips_malformed_lines(self):
        assert parse_shortlog("no digits here\n\n   \n") == []

    def test_empty_output(self):
        assert parse_shortlog("") == []

    def test_count_without_identity(self):
        stats = parse_shortlog("  3\n")
        assert stats[0].count == 3
        assert stats[0].reviewer == ""


class TestSplitLines:
    def test_strips_and_drops_blanks(self):
        assert split_lines("  a.go \n\n b.py\n   \n") == ["a.go", "b.py"]


class TestGitHistoryProvider:
    def test_repo_opened_lazily(self):
        with patch("git_reviewers.history.git.Repo") as repo_cls:
            provider = GitHistoryProvider("/some/where")
            repo_cls.assert_not_called()
            provider.repo
            provider.repo
            repo_cls.assert_called_once()
            assert repo_cls.call_args.kwargs["search_parent_directories"] is True

    def test_not_a_repository(self):
        with patch("git_reviewers.history.git.Repo") as repo_cls:
            repo_cls.side_effect = gitmodule.exc.InvalidGitRepositoryError("/tmp/x")
            provider = GitHistoryProvider("/tmp/x")
            with pytest.raises(ProviderError, match="Not a git repository"):
                provider.diff_changed_paths("master", "HEAD")

    def test_missing_path(self):
        with patch("git_reviewers.history.git.Repo") as repo_cls:
            repo_cls.side_effect = gitmodule.exc.NoSuchPathError("/nope")
            with pytest.raises(ProviderError):
                GitHistoryProvider("/nope").timestamp_of("HEAD")

    def test_diff_changed_paths(self, mock_repo):
        mock_repo.git.diff.return_value = "src/a.go\n  src/b.go  \n\n"
        paths = GitHistoryProvider().diff_changed_paths("main", "HEAD")
        assert paths == ["src/a.go", "src/b.go"]
        mock_repo.git.diff.assert_called_once_with("main", "HEAD", "--name-only")

    def test_git_error_becomes_provider_error(self, mock_repo):
        mock_repo.git.diff.side_effect = gitmodule.exc.GitCommandError(
            ["git", "diff"], 128, stderr="fatal: bad revision 'master'"
        )
        with pytest.raises(ProviderError, match="bad revision") as exc:
            GitHistoryProvider().diff_changed_paths("master", "HEAD")
        assert isinstance(exc.value.__cause__, gitmodule.exc.GitCommandError)

    def test_missing_git_binary_becomes_provider_error(self, mock_repo):
        mock_repo.git.diff.side_effect = gitmodule.exc.GitCommandNotFound("git", "not found")
        with pytest.raises(ProviderError, match="git diff failed") as exc:
            ReviewerFinder(provider=GitHistoryProvider()).find_files()
        assert isinstance(exc.value.__cause__, gitmodule.exc.GitCommandNotFound)

    def test_resolve_since_bound(self, mock_repo):
        mock_repo.git.log.return_value = "oldest\nmiddle\nnewest\n"
        bound = GitHistoryProvider().resolve_since_bound("2015-01-01")
        assert bound == "oldest"
        mock_repo.git.log.assert_called_once_with(
            "--since", "2015-01-01", "--reverse", "--format=%H"
        )

    def test_resolve_since_bound_no_commits(self, mock_repo):
        mock_repo.git.log.return_value = ""
        assert GitHistoryProvider().resolve_since_bound("2099-01-01") == "HEAD"

    def test_resolve_since_bound_cached(self, mock_repo):
        mock_repo.git.log.return_value = "abc\n"
        provider = GitHistoryProvider()
        with ThreadPoolExecutor(max_workers=4) as pool:
            bounds = list(pool.map(provider.resolve_since_bound, ["2015-01-01"] * 8))
        assert bounds == ["abc"] * 8
        mock_repo.git.log.assert_called_once()

    def test_authorship_counts(self, mock_repo, sample_shortlog):
        mock_repo.git.log.return_value = "abc123\ndef456\n"
        mock_repo.git.shortlog.return_value = sample_shortlog
        stats = GitHistoryProvider().authorship_counts("src/a.go", "2015-01-01")
        assert stats[0].reviewer == "Jane Doe <jane@x.com>"
        assert stats[0].count == 12
        mock_repo.git.shortlog.assert_called_once_with(
            "-sne", "--no-merges", "abc123..HEAD", "--", "src/a.go"
        )

    def test_timestamp_of(self, mock_repo):
        mock_repo.git.show.return_value = '"1700000000"\n'
        assert GitHistoryProvider().timestamp_of("master") == "1700000000"
        mock_repo.git.show.assert_called_once_with("-s", "--format=%ct", "master")

    def test_timestamp_of_empty(self, mock_repo):
        mock_repo.git.show.return_value = ""
        with pytest.raises(ProviderError):
            GitHistoryProvider().timestamp_of("master")
