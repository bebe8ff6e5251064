"""CLI entry point for git-reviewers."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from git_reviewers.config import load_options, split_list
from git_reviewers.errors import ReviewerError
from git_reviewers.finder import ReviewerFinder
from git_reviewers.history import GitHistoryProvider


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="git-reviewers",
        description="Suggest reviewers for the files changed on the current branch.",
    )
    p.add_argument("-C", dest="repo", type=Path, default=Path("."), help="Run as if started in this directory.")
    p.add_argument("--since", type=str, default=None, help="Only count commits after this date (default: one year ago).")
    p.add_argument("--base", type=str, default=None, help="Reference to compare against (default: master).")
    p.add_argument("--head", type=str, default=None, help="Reference with the changes (default: HEAD).")
    p.add_argument("--ignore-ext", action="append", default=None, metavar="EXT", help="Skip files with this extension. Repeatable or comma separated.")
    p.add_argument("--only-ext", action="append", default=None, metavar="EXT", help="Only consider files with this extension. Repeatable or comma separated.")
    p.add_argument("--ignore-path", action="append", default=None, metavar="PREFIX", help="Skip files under this path prefix. Repeatable or comma separated.")
    p.add_argument("--only-path", action="append", default=None, metavar="PREFIX", help="Only consider files under this path prefix. Repeatable or comma separated.")
    p.add_argument("--count", type=int, default=None, help="Number of reviewers to show (default: 3).")
    p.add_argument("--deterministic", action="store_true", help="Merge file histories in diff order so ties rank the same every run.")
    p.add_argument("--timeout", type=float, default=None, help="Give up waiting on history lookups after this many seconds.")
    p.add_argument("--jobs", type=int, default=None, help="Run at most this many git lookups at once (default: one per file).")
    p.add_argument("--strict", action="store_true", help="Fail if any file's history could not be read.")
    p.add_argument("--show-files", action="store_true", help="List the files being considered.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log git commands and per-file results.")
    return p


def _flatten(values: Optional[list[str]]) -> Optional[list[str]]:
    if values is None:
        return None
    return [item for value in values for item in split_list(value)]


def main(argv: Optional[list[str]] = None) -> int:
    from dotenv import load_dotenv

    load_dotenv()  # GIT_REVIEWERS_* defaults

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = load_options({
            "since": args.since,
            "base": args.base,
            "head": args.head,
            "ignored_extensions": _flatten(args.ignore_ext),
            "only_extensions": _flatten(args.only_ext),
            "ignored_paths": _flatten(args.ignore_path),
            "only_paths": _flatten(args.only_path),
            "max_reviewers": args.count,
            "merge_order": "input" if args.deterministic else None,
            "timeout": args.timeout,
            "max_workers": args.jobs,
            "show_files": args.show_files or None,
            "verbose": args.verbose or None,
        })
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        print(f"error: {e}", file=sys.stderr)
        return 2

    status = (lambda msg: print(msg, file=sys.stderr)) if options.verbose else None
    finder = ReviewerFinder(options, GitHistoryProvider(args.repo), on_status=status)

    try:
        files = finder.find_files()
        if options.show_files:
            print("Files:")
            for path in files:
                print(f"  {path}")
            print("")
        report = finder.find_reviewers_sync(files)
        for failure in report.failed_paths:
            print(f"warning: no history for {failure.path}: {failure.error}", file=sys.stderr)
        if options.show_files:
            print("Reviewers:")
        for line in report.lines:
            print(line)
        if args.strict:
            report.raise_for_failures()
    except ReviewerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
