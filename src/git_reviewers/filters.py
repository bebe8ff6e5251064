"""Which changed files count towards reviewer attribution.

Generated, vendored and config-like files say little about who knows the
code, so they can be excluded by extension or by path prefix.
"""

from git_reviewers.models import ReviewerOptions

# Filetypes more often machine-edited than written by hand.
DEFAULT_IGNORED_EXTENSIONS = ["svg", "json", "nock", "xml"]


def consider_ext(path: str, options: ReviewerOptions) -> bool:
    """Extension check: an allow-list wins outright, otherwise the ignore-list applies."""
    ignored = [*DEFAULT_IGNORED_EXTENSIONS, *options.ignored_extensions]
    allowed = options.only_extensions

    if not allowed and not ignored:
        return True
    if allowed:
        return any(path.endswith(ext) for ext in allowed)
    return not any(path.endswith(ext) for ext in ignored)


def _has_strict_prefix(path: str, prefix: str) -> bool:
    # Stripping the prefix must leave something behind.
    return bool(prefix) and path.startswith(prefix) and len(path) > len(prefix)


def consider_path(path: str, options: ReviewerOptions) -> bool:
    """Path-prefix check: ``only_paths`` wins outright, otherwise ``ignored_paths`` applies."""
    if not options.only_paths and not options.ignored_paths:
        return True
    if options.only_paths:
        return any(_has_strict_prefix(path, p) for p in options.only_paths)
    return not any(_has_strict_prefix(path, p) for p in options.ignored_paths)


def should_consider(path: str, options: ReviewerOptions) -> bool:
    return consider_ext(path, options) and consider_path(path, options)
