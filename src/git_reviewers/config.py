"""Option defaults from the environment (and a ``.env`` file)."""

import os
from typing import Any, Mapping, Optional

from git_reviewers.models import ReviewerOptions

ENV_PREFIX = "GIT_REVIEWERS_"

_LIST_FIELDS = ("ignored_extensions", "only_extensions", "ignored_paths", "only_paths")
# Passed through as strings; pydantic coerces max_workers to an int.
_SCALAR_FIELDS = ("since", "base", "head", "max_workers")


def split_list(value: Optional[str]) -> list[str]:
    """``"a, b,,c"`` → ``["a", "b", "c"]``."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def env_defaults(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Option values set through ``GIT_REVIEWERS_*`` variables."""
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name in _SCALAR_FIELDS:
        value = environ.get(ENV_PREFIX + name.upper(), "").strip()
        if value:
            values[name] = value
    for name in _LIST_FIELDS:
        items = split_list(environ.get(ENV_PREFIX + name.upper()))
        if items:
            values[name] = items
    return values


def load_options(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ReviewerOptions:
    """Environment defaults with ``overrides`` on top; ``None`` overrides are ignored."""
    values = env_defaults(environ)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    return ReviewerOptions(**values)
