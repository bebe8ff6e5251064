"""Git Reviewers — suggest reviewers for the files changed on a branch.

Ranks historical committers of every changed file by their combined
commit count and reports the top candidates.
"""

__version__ = "0.1.0"
