"""
Display-name uniquifier.

Used for project names (scope: every project name in the store) and for
task names (scope: every task on the three lanes of one project).
"""
from typing import AbstractSet


def uniquify(candidate: str, existing: AbstractSet[str]) -> str:
    """Return candidate, or "candidate (n)" with the smallest free n >= 1."""
    if candidate not in existing:
        return candidate
    n = 1
    while f"{candidate} ({n})" in existing:
        n += 1
    return f"{candidate} ({n})"
