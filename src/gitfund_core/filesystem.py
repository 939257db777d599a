from __future__ import annotations

from pathlib import Path
from typing import Iterable


def is_non_empty_file(path: Path) -> bool:
    """True iff path is a regular file of at least one byte. Missing and empty are the same failure."""
    return path.is_file() and path.stat().st_size > 0


def contains_all_patterns(path: Path, patterns: Iterable[str]) -> bool:
    """
    Every pattern must occur as a substring of at least one line.

    A missing or empty file fails. The file is decoded leniently so stray
    bytes in a learner's file cannot abort the check.
    """
    if not is_non_empty_file(path):
        return False
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    return all(any(p in line for line in lines) for p in patterns)


def is_repository(root: Path) -> bool:
    return (root / ".git").is_dir()
