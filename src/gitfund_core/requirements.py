from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from gitfund_core.config import VerifierConfig
from gitfund_core.repo_query import RepoQueryCapability


@dataclass(frozen=True)
class CheckContext:
    """
    Facts shared by every requirement predicate during one run.

    root: the learner's repository directory
    query: version-control query capability bound to root
    primary_branch: resolved once up front ("main", else "master")
    """
    root: Path
    query: RepoQueryCapability
    primary_branch: str
    config: VerifierConfig


Predicate = Callable[[CheckContext], bool]


@dataclass(frozen=True)
class Requirement:
    """
    Named pass/fail predicate over repository or filesystem state.

    id: stable identifier, "<task>.<n>"
    description: what must hold
    failure_message: text surfaced in the report when the predicate is false
    """
    id: str
    description: str
    failure_message: str
    check: Predicate

    @property
    def task(self) -> int:
        return int(self.id.split(".", 1)[0])


@dataclass(frozen=True)
class TaskGroup:
    number: int
    title: str
    requirements: tuple[Requirement, ...]


@dataclass(frozen=True)
class CheckResult:
    requirement_id: str
    task: int
    passed: bool
    failure_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def task_passed(results: tuple[CheckResult, ...], task: int) -> bool:
    """AND of every result belonging to one task group."""
    return all(r.passed for r in results if r.task == task)
