from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from gitfund_core.checklist import task_groups
from gitfund_core.config import VerifierConfig
from gitfund_core.filesystem import is_repository
from gitfund_core.repo_query import GitCliQuery, RepoQueryCapability, RepoQueryError
from gitfund_core.requirements import CheckContext, CheckResult, Requirement, TaskGroup

logger = logging.getLogger(__name__)

SUCCESS_INFO = "Congratulations! All Git Fundamentals tasks are complete."


@dataclass(frozen=True)
class VerificationReport:
    """
    What the caller gets back from one verification run.

    success: AND of every evaluated requirement
    info: SUCCESS_INFO, or every failure message in evaluation order, one per line
    """
    success: bool
    info: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def resolve_primary_branch(query: RepoQueryCapability) -> str:
    try:
        return "main" if query.branch_exists("main") else "master"
    except RepoQueryError as e:
        # branch-dependent checks will report their own failures
        logger.warning("could not list branches: %s", e)
        return "master"


def _evaluate(requirement: Requirement, ctx: CheckContext) -> CheckResult:
    try:
        passed = bool(requirement.check(ctx))
        message = None if passed else requirement.failure_message
    except RepoQueryError as e:
        logger.warning("requirement %s: query failed: %s", requirement.id, e)
        passed = False
        message = f"{requirement.failure_message} (query failed: {e.detail})"
    except Exception as e:
        logger.warning("requirement %s: check raised %s: %s", requirement.id, type(e).__name__, e)
        passed = False
        message = f"{requirement.failure_message} (check error: {' '.join(str(e).split())})"
    return CheckResult(
        requirement_id=requirement.id,
        task=requirement.task,
        passed=passed,
        failure_message=message,
    )


def run_checklist(
    root: Path,
    query: RepoQueryCapability,
    config: VerifierConfig,
    groups: Optional[Iterable[TaskGroup]] = None,
) -> tuple[CheckResult, ...]:
    """
    Evaluate every requirement of every group, in order.

    A failing group does not stop later groups.
    """
    primary = resolve_primary_branch(query)
    ctx = CheckContext(root=root, query=query, primary_branch=primary, config=config)
    if groups is None:
        groups = task_groups(include_remote=config.remote.enabled)

    results = []
    for group in groups:
        for requirement in group.requirements:
            results.append(_evaluate(requirement, ctx))
    return tuple(results)


def build_report(results: Iterable[CheckResult]) -> VerificationReport:
    failures = [r.failure_message for r in results if not r.passed]
    if failures:
        return VerificationReport(success=False, info="\n".join(m or "" for m in failures))
    return VerificationReport(success=True, info=SUCCESS_INFO)


def check_preconditions(root: Path) -> Optional[VerificationReport]:
    """The only two fatal gates. Returns a single-message report, or None to proceed."""
    if not root.is_dir():
        logger.info("target %s is not a directory", root)
        return VerificationReport(success=False, info=f"Fatal: directory not found: {root}")
    if not is_repository(root):
        logger.info("target %s has no .git directory", root)
        return VerificationReport(success=False, info=f"Fatal: no Git repository found in {root}")
    return None


def _git_query(root: Path, config: VerifierConfig) -> GitCliQuery:
    return GitCliQuery(
        root,
        timeout=config.git_timeout_seconds,
        remote_timeout=config.remote.timeout_seconds,
    )


def open_query(target: Path, config: Optional[VerifierConfig] = None) -> Optional[GitCliQuery]:
    """GitCliQuery for target, or None when a fatal gate fails."""
    root = Path(target).expanduser()
    if check_preconditions(root) is not None:
        return None
    return _git_query(root, config or VerifierConfig())


def verify_with_results(
    target: Path,
    query: Optional[RepoQueryCapability] = None,
    config: Optional[VerifierConfig] = None,
) -> tuple[VerificationReport, tuple[CheckResult, ...]]:
    config = config or VerifierConfig()
    root = Path(target).expanduser()

    fatal = check_preconditions(root)
    if fatal is not None:
        return fatal, ()

    if query is None:
        query = _git_query(root, config)

    results = run_checklist(root, query, config)
    return build_report(results), results


def verify(
    target: Path,
    query: Optional[RepoQueryCapability] = None,
    config: Optional[VerifierConfig] = None,
) -> VerificationReport:
    report, _ = verify_with_results(target, query, config)
    return report

