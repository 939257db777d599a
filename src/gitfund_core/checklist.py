from __future__ import annotations

from gitfund_core.filesystem import contains_all_patterns, is_non_empty_file
from gitfund_core.merge_detection import get_strategy
from gitfund_core.requirements import CheckContext, Requirement, TaskGroup

# =============================================================================
# GIT FUNDAMENTALS CHECKLIST
# =============================================================================
# Each task group mirrors one task of the lab. Requirements are plain data:
# an id, a description, the message a learner sees, and a predicate over
# CheckContext. Group order and requirement order are the report order.
#
# Predicates only read state. They may raise (RepoQueryError, OSError, ...);
# the verifier turns that into a failed result for that requirement alone.
# =============================================================================


def _non_empty(req_id: str, relpath: str, task: int) -> Requirement:
    return Requirement(
        id=req_id,
        description=f"{relpath} exists and is not empty",
        failure_message=f"Task {task}: {relpath} is missing or empty.",
        check=lambda ctx: is_non_empty_file(ctx.root / relpath),
    )


def _branch(req_id: str, name: str, task: int) -> Requirement:
    return Requirement(
        id=req_id,
        description=f"branch '{name}' exists",
        failure_message=f"Task {task}: branch '{name}' does not exist.",
        check=lambda ctx: ctx.query.branch_exists(name),
    )


def _tracked(req_id: str, paths: tuple[str, ...], ref: str | None, task: int) -> Requirement:
    """ref=None means the primary branch, resolved at run time."""
    where = f"branch '{ref}'" if ref else "the primary branch"

    def check(ctx: CheckContext) -> bool:
        tracked = set(ctx.query.tracked_files(ref or ctx.primary_branch))
        return all(p in tracked for p in paths)

    return Requirement(
        id=req_id,
        description=f"{', '.join(paths)} committed on {where}",
        failure_message=f"Task {task}: {', '.join(paths)} not committed on {where}.",
        check=check,
    )


def _identity_name(ctx: CheckContext) -> bool:
    name, _ = ctx.query.identity()
    return name == ctx.config.expected_name


def _identity_email(ctx: CheckContext) -> bool:
    _, email = ctx.query.identity()
    return email == ctx.config.expected_email


def _gitignore_patterns(ctx: CheckContext) -> bool:
    return contains_all_patterns(ctx.root / ".gitignore", ctx.config.ignore_patterns)


def _has_commit(ctx: CheckContext) -> bool:
    return ctx.query.commit_count() >= 1


def _enough_commits(ctx: CheckContext) -> bool:
    return ctx.query.commit_count() >= ctx.config.min_commits


def _bugfix_merged(ctx: CheckContext) -> bool:
    merged = get_strategy(ctx.config.merge_detection)
    return merged(ctx.query, "bugfix", ctx.primary_branch)


def _clean_tree(ctx: CheckContext) -> bool:
    return not ctx.query.status_summary().strip()


def _remote_configured(ctx: CheckContext) -> bool:
    return ctx.config.remote.name in ctx.query.remotes()


def _primary_on_remote(ctx: CheckContext) -> bool:
    return f"{ctx.config.remote.name}/{ctx.primary_branch}" in ctx.query.remote_branches()


def _tag_exists(ctx: CheckContext) -> bool:
    return ctx.config.remote.tag in ctx.query.tags()


def _tag_pushed(ctx: CheckContext) -> bool:
    return ctx.query.tag_on_remote(ctx.config.remote.name, ctx.config.remote.tag)


SETUP = TaskGroup(
    number=1,
    title="Repository setup and configuration",
    requirements=(
        Requirement(
            id="1.1",
            description="user.name matches the expected name",
            failure_message="Task 1: user.name is not configured as expected.",
            check=_identity_name,
        ),
        Requirement(
            id="1.2",
            description="user.email matches the expected email",
            failure_message="Task 1: user.email is not configured as expected.",
            check=_identity_email,
        ),
        _non_empty("1.3", ".gitignore", 1),
        Requirement(
            id="1.4",
            description=".gitignore lists every required pattern",
            failure_message="Task 1: .gitignore does not contain all required patterns.",
            check=_gitignore_patterns,
        ),
        _non_empty("1.5", "README.md", 1),
        _non_empty("1.6", "git-setup-log.txt", 1),
        Requirement(
            id="1.7",
            description="repository has at least one commit",
            failure_message="Task 1: repository has no commits.",
            check=_has_commit,
        ),
        _tracked("1.8", ("README.md", ".gitignore"), None, 1),
    ),
)

FILE_STATES = TaskGroup(
    number=2,
    title="Working with Git states",
    requirements=(
        _non_empty("2.1", "main.java", 2),
        _non_empty("2.2", "utils.java", 2),
        _non_empty("2.3", "config.json", 2),
        _tracked("2.4", ("main.java", "utils.java", "config.json"), None, 2),
        _non_empty("2.5", "git-states-explanation.txt", 2),
    ),
)

HISTORY = TaskGroup(
    number=3,
    title="History and log management",
    requirements=(
        Requirement(
            id="3.1",
            description="enough commits reachable from HEAD",
            failure_message="Task 3: not enough commits in the history.",
            check=_enough_commits,
        ),
        _non_empty("3.2", "commit-history.txt", 3),
        _non_empty("3.3", "git-log-analysis.txt", 3),
    ),
)

BRANCHING = TaskGroup(
    number=4,
    title="Basic branching",
    requirements=(
        _branch("4.1", "feature-development", 4),
        _tracked("4.2", ("feature.java",), "feature-development", 4),
        _branch("4.3", "bugfix", 4),
        Requirement(
            id="4.4",
            description="bugfix is merged into the primary branch",
            failure_message="Task 4: branch 'bugfix' has not been merged into the primary branch.",
            check=_bugfix_merged,
        ),
        _non_empty("4.5", "branching-workflow.txt", 4),
    ),
)

BEST_PRACTICES = TaskGroup(
    number=5,
    title="Best practices and workflow",
    requirements=(
        _branch("5.1", "development", 5),
        _non_empty("5.2", "docs/main.md", 5),
        _non_empty("5.3", "docs/utils.md", 5),
        _tracked("5.4", ("docs/utils.md",), "development", 5),
        _non_empty("5.5", "git-workflow-guide.txt", 5),
        _non_empty("5.6", "git-commands-summary.txt", 5),
        Requirement(
            id="5.7",
            description="working tree is clean",
            failure_message="Task 5: working tree has uncommitted changes.",
            check=_clean_tree,
        ),
    ),
)

REMOTE = TaskGroup(
    number=6,
    title="Remote repository",
    requirements=(
        Requirement(
            id="6.1",
            description="remote is configured",
            failure_message="Task 6: remote is not configured.",
            check=_remote_configured,
        ),
        Requirement(
            id="6.2",
            description="primary branch is pushed to the remote",
            failure_message="Task 6: primary branch has not been pushed to the remote.",
            check=_primary_on_remote,
        ),
        Requirement(
            id="6.3",
            description="release tag exists locally",
            failure_message="Task 6: release tag does not exist.",
            check=_tag_exists,
        ),
        Requirement(
            id="6.4",
            description="release tag is pushed to the remote",
            failure_message="Task 6: release tag has not been pushed to the remote.",
            check=_tag_pushed,
        ),
    ),
)

CORE_GROUPS: tuple[TaskGroup, ...] = (SETUP, FILE_STATES, HISTORY, BRANCHING, BEST_PRACTICES)


def task_groups(*, include_remote: bool = False) -> tuple[TaskGroup, ...]:
    return CORE_GROUPS + (REMOTE,) if include_remote else CORE_GROUPS


def requirement_ids(*, include_remote: bool = False) -> list[str]:
    return [r.id for g in task_groups(include_remote=include_remote) for r in g.requirements]
