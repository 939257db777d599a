from __future__ import annotations

from typing import Callable

from gitfund_core.repo_query import RepoQueryCapability

MergeCheck = Callable[[RepoQueryCapability, str, str], bool]


def merged_by_ancestry(query: RepoQueryCapability, source: str, target: str) -> bool:
    """
    source is merged into target iff source's tip is the merge-base of the two.

    Holds for fast-forward merges, which leave no merge commit behind.
    """
    return query.merge_base(source, target) == query.resolve(source)


def merged_by_message(query: RepoQueryCapability, source: str, target: str) -> bool:
    """
    Legacy heuristic: some merge commit on target names source in its message.

    Misses fast-forward merges.
    """
    return any(source in msg for msg in query.merge_log(target))


STRATEGIES: dict[str, MergeCheck] = {
    "ancestry": merged_by_ancestry,
    "merge_message": merged_by_message,
}


def get_strategy(name: str) -> MergeCheck:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown merge detection strategy: {name}") from None
