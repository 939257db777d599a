from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

MERGE_STRATEGIES = ("ancestry", "merge_message")


def default_target() -> Path:
    return Path.home() / "Desktop" / "git-fundamentals-project"


@dataclass(frozen=True)
class RemoteConfig:
    enabled: bool = False
    name: str = "origin"
    tag: str = "v1.0"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class VerifierConfig:
    """
    Knobs for the checklist.

    min_commits: commit-count threshold; lab variants disagree (4 vs 5), 5 is the default
    merge_detection: "ancestry" (robust) or "merge_message" (legacy heuristic)
    """
    expected_name: str = "TestUser"
    expected_email: str = "testuser@example.com"
    ignore_patterns: tuple[str, ...] = ("*.tmp", "*.log", ".DS_Store")
    min_commits: int = 5
    merge_detection: str = "ancestry"
    git_timeout_seconds: float = 10.0
    default_target: Path = field(default_factory=default_target)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    def __post_init__(self) -> None:
        if self.min_commits < 1:
            raise ValueError(f"min_commits must be >= 1, got {self.min_commits}")
        if self.merge_detection not in MERGE_STRATEGIES:
            raise ValueError(
                f"merge_detection must be one of {MERGE_STRATEGIES}, got '{self.merge_detection}'"
            )
        if self.git_timeout_seconds <= 0 or self.remote.timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")
