from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional

import pytest

from gitfund_core.repo_query import RepoQueryError

LAB_FILES = {
    ".gitignore": "*.tmp\n*.log\n.DS_Store\n",
    "README.md": "# Git Fundamentals Project\n",
    "git-setup-log.txt": "$ git init\n",
    "main.java": "public class Main {}\n",
    "utils.java": "public class Utils {}\n",
    "config.json": '{ "setting": "enabled" }\n',
    "git-states-explanation.txt": "Working directory, staging area, repository.\n",
    "commit-history.txt": "commit abc\n",
    "git-log-analysis.txt": "git log --oneline\n",
    "branching-workflow.txt": "Create a branch, switch, commit, merge.\n",
    "docs/main.md": "Documentation for main.java\n",
    "docs/utils.md": "Documentation for utils.java\n",
    "git-workflow-guide.txt": "Use imperative mood.\n",
    "git-commands-summary.txt": "Summary.\n",
}

PRIMARY_FILES = [".gitignore", "README.md", "git-setup-log.txt", "main.java", "utils.java", "config.json"]


class FakeRepoQuery:
    """
    In-memory repository that satisfies every requirement unless told otherwise.

    Every call is recorded in .calls; method names in .failing raise RepoQueryError.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.failing: set[str] = set()
        self.name: Optional[str] = "TestUser"
        self.email: Optional[str] = "testuser@example.com"
        self.branch_list = ["main", "feature-development", "bugfix", "development"]
        self.count = 10
        self.files = {
            "main": list(PRIMARY_FILES),
            "feature-development": PRIMARY_FILES + ["feature.java"],
            "development": PRIMARY_FILES + ["docs/main.md", "docs/utils.md"],
        }
        self.merge_messages = {"main": ["Merge branch 'bugfix'"]}
        self.merged = {("bugfix", "main")}
        self.status = ""
        self.remote_list = ["origin"]
        self.remote_branch_list = ["origin/main"]
        self.tag_list = ["v1.0"]
        self.pushed_tags = {("origin", "v1.0")}

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.failing:
            raise RepoQueryError(["git", method, *args], f"fatal: {method} broke")

    def identity(self):
        self._record("identity")
        return self.name, self.email

    def branches(self):
        self._record("branches")
        return list(self.branch_list)

    def branch_exists(self, name):
        self._record("branch_exists", name)
        return name in self.branch_list

    def log(self, ref="HEAD"):
        self._record("log", ref)
        return "\n".join(f"commit {i}" for i in range(self.count))

    def oneline_log(self, ref="HEAD"):
        self._record("oneline_log", ref)
        return [f"{i:07x} message" for i in range(self.count)]

    def commit_count(self, ref="HEAD"):
        self._record("commit_count", ref)
        return self.count

    def tracked_files(self, ref):
        self._record("tracked_files", ref)
        if ref not in self.files:
            raise RepoQueryError(["git", "ls-tree", ref], f"fatal: Not a valid object name {ref}")
        return list(self.files[ref])

    def merge_log(self, branch):
        self._record("merge_log", branch)
        return list(self.merge_messages.get(branch, []))

    def merge_base(self, a, b):
        self._record("merge_base", a, b)
        if a not in self.branch_list or b not in self.branch_list:
            raise RepoQueryError(["git", "merge-base", a, b], f"fatal: Not a valid object name {a}")
        return f"sha-{a}" if (a, b) in self.merged else "sha-base"

    def resolve(self, ref):
        self._record("resolve", ref)
        return f"sha-{ref}"

    def status_summary(self):
        self._record("status_summary")
        return self.status

    def remotes(self):
        self._record("remotes")
        return list(self.remote_list)

    def remote_branches(self):
        self._record("remote_branches")
        return list(self.remote_branch_list)

    def tags(self):
        self._record("tags")
        return list(self.tag_list)

    def tag_on_remote(self, remote, tag):
        self._record("tag_on_remote", remote, tag)
        return (remote, tag) in self.pushed_tags


def write_lab_files(root: Path, files: Optional[dict] = None) -> Path:
    for rel, content in (files or LAB_FILES).items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def fake_query() -> FakeRepoQuery:
    return FakeRepoQuery()


@pytest.fixture
def lab_dir(tmp_path: Path) -> Path:
    """Directory with a .git marker and every lab file, for use with fake_query."""
    root = tmp_path / "git-fundamentals-project"
    (root / ".git").mkdir(parents=True)
    return write_lab_files(root)


# -----------------------------------------------------------------------------
# Real repositories
# -----------------------------------------------------------------------------

@pytest.fixture
def git_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate git from the developer's global and system config; skips when git is absent."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)
    return home


GitRunner = Callable[..., str]


def make_git(root: Path) -> GitRunner:
    def git(*args: str) -> str:
        p = subprocess.run(
            ["git", "-C", str(root), "-c", "commit.gpgsign=false", *args],
            capture_output=True,
            text=True,
            check=True,
        )
        return p.stdout

    return git


def init_repo(root: Path) -> GitRunner:
    root.mkdir(parents=True, exist_ok=True)
    git = make_git(root)
    git("init", "-q")
    git("symbolic-ref", "HEAD", "refs/heads/main")
    git("config", "user.name", "TestUser")
    git("config", "user.email", "testuser@example.com")
    return git


def _write(root: Path, rel: str, content: str, append: bool = False) -> None:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a" if append else "w", encoding="utf-8") as f:
        f.write(content)


def build_task1_repo(root: Path) -> Path:
    """Primary branch, one commit, setup log written but left uncommitted."""
    git = init_repo(root)
    for rel in (".gitignore", "README.md", "git-setup-log.txt"):
        _write(root, rel, LAB_FILES[rel])
    git("add", ".gitignore", "README.md")
    git("commit", "-q", "-m", "Initial commit: Add README and .gitignore")
    return root


def build_complete_repo(root: Path) -> Path:
    """Replays the lab's five tasks, ending clean on 'development'."""
    git = init_repo(root)

    for rel in (".gitignore", "README.md", "git-setup-log.txt"):
        _write(root, rel, LAB_FILES[rel])
    git("add", ".")
    git("commit", "-q", "-m", "Initial commit: Add README and .gitignore")

    for rel in ("main.java", "utils.java", "config.json"):
        _write(root, rel, LAB_FILES[rel])
    git("add", ".")
    git("commit", "-q", "-m", "Feat: Add java source files and config")
    _write(root, "git-states-explanation.txt", LAB_FILES["git-states-explanation.txt"])

    _write(root, "utils.java", "public class Utils { /* updated */ }\n")
    git("commit", "-q", "-am", "Refactor: Update Utils helper method")
    _write(root, "config.json", '{ "setting": "disabled" }\n')
    git("commit", "-q", "-am", "Config: Disable setting")
    _write(root, "README.md", "Initial project setup.\n", append=True)
    git("commit", "-q", "-am", "Docs: Update project description in README")
    _write(root, "commit-history.txt", git("log"))
    _write(root, "git-log-analysis.txt", LAB_FILES["git-log-analysis.txt"])

    git("checkout", "-q", "-b", "feature-development")
    _write(root, "feature.java", "public class Feature {}\n")
    git("add", "feature.java")
    git("commit", "-q", "-m", "Feat: Implement new feature")
    git("checkout", "-q", "main")

    git("checkout", "-q", "-b", "bugfix")
    _write(root, "README.md", "A small fix for a bug.\n", append=True)
    git("commit", "-q", "-am", "Fix: Correct typo in README")
    git("checkout", "-q", "main")
    git("merge", "-q", "--no-ff", "--no-edit", "bugfix")
    _write(root, "branching-workflow.txt", LAB_FILES["branching-workflow.txt"])

    git("checkout", "-q", "-b", "development")
    _write(root, "docs/main.md", LAB_FILES["docs/main.md"])
    git("add", ".")
    git("commit", "-q", "-m", "Feat: Add documentation structure")
    _write(root, "docs/utils.md", LAB_FILES["docs/utils.md"])
    git("add", ".")
    git("commit", "-q", "-m", "Docs: Add documentation for utils")

    _write(root, "git-workflow-guide.txt", LAB_FILES["git-workflow-guide.txt"])
    _write(root, "git-commands-summary.txt", LAB_FILES["git-commands-summary.txt"])
    git("add", ".")
    git("commit", "-q", "-m", "Docs: Add final workflow and summary documents")
    return root


@pytest.fixture
def complete_repo(tmp_path: Path, git_home: Path) -> Path:
    return build_complete_repo(tmp_path / "complete")


@pytest.fixture
def task1_repo(tmp_path: Path, git_home: Path) -> Path:
    return build_task1_repo(tmp_path / "task1")


@pytest.fixture
def new_repo(tmp_path: Path, git_home: Path) -> Callable[[str], tuple[Path, GitRunner]]:
    """Factory for empty repositories on 'main' with the expected identity configured."""

    def _new(name: str = "repo") -> tuple[Path, GitRunner]:
        root = tmp_path / name
        return root, init_repo(root)

    return _new
