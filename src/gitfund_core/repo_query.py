from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class RepoQueryError(RuntimeError):
    """A version-control query could not be answered (tool missing, bad ref, timeout)."""

    def __init__(self, command: Sequence[str], detail: str, returncode: Optional[int] = None):
        self.command = tuple(command)
        self.detail = " ".join(detail.split()) or "no output"
        self.returncode = returncode
        super().__init__(f"`{' '.join(self.command)}` failed: {self.detail}")


class RepoQueryCapability(Protocol):
    """
    Everything the checklist needs to know about a repository.

    Implementations raise RepoQueryError when a query cannot be answered;
    the verifier downgrades that to a failed requirement.
    """

    def identity(self) -> tuple[Optional[str], Optional[str]]: ...

    def branches(self) -> list[str]: ...

    def branch_exists(self, name: str) -> bool: ...

    def log(self, ref: str = "HEAD") -> str: ...

    def oneline_log(self, ref: str = "HEAD") -> list[str]: ...

    def commit_count(self, ref: str = "HEAD") -> int: ...

    def tracked_files(self, ref: str) -> list[str]: ...

    def merge_log(self, branch: str) -> list[str]: ...

    def merge_base(self, a: str, b: str) -> str: ...

    def resolve(self, ref: str) -> str: ...

    def status_summary(self) -> str: ...

    def remotes(self) -> list[str]: ...

    def remote_branches(self) -> list[str]: ...

    def tags(self) -> list[str]: ...

    def tag_on_remote(self, remote: str, tag: str) -> bool: ...


class GitCliQuery:
    """RepoQueryCapability backed by the `git` executable."""

    def __init__(
        self,
        root: Path,
        *,
        timeout: float = 10.0,
        remote_timeout: float = 10.0,
        git: str = "git",
    ):
        self.root = Path(root)
        self.timeout = timeout
        self.remote_timeout = remote_timeout
        self.git = git

    def _exec(self, args: Sequence[str], *, timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        # always root/.git, never an enclosing repository
        root = self.root.resolve()
        cmd = [
            self.git,
            "-C",
            str(root),
            f"--git-dir={root / '.git'}",
            f"--work-tree={root}",
            *args,
        ]
        logger.debug("running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=timeout or self.timeout,
            )
        except FileNotFoundError as e:
            raise RepoQueryError(cmd, f"git executable not found ({e})") from e
        except subprocess.TimeoutExpired as e:
            raise RepoQueryError(cmd, f"timed out after {e.timeout}s") from e

    def _run(self, *args: str, timeout: Optional[float] = None) -> str:
        p = self._exec(args, timeout=timeout)
        if p.returncode != 0:
            logger.debug("git %s exited %s: %s", args[0], p.returncode, p.stderr.strip())
            raise RepoQueryError(p.args, p.stderr or p.stdout, p.returncode)
        return p.stdout

    def _lines(self, *args: str) -> list[str]:
        return [ln.strip() for ln in self._run(*args).splitlines() if ln.strip()]

    def _config_get(self, key: str) -> Optional[str]:
        p = self._exec(["config", "--get", key])
        # exit 1 means the key is unset
        if p.returncode == 1:
            return None
        if p.returncode != 0:
            raise RepoQueryError(p.args, p.stderr, p.returncode)
        return p.stdout.strip()

    def identity(self) -> tuple[Optional[str], Optional[str]]:
        return self._config_get("user.name"), self._config_get("user.email")

    def branches(self) -> list[str]:
        return self._lines("for-each-ref", "--format=%(refname:short)", "refs/heads")

    def branch_exists(self, name: str) -> bool:
        return name in self.branches()

    def has_commits(self) -> bool:
        p = self._exec(["rev-parse", "--verify", "--quiet", "HEAD"])
        # exit 1 means HEAD is unborn; anything else is a broken repository
        if p.returncode not in (0, 1):
            raise RepoQueryError(p.args, p.stderr, p.returncode)
        return p.returncode == 0

    def log(self, ref: str = "HEAD") -> str:
        return self._run("log", ref)

    def oneline_log(self, ref: str = "HEAD") -> list[str]:
        return self._lines("log", "--oneline", ref)

    def commit_count(self, ref: str = "HEAD") -> int:
        if ref == "HEAD" and not self.has_commits():
            return 0
        return len(self.oneline_log(ref))

    def tracked_files(self, ref: str) -> list[str]:
        return self._lines("ls-tree", "-r", "--name-only", ref)

    def merge_log(self, branch: str) -> list[str]:
        return self._lines("log", branch, "--merges", "--format=%s")

    def merge_base(self, a: str, b: str) -> str:
        return self._run("merge-base", a, b).strip()

    def resolve(self, ref: str) -> str:
        return self._run("rev-parse", "--verify", f"{ref}^{{commit}}").strip()

    def status_summary(self) -> str:
        return self._run("status", "--porcelain")

    def remotes(self) -> list[str]:
        return self._lines("remote")

    def remote_branches(self) -> list[str]:
        return self._lines("for-each-ref", "--format=%(refname:short)", "refs/remotes")

    def tags(self) -> list[str]:
        return self._lines("tag", "--list")

    def tag_on_remote(self, remote: str, tag: str) -> bool:
        out = self._run("ls-remote", "--tags", remote, f"refs/tags/{tag}", timeout=self.remote_timeout)
        return any(ln.split()[-1] == f"refs/tags/{tag}" for ln in out.splitlines() if ln.strip())
