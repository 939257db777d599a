from __future__ import annotations

import json
import os
import time
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from gitfund_core.config import VerifierConfig
from gitfund_core.repo_query import RepoQueryCapability
from gitfund_core.requirements import CheckResult, task_passed
from gitfund_core.verification import VerificationReport


def target_head(query: Optional[RepoQueryCapability]) -> str:
    if query is None:
        return "unknown"
    try:
        return query.resolve("HEAD")[:7] or "unknown"
    except Exception:
        return "unknown"


def _jsonable(x: Any) -> Any:
    if x is None:
        return None
    if is_dataclass(x):
        return {k: _jsonable(v) for k, v in asdict(x).items()}
    if isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, Path):
        return str(x)
    if isinstance(x, dict):
        return {str(k): _jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple, set)):
        return [_jsonable(v) for v in x]
    return repr(x)


def build_run_artifact(
    *,
    target: Path,
    config: VerifierConfig,
    results: tuple[CheckResult, ...],
    report: VerificationReport,
    head: str = "unknown",
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    ts = time.strftime("%Y%m%d_%H%M%S")
    tasks = sorted({r.task for r in results})

    artifact: Dict[str, Any] = {
        "schema": "gitfund.run_artifact.v1",
        "timestamp": ts,
        "target": str(target),
        "head": head,
        "inputs": {
            "min_commits": config.min_commits,
            "merge_detection": config.merge_detection,
            "remote_enabled": config.remote.enabled,
        },
        "checks": {
            "count": len(results),
            "failed": sum(1 for r in results if not r.passed),
            "items": [r.to_dict() for r in results],
        },
        "tasks": {str(t): task_passed(results, t) for t in tasks},
        "report": report.to_dict(),
    }

    if extra:
        artifact["extra"] = _jsonable(extra)

    return artifact


def write_run_artifact(
    artifact: Dict[str, Any],
    *,
    runs_dir: Optional[str] = None,
) -> Path:
    out_dir = Path(runs_dir or os.environ.get("GITFUND_RUNS_DIR", "gitfund_runs"))
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = artifact.get("timestamp") or time.strftime("%Y%m%d_%H%M%S")
    head = artifact.get("head", "unknown")
    path = out_dir / f"run_{ts}_{head}.json"

    path.write_text(json.dumps(artifact, indent=2, sort_keys=False), encoding="utf-8")
    (out_dir / "latest.json").write_text(json.dumps(artifact, indent=2, sort_keys=False), encoding="utf-8")
    return path
