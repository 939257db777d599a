from __future__ import annotations

import os
import platform
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from gitfund_cli.config import apply_overrides
from gitfund_core.config import VerifierConfig
from gitfund_core.verification import verify_with_results


def _git_head_sha() -> Optional[str]:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode("utf-8").strip()
    except Exception:
        return None


def _parse_case(case_path: Optional[str]) -> Dict[str, Any]:
    if not case_path:
        return {"name": "default"}

    p = Path(case_path)
    case: Dict[str, Any] = {"name": p.stem, "path": str(p)}
    if not p.exists():
        case["parse_error"] = f"Case file not found: {p}"
        return case

    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8", errors="replace"))
    except yaml.YAMLError as e:
        case["parse_error"] = f"Case parse failed: {e}"
        return case

    if not isinstance(obj, dict):
        case["parse_error"] = "Case root was not a mapping"
        return case

    obj.setdefault("name", p.stem)
    obj.setdefault("path", str(p))
    target = obj.get("target")
    if target and not Path(str(target)).expanduser().is_absolute():
        obj["target"] = str(p.parent / str(target))
    return obj


def run(case_path: Optional[str], *, base_config: Optional[VerifierConfig] = None) -> Dict[str, Any]:
    """
    Verify the case's target and score the outcome against the case's expectations.

    Recognised expectations: success (bool), failed_ids_include / failed_ids_exclude
    (lists of requirement ids), max_failures (int). pass is None when none are given.
    """
    case = _parse_case(case_path)
    config = base_config or VerifierConfig()

    result: Dict[str, Any] = {
        "case": case,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "git_head": _git_head_sha(),
        "env": {
            "python": sys.version.split()[0],
            "platform": platform.platform(),
            "cwd": os.getcwd(),
        },
    }

    overrides = case.get("config")
    if overrides and "parse_error" not in case:
        try:
            if not isinstance(overrides, dict):
                raise ValueError("'config' must be a mapping")
            config = apply_overrides(config, overrides, source=case.get("path", "case"))
        except ValueError as e:
            case["parse_error"] = f"Case config invalid: {e}"

    if "parse_error" in case:
        result["pass"] = False
        return result

    target = Path(str(case.get("target") or config.default_target)).expanduser()
    report, results = verify_with_results(target, config=config)
    failed_ids = [r.requirement_id for r in results if not r.passed]

    result["outputs"] = {
        "target": str(target),
        "success": report.success,
        "info": report.info,
        "failed_ids": failed_ids,
        "checks": [r.to_dict() for r in results],
    }

    expectations: Dict[str, Any] = {}
    verdicts: Dict[str, Any] = {}

    if "success" in case:
        expectations["success"] = bool(case["success"])
        verdicts["success_ok"] = report.success == bool(case["success"])

    if "failed_ids_include" in case:
        wanted = sorted({str(x) for x in case["failed_ids_include"]})
        expectations["failed_ids_include"] = wanted
        verdicts["failed_ids_include_ok"] = all(i in failed_ids for i in wanted)

    if "failed_ids_exclude" in case:
        banned = sorted({str(x) for x in case["failed_ids_exclude"]})
        expectations["failed_ids_exclude"] = banned
        verdicts["failed_ids_exclude_ok"] = not any(i in failed_ids for i in banned)

    if "max_failures" in case:
        expectations["max_failures"] = int(case["max_failures"])
        failure_count = 0 if report.success else len(report.info.splitlines())
        verdicts["max_failures_ok"] = failure_count <= int(case["max_failures"])

    if expectations:
        result["expectations"] = expectations
        result["verdicts"] = verdicts
        result["pass"] = bool(verdicts) and all(bool(v) for v in verdicts.values())
    else:
        result["pass"] = None

    return result
