from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from gitfund_core.checklist import requirement_ids
from gitfund_core.config import VerifierConfig
from gitfund_core.verification import verify_with_results


def grade_roster(targets: Iterable[Path], config: Optional[VerifierConfig] = None) -> pd.DataFrame:
    """
    One row per learner repository.

    Columns: target, success, failures, then one boolean column per requirement id.
    A target that fails a fatal gate gets False in every requirement column.
    """
    config = config or VerifierConfig()
    ids = requirement_ids(include_remote=config.remote.enabled)

    rows = []
    for target in targets:
        report, results = verify_with_results(Path(target), config=config)
        passed = {r.requirement_id: r.passed for r in results}
        row = {
            "target": str(target),
            "success": report.success,
            "failures": 0 if report.success else len(report.info.splitlines()),
        }
        for req_id in ids:
            row[req_id] = bool(passed.get(req_id, False))
        rows.append(row)

    return pd.DataFrame(rows, columns=["target", "success", "failures", *ids])


def requirement_pass_rates(df: pd.DataFrame) -> pd.Series:
    """
    Share of repositories passing each requirement, indexed by requirement id.

    Empty roster => empty Series.
    """
    req_cols = [c for c in df.columns if c not in ("target", "success", "failures")]
    if df.empty:
        return pd.Series(dtype=float, index=pd.Index([], dtype=object))
    return df[req_cols].astype(float).mean().rename("pass_rate")


def roster_summary(df: pd.DataFrame) -> dict:
    total = int(len(df))
    passed = int(df["success"].sum()) if total else 0
    rates = requirement_pass_rates(df)
    hardest = rates.sort_values(kind="stable").head(5) if total else rates
    return {
        "n_repos": total,
        "n_passed": passed,
        "pass_rate": (passed / total) if total else 0.0,
        "hardest_requirements": {str(k): float(v) for k, v in hardest.items()},
    }
