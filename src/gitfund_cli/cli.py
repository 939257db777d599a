from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from gitfund_cli.config import load_settings, log_level
from gitfund_core.run_artifacts import build_run_artifact, target_head, write_run_artifact
from gitfund_core.verification import open_query, verify_with_results

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="gitfund-verify",
        description="Check a Git Fundamentals lab repository against the task checklist.",
    )
    ap.add_argument(
        "path",
        nargs="?",
        default=None,
        help="repository directory (default: GITFUND_TARGET_DIR or ~/Desktop/git-fundamentals-project)",
    )
    args = ap.parse_args(argv)

    try:
        config = load_settings()
        level = log_level()
    except (OSError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    target = Path(args.path).expanduser() if args.path else config.default_target
    query = open_query(target, config)

    report, results = verify_with_results(target, query, config)
    print(report.info)

    runs_dir = os.environ.get("GITFUND_RUNS_DIR")
    if runs_dir:
        artifact = build_run_artifact(
            target=target,
            config=config,
            results=results,
            report=report,
            head=target_head(query),
        )
        out_path = write_run_artifact(artifact, runs_dir=runs_dir)
        logging.getLogger(__name__).info("wrote run artifact %s", out_path)

    return EXIT_OK if report.success else EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
