from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from gitfund_cli.config import load_settings
from gitfund_eval.harness import run
from gitfund_eval.roster import grade_roster, roster_summary


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Git Fundamentals eval harness (writes gitfund_evals/out/latest.json).")
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--case", default=None, help="YAML/JSON case file with a target and expectations")
    group.add_argument("--roster", nargs="+", default=None, help="learner repository directories to grade")
    ap.add_argument("--out-dir", default=str(Path("gitfund_evals") / "out"))
    args = ap.parse_args(argv)

    config = load_settings()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.roster:
        df = grade_roster([Path(p) for p in args.roster], config)
        csv_path = out_dir / "roster.csv"
        df.to_csv(csv_path, index=False)
        print(f"Wrote: {csv_path}")
        payload = roster_summary(df)
    else:
        payload = run(args.case, base_config=config)

    latest_path = out_dir / "latest.json"
    ts_path = out_dir / f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.json"

    latest_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
    ts_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")

    print(f"Wrote: {latest_path}")
    print(f"Wrote: {ts_path}")
    if args.case:
        return 0 if payload.get("pass") is not False else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
