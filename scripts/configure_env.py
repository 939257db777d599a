#!/usr/bin/env python3
"""
Interactive helper to create/update a local .env with GITFUND_TARGET_DIR.

- Prompts for the lab repository directory
- Writes/updates GITFUND_TARGET_DIR in .env

Usage:
  python3 scripts/configure_env.py
  .venv/bin/python scripts/configure_env.py
"""
from __future__ import annotations

import re
from pathlib import Path


def main() -> int:
    raw = input("Path to your git-fundamentals-project directory: ").strip()
    if not raw:
        print("No path entered. No changes made.")
        return 1

    target = Path(raw).expanduser().resolve()
    if not (target / ".git").is_dir():
        print(f"Warning: {target} is not a Git repository yet; saving anyway.")

    env_path = Path(".env")
    lines = env_path.read_text(encoding="utf-8").splitlines() if env_path.exists() else []

    out: list[str] = []
    found = False
    for line in lines:
        if re.match(r"^\s*GITFUND_TARGET_DIR\s*=", line):
            out.append(f"GITFUND_TARGET_DIR={target}")
            found = True
        else:
            out.append(line)

    if not found:
        out.append(f"GITFUND_TARGET_DIR={target}")

    env_path.write_text("\n".join(out).rstrip() + "\n", encoding="utf-8")
    print(f"Wrote GITFUND_TARGET_DIR={target} to .env.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
