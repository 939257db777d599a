import sys
from pathlib import Path

from dotenv import load_dotenv

from gitfund_cli.config import load_settings
from gitfund_core.checklist import task_groups
from gitfund_core.requirements import task_passed
from gitfund_core.run_artifacts import build_run_artifact, target_head, write_run_artifact
from gitfund_core.verification import open_query, verify_with_results


def main() -> None:
    load_dotenv(dotenv_path=Path(__file__).with_name(".env"))
    config = load_settings()

    target = Path(sys.argv[1]).expanduser() if len(sys.argv) > 1 else config.default_target
    query = open_query(target, config)

    report, results = verify_with_results(target, query, config)

    # Persist run artifact (does not affect the verdict)
    artifact = build_run_artifact(
        target=target,
        config=config,
        results=results,
        report=report,
        head=target_head(query),
        extra={"cwd": str(Path().resolve())},
    )
    out_path = write_run_artifact(artifact)
    print("Wrote run artifact:", out_path)

    print("Target:", target)
    for group in task_groups(include_remote=config.remote.enabled):
        if results:
            status = "pass" if task_passed(results, group.number) else "fail"
            print(f"Task {group.number} ({group.title}): {status}")
    print()
    print(report.info)

    sys.exit(0 if report.success else 1)


if __name__ == "__main__":
    main()
