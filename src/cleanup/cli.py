from __future__ import annotations

from typing import List, Optional

import typer

from src.common.config import load_config
from src.common.console import configure_logging

from .backups import restore_backups
from .orchestrator import CleanupOptions, CleanupOrchestrator

# click reports usage errors with this exit status
USAGE_ERROR_CODE = 2

EPILOG = """\
EXAMPLES:

  nginx-demo-cleanup             Interactive cleanup of namespace resources only

  nginx-demo-cleanup --force     Force cleanup without prompts

  nginx-demo-cleanup --cluster   Cleanup including cluster-wide resources

  nginx-demo-cleanup --dry-run   Show what would be deleted

  nginx-demo-cleanup --restore   Only restore original manifest files

NOTES: by default only the namespace and resources within it are deleted.
AWS resources (ALBs, Security Groups) may need manual cleanup.
"""

app = typer.Typer(
    help="Clean up nginx demo application resources from an AWS EKS cluster.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command(epilog=EPILOG)
def cleanup(
    force: bool = typer.Option(False, "--force", "-f", help="Force cleanup without confirmation prompt."),
    cluster: bool = typer.Option(
        False, "--cluster", "-c", help="Also cleanup cluster-wide resources (ClusterIssuers)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-d", help="Show what would be deleted without actually deleting."
    ),
    restore: bool = typer.Option(
        False, "--restore", "-r", help="Restore original manifest files from backups, then exit."
    ),
) -> None:
    configure_logging()
    config = load_config()
    if restore:
        restore_backups(config.manifest_dir, config.backup_suffix)
        raise typer.Exit(code=0)

    options = CleanupOptions(force=force, cluster=cluster, dry_run=dry_run)
    CleanupOrchestrator(config, options).run()


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point; usage errors exit 1 instead of click's default 2."""

    try:
        app(args=argv, prog_name="nginx-demo-cleanup")
    except SystemExit as exc:
        if exc.code is None:
            return 0
        if not isinstance(exc.code, int):
            raise
        return 1 if exc.code == USAGE_ERROR_CODE else exc.code
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
