from __future__ import annotations

import logging
from typing import Optional

import typer

from src.common.config import load_config
from src.common.console import configure_logging
from src.common.errors import DeployError

from .orchestrator import DeployOrchestrator

logger = logging.getLogger(__name__)

app = typer.Typer(help="Deploy the nginx-demo application to EKS for a given domain.", add_completion=False)

USAGE = "Usage: nginx-demo-deploy <domain-name>\nExample: nginx-demo-deploy nginx-demo.yourdomain.com"


@app.command()
def deploy(
    domain: Optional[str] = typer.Argument(
        None,
        help="Public hostname the ingress should serve, e.g. nginx-demo.yourdomain.com.",
        show_default=False,
    ),
) -> None:
    configure_logging()
    if not domain:
        typer.echo(USAGE, err=True)
        raise typer.Exit(code=1)

    try:
        config = load_config()
    except typer.BadParameter as exc:
        logger.error("%s", exc.format_message())
        raise typer.Exit(code=1) from exc

    try:
        DeployOrchestrator(config).run(domain)
    except DeployError as exc:
        # already reported by the orchestrator
        raise typer.Exit(code=1) from exc


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
