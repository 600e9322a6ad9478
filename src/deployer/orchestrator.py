from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import typer

from src.cloud.inventory import AwsInventory
from src.common.config import DeployConfig
from src.common.console import success
from src.common.errors import DeployError, ValidationError
from src.kube.client import KubectlClient

from .applier import ManifestApplier
from .prerequisites import PrerequisiteChecker, PrerequisiteReport
from .renderer import RenderWorkspace, TemplateRenderer
from .status import TROUBLESHOOTING_TIPS, StatusReporter, StatusSnapshot
from .validator import validate_domain
from .waiter import RolloutReport, RolloutWaiter

logger = logging.getLogger(__name__)


@dataclass
class DeployResult:
    domain: str
    prerequisites: PrerequisiteReport
    applied: List[Path]
    rollout: RolloutReport
    status: StatusSnapshot


class DeployOrchestrator:
    """Validate, check, render, apply, wait and report, in that order."""

    def __init__(
        self,
        config: DeployConfig,
        kubectl: Optional[KubectlClient] = None,
        inventory: Optional[AwsInventory] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        which: Callable[[str], Optional[str]] = shutil.which,
        echo: Callable[[str], None] = typer.echo,
    ) -> None:
        self.config = config
        self.kubectl = kubectl or KubectlClient(config.kubectl_cmd)
        self.inventory = inventory or AwsInventory(config.region, config.aws_cmd)
        self._sleep = sleep
        self._which = which
        self._echo = echo
        self.reporter = StatusReporter(config, self.kubectl, echo=echo)

    def run(self, domain: str) -> DeployResult:
        try:
            domain = validate_domain(domain)
        except ValidationError as exc:
            logger.error("%s", exc)
            logger.info("Please provide a valid domain name (e.g., nginx-demo.yourdomain.com)")
            raise
        logger.info("Starting deployment for domain: %s", domain)

        with RenderWorkspace(self.config.render_dir) as render_dir:
            try:
                checker = PrerequisiteChecker(self.config, self.kubectl, self.inventory, which=self._which)
                prerequisites = checker.run(domain)

                logger.info("Processing templates with domain: %s", domain)
                rendered = TemplateRenderer(render_dir).render(
                    self.config.template_path, {self.config.domain_placeholder: domain}
                )
                success(logger, "Generated ingress manifest for domain: %s", domain)

                applied = ManifestApplier(self.kubectl).apply_all(self.config.static_manifest_paths, rendered)
            except DeployError as exc:
                logger.error("%s", exc)
                self._report_failure()
                raise

            rollout = RolloutWaiter(self.config, self.kubectl, sleep=self._sleep).wait()
            if not rollout.ready:
                logger.warning("Deployment may not be fully ready, but continuing...")

        status = self.reporter.report()
        logger.info("Deployment completed! Access information:")
        self._echo(self.reporter.access_info(domain))
        success(logger, "Deployment completed successfully!")
        return DeployResult(domain, prerequisites, applied, rollout, status)

    def _report_failure(self) -> None:
        logger.error("Deployment encountered an error. Showing current status...")
        self.reporter.report()
        logger.info("Troubleshooting tips:")
        self._echo(TROUBLESHOOTING_TIPS)
