from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from src.common.config import DeployConfig
from src.common.console import success
from src.common.errors import KubectlError
from src.common.polling import PollResult, poll_until
from src.kube.client import KubectlClient

logger = logging.getLogger(__name__)


class DeploymentNotObserved(Exception):
    """Soft failure: the deployment never appeared within the existence budget."""


@dataclass
class RolloutReport:
    deployment_observed: bool = False
    rollout_complete: bool = False
    running_pods: int = 0
    ingress_address: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return (
            self.deployment_observed
            and self.rollout_complete
            and self.running_pods > 0
            and bool(self.ingress_address)
        )


class RolloutWaiter:
    def __init__(
        self,
        config: DeployConfig,
        kubectl: KubectlClient,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.kubectl = kubectl
        self._sleep = sleep

    def wait(self) -> RolloutReport:
        logger.info("Waiting for all resources to be ready...")
        report = RolloutReport()

        try:
            self.wait_for_deployment()
        except DeploymentNotObserved as exc:
            logger.warning("%s", exc)
            report.warnings.append(str(exc))
        else:
            report.deployment_observed = True
            report.rollout_complete = self.wait_for_rollout()
            if not report.rollout_complete:
                report.warnings.append("deployment rollout did not complete")

        pods = self.wait_for_pods()
        report.running_pods = pods.value or 0
        if not pods.succeeded:
            report.warnings.append("no running pods observed")

        ingress = self.wait_for_ingress()
        report.ingress_address = ingress.value or None
        if not ingress.succeeded:
            report.warnings.append("ingress address not assigned")
        return report

    def wait_for_deployment(self) -> None:
        name = self.config.resources.deployment
        budget = self.config.deployment_poll
        logger.info("Checking deployment status...")
        result = poll_until(
            lambda: self.kubectl.exists("deployment", name, self.config.namespace),
            budget.attempts,
            budget.interval,
            sleep=self._sleep,
            on_retry=lambda attempt: logger.info(
                "Waiting for deployment to be created... (attempt %d/%d)", attempt, budget.attempts
            ),
        )
        if not result.succeeded:
            raise DeploymentNotObserved(f"Deployment not found after {budget.attempts} attempts")
        success(logger, "Deployment found")

    def wait_for_rollout(self) -> bool:
        name = self.config.resources.deployment
        logger.info("Waiting for deployment rollout to complete...")
        if self.kubectl.rollout_status(name, self.config.namespace, self.config.rollout_timeout):
            success(logger, "Nginx deployment rollout completed")
            return True
        logger.warning("Deployment rollout may not be complete, checking status...")
        table = self.kubectl.get_table("deployment", name, namespace=self.config.namespace)
        if table:
            logger.info("\n%s", table)
        return False

    def wait_for_pods(self) -> PollResult:
        budget = self.config.pod_poll
        selector = self.config.resources.pod_selector
        logger.info("Waiting for pods to be ready...")
        result = poll_until(
            lambda: self._running_pods(selector),
            budget.attempts,
            budget.interval,
            sleep=self._sleep,
        )
        if result.succeeded:
            success(logger, "%d pod(s) are running", result.value)
        else:
            logger.warning("No running pods matching %s after %d attempts", selector, budget.attempts)
        return result

    def wait_for_ingress(self) -> PollResult:
        budget = self.config.ingress_poll
        name = self.config.resources.ingress
        logger.info("Waiting for ingress to get an address...")
        result = poll_until(
            lambda: self._ingress_hostname(name),
            budget.attempts,
            budget.interval,
            sleep=self._sleep,
        )
        if result.succeeded:
            success(logger, "Ingress has address: %s", result.value)
        else:
            logger.warning("Ingress address not available after %d attempts", budget.attempts)
            logger.info("You can check the ingress status with: kubectl get ingress -n %s", self.config.namespace)
        return result

    def _running_pods(self, selector: str) -> int:
        try:
            return self.kubectl.count_running_pods(self.config.namespace, selector)
        except KubectlError as exc:
            logger.debug("pod query failed: %s", exc)
            return 0

    def _ingress_hostname(self, name: str) -> Optional[str]:
        try:
            return self.kubectl.ingress_hostname(name, self.config.namespace)
        except KubectlError as exc:
            logger.debug("ingress query failed: %s", exc)
            return None
