from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Callable, Optional

from src.cloud.inventory import AwsInventory, CloudInventoryError, wildcard_for
from src.common.config import DeployConfig
from src.common.console import success
from src.common.errors import MissingDependency, WrongCluster
from src.kube.client import KubectlClient

logger = logging.getLogger(__name__)


@dataclass
class PrerequisiteReport:
    context: str
    namespace_exists: bool
    certificate_arn: Optional[str] = None


class PrerequisiteChecker:
    def __init__(
        self,
        config: DeployConfig,
        kubectl: KubectlClient,
        inventory: Optional[AwsInventory] = None,
        *,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> None:
        self.config = config
        self.kubectl = kubectl
        self.inventory = inventory
        self._which = which

    def run(self, domain: str) -> PrerequisiteReport:
        logger.info("Checking prerequisites...")
        self.check_tools()
        context = self.check_cluster_context()
        namespace_exists = self.kubectl.exists("namespace", self.config.namespace)
        if not namespace_exists:
            logger.warning("Namespace '%s' does not exist, it will be created", self.config.namespace)
        certificate_arn = self.check_certificate(domain) if self.config.check_certificate else None
        success(logger, "Prerequisites check completed")
        return PrerequisiteReport(context=context, namespace_exists=namespace_exists, certificate_arn=certificate_arn)

    def check_tools(self) -> None:
        for tool in self.config.required_tools:
            if self._which(tool) is None:
                raise MissingDependency(tool)

    def check_cluster_context(self) -> str:
        expected = self.config.cluster_context
        current = self.kubectl.current_context() or "none"
        if self.config.context_match == "exact":
            matched = current == expected
        else:
            matched = expected in current
        if not matched:
            logger.info("Please configure kubectl to point to your EKS cluster")
            raise WrongCluster(current, expected)
        if not self.kubectl.cluster_reachable():
            raise WrongCluster(current, expected, reason="cluster API is not reachable from the current context")
        success(logger, "Connected to cluster: %s", current)
        return current

    def check_certificate(self, domain: str) -> Optional[str]:
        pattern = wildcard_for(domain)
        logger.info("Checking for ACM certificate for %s", pattern)
        if self.inventory is None:
            logger.warning("No cloud inventory configured; skipping certificate lookup")
            return None
        try:
            arn = self.inventory.find_wildcard_certificate(domain)
        except CloudInventoryError as exc:
            logger.warning("Certificate lookup failed: %s", exc)
            return None
        if arn:
            success(logger, "Found ACM certificate: %s", arn)
            return arn
        logger.warning("No ACM wildcard certificate found for %s", pattern)
        logger.info("The ingress will use automatic certificate discovery")
        return None
