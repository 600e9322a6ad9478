from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import typer

from src.cloud.inventory import AwsInventory, CloudInventoryError, cluster_name_from_context
from src.common.config import DeployConfig
from src.common.console import success
from src.common.polling import poll_until
from src.kube.client import KubectlClient

from .backups import restore_backups

logger = logging.getLogger(__name__)

CONFIRM_PROMPT = "Are you sure you want to continue? (yes/no)"


@dataclass
class CleanupOptions:
    force: bool = False
    cluster: bool = False
    dry_run: bool = False


@dataclass
class CleanupResult:
    cancelled: bool = False
    namespace_found: bool = False
    namespace_deleted: bool = False
    namespace_gone: Optional[bool] = None
    issuers_deleted: List[str] = field(default_factory=list)
    orphaned_load_balancers: List[str] = field(default_factory=list)
    orphaned_security_groups: List[str] = field(default_factory=list)
    namespace_remaining: bool = False
    stuck_pods: Optional[str] = None
    restored: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _default_prompt(text: str) -> str:
    try:
        return typer.prompt(text, default="", show_default=False)
    except typer.Abort:
        # end of input or Ctrl-C at the prompt declines the cleanup
        typer.echo("", err=True)
        return ""


class CleanupOrchestrator:
    """Tear down the demo namespace and report anything left behind.

    Steps run in a fixed order: confirm, delete namespace, delete cluster
    issuers (opt-in), audit cloud resources, report remaining resources,
    restore manifest backups. NotFound on any delete counts as done.
    """

    def __init__(
        self,
        config: DeployConfig,
        options: CleanupOptions,
        kubectl: Optional[KubectlClient] = None,
        inventory: Optional[AwsInventory] = None,
        *,
        prompt: Callable[[str], str] = _default_prompt,
        sleep: Callable[[float], None] = time.sleep,
        which: Callable[[str], Optional[str]] = shutil.which,
        echo: Callable[[str], None] = typer.echo,
    ) -> None:
        self.config = config
        self.options = options
        self.kubectl = kubectl or KubectlClient(config.kubectl_cmd)
        self.inventory = inventory or AwsInventory(config.region, config.aws_cmd)
        self._prompt = prompt
        self._sleep = sleep
        self._which = which
        self._echo = echo

    def run(self) -> CleanupResult:
        result = CleanupResult()
        logger.info("Starting nginx demo cleanup...")
        if self.options.dry_run:
            logger.info("DRY RUN MODE - No resources will be actually deleted")

        if not self.confirm():
            logger.info("Cleanup cancelled by user")
            result.cancelled = True
            return result

        self.delete_namespace(result)
        if self.options.cluster:
            self.delete_cluster_issuers(result)
        self.audit_cloud_resources(result)
        self.report_remaining(result)
        if not self.options.dry_run:
            result.restored = [path.name for path in restore_backups(self.config.manifest_dir, self.config.backup_suffix)]
        self._summarise(result)
        return result

    def confirm(self) -> bool:
        if self.options.force:
            return True
        lines = [
            typer.style("WARNING: This will delete all nginx demo resources!", fg=typer.colors.YELLOW),
            "Resources to be deleted:",
            f"  - Namespace: {self.config.namespace} (and all resources within)",
        ]
        if self.options.cluster:
            lines.append(f"  - ClusterIssuers: {', '.join(self.config.cluster_issuers)}")
        self._echo("\n".join(lines) + "\n")
        reply = self._prompt(CONFIRM_PROMPT)
        return (reply or "").strip().lower() == "yes"

    def delete_namespace(self, result: CleanupResult) -> None:
        namespace = self.config.namespace
        logger.info("Cleaning up namespace: %s", namespace)
        if not self.kubectl.exists("namespace", namespace):
            logger.warning("Namespace %s not found", namespace)
            return
        result.namespace_found = True

        proc = self.kubectl.delete("namespace", namespace, dry_run=self.options.dry_run)
        if proc.returncode != 0 and "NotFound" not in (proc.stderr or ""):
            message = f"Failed to delete namespace {namespace}: {(proc.stderr or '').strip()}"
            logger.warning(message)
            result.warnings.append(message)
            return
        if self.options.dry_run:
            logger.info("DRY RUN: namespace %s would be deleted", namespace)
            return
        result.namespace_deleted = True
        success(logger, "Namespace %s deleted", namespace)
        result.namespace_gone = self._wait_for_namespace_deletion(namespace)

    def _wait_for_namespace_deletion(self, namespace: str) -> bool:
        logger.info("Waiting for namespace deletion to complete...")
        interval = self.config.namespace_delete_interval
        timeout = self.config.namespace_delete_timeout
        report_every = self.config.namespace_delete_report_every

        def on_retry(attempt: int) -> None:
            elapsed = attempt * interval
            if elapsed < timeout and elapsed % report_every == 0:
                logger.info("Still waiting for namespace deletion... (%d/%d seconds)", elapsed, timeout)

        outcome = poll_until(
            lambda: not self.kubectl.exists("namespace", namespace),
            timeout // interval + 1,
            interval,
            sleep=self._sleep,
            on_retry=on_retry,
        )
        if outcome.succeeded:
            success(logger, "Namespace deletion completed")
            return True
        logger.warning("Namespace deletion is taking longer than expected")
        logger.warning("You may need to manually check for stuck resources")
        return False

    def delete_cluster_issuers(self, result: CleanupResult) -> None:
        logger.info("Cleaning up cluster-wide resources...")
        for issuer in self.config.cluster_issuers:
            if not self.kubectl.exists("clusterissuer", issuer):
                logger.warning("ClusterIssuer %s not found", issuer)
                continue
            proc = self.kubectl.delete("clusterissuer", issuer, dry_run=self.options.dry_run)
            if proc.returncode != 0 and "NotFound" not in (proc.stderr or ""):
                message = f"Failed to delete ClusterIssuer {issuer}: {(proc.stderr or '').strip()}"
                logger.warning(message)
                result.warnings.append(message)
                continue
            if self.options.dry_run:
                logger.info("DRY RUN: ClusterIssuer %s would be deleted", issuer)
                continue
            result.issuers_deleted.append(issuer)
            success(logger, "ClusterIssuer %s deleted", issuer)

    def audit_cloud_resources(self, result: CleanupResult) -> None:
        if self.options.dry_run:
            logger.info("DRY RUN: Would check for AWS resources to cleanup")
            return
        logger.info("Checking for AWS resources that may need manual cleanup...")
        if self._which(self.config.aws_cmd) is None:
            logger.warning("AWS CLI not found. Please manually check for AWS resources.")
            return

        fragment = self.config.app_name
        logger.info("Checking for Application Load Balancers...")
        try:
            result.orphaned_load_balancers = self.inventory.load_balancers_matching(fragment)
        except CloudInventoryError as exc:
            logger.warning("Load balancer lookup failed: %s", exc)
        if result.orphaned_load_balancers:
            logger.warning("Found ALBs that may need manual cleanup:")
            self._echo("\n".join(result.orphaned_load_balancers))
            logger.warning("Use: aws elbv2 delete-load-balancer --load-balancer-arn <ARN>")

        logger.info("Checking for security groups...")
        cluster_name = cluster_name_from_context(self.kubectl.current_context())
        if cluster_name is None:
            logger.warning("Could not determine the cluster name; skipping security group lookup")
            return
        try:
            result.orphaned_security_groups = self.inventory.security_groups_matching(cluster_name, fragment)
        except CloudInventoryError as exc:
            logger.warning("Security group lookup failed: %s", exc)
        if result.orphaned_security_groups:
            logger.warning("Found security groups that may need manual cleanup:")
            self._echo("\n".join(result.orphaned_security_groups))
            logger.warning("Review and delete if no longer needed")

    def report_remaining(self, result: CleanupResult) -> None:
        namespace = self.config.namespace
        logger.info("Checking for any remaining resources...")
        result.namespace_remaining = self.kubectl.exists("namespace", namespace)
        if result.namespace_remaining:
            logger.warning("Namespace %s still exists", namespace)
            remaining = self.kubectl.get_table("all", namespace=namespace)
            if remaining:
                self._echo(remaining)

        logger.info("Remaining ClusterIssuers:")
        issuers = self.kubectl.get_table("clusterissuers")
        if issuers:
            self._echo(issuers)
        else:
            logger.info("No ClusterIssuers found")

        logger.info("Checking for stuck resources...")
        result.stuck_pods = self.kubectl.get_table(
            "pods", all_namespaces=True, field_selector="status.phase=Terminating"
        )
        if result.stuck_pods:
            logger.warning("Found pods stuck in Terminating state:")
            self._echo(result.stuck_pods)
            logger.warning(
                "You may need to force delete them with: kubectl delete pod <pod-name> --force --grace-period=0"
            )

    def _summarise(self, result: CleanupResult) -> None:
        if self.options.dry_run:
            success(logger, "Dry run completed!")
            return
        success(logger, "Cleanup completed!")
        lines = ["", "Summary:"]
        if result.namespace_deleted:
            lines.append(f"  - Namespace '{self.config.namespace}' and all resources within it have been deleted")
        elif result.namespace_found:
            lines.append(f"  - Namespace '{self.config.namespace}' could not be deleted (see warnings above)")
        else:
            lines.append(f"  - Namespace '{self.config.namespace}' was not present")
        if self.options.cluster:
            lines.append(f"  - ClusterIssuers deleted: {', '.join(result.issuers_deleted) or 'none'}")
        lines.append(f"  - Manifest files restored from backups: {len(result.restored)}")
        self._echo("\n".join(lines) + "\n")
        logger.warning("Note: Please check AWS Console for any remaining ALBs or Security Groups")
        logger.warning("that may need manual cleanup to avoid ongoing charges.")
