from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

import typer

from src.common.config import DeployConfig
from src.kube.client import KubectlClient


@dataclass(frozen=True)
class StatusSection:
    title: str
    kind: str
    output: Optional[str]
    missing_message: str

    @property
    def present(self) -> bool:
        return self.output is not None

    def render(self) -> str:
        banner = f"{'=' * 24} {self.title} {'=' * 24}"
        return f"{banner}\n{self.output if self.present else self.missing_message}\n"


@dataclass
class StatusSnapshot:
    sections: List[StatusSection]

    def section(self, kind: str) -> Optional[StatusSection]:
        return next((section for section in self.sections if section.kind == kind), None)

    @property
    def kinds(self) -> List[str]:
        return [section.kind for section in self.sections]

    def render(self) -> str:
        return "\n".join(section.render() for section in self.sections)


class StatusReporter:
    """Read-only view of every resource the deployment owns."""

    def __init__(self, config: DeployConfig, kubectl: KubectlClient, *, echo: Callable[[str], None] = typer.echo) -> None:
        self.config = config
        self.kubectl = kubectl
        self._echo = echo

    def snapshot(self) -> StatusSnapshot:
        ns = self.config.namespace
        names = self.config.resources
        get = self.kubectl.get_table
        return StatusSnapshot(
            [
                StatusSection("NAMESPACE", "namespace", get("namespace", ns), "Namespace not found"),
                StatusSection("DEPLOYMENT", "deployment", get("deployment", names.deployment, namespace=ns), "Deployment not found"),
                StatusSection("PODS", "pods", get("pods", namespace=ns, selector=names.pod_selector), "No pods found"),
                StatusSection("SERVICE", "service", get("service", names.service, namespace=ns), "Service not found"),
                StatusSection("INGRESS", "ingress", get("ingress", names.ingress, namespace=ns), "Ingress not found"),
                StatusSection("HORIZONTAL POD AUTOSCALER", "hpa", get("hpa", names.hpa, namespace=ns), "HPA not found"),
            ]
        )

    def report(self) -> StatusSnapshot:
        snapshot = self.snapshot()
        self._echo("Current deployment status:\n")
        self._echo(snapshot.render())
        return snapshot

    def access_info(self, domain: str) -> str:
        ns = self.config.namespace
        deployment = self.config.resources.deployment
        return "\n".join(
            [
                f"Application URL: https://{domain}",
                "",
                "To check the status:",
                f"  kubectl get all -n {ns}",
                f"  kubectl get ingress -n {ns}",
                "",
                "To view logs:",
                f"  kubectl logs -f deployment/{deployment} -n {ns}",
                "",
                "Note: DNS propagation may take a few minutes for the domain to be accessible.",
                "",
            ]
        )


TROUBLESHOOTING_TIPS = """\
1. Check if all prerequisites are met (AWS Load Balancer Controller, External DNS, etc.)
2. Verify ACM certificate exists for your domain
3. Check cluster permissions and connectivity
4. Review the events above for specific error messages

To cleanup and retry:
  nginx-demo-cleanup
  nginx-demo-deploy your-domain.com
"""
