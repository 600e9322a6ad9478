from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class CloudInventoryError(Exception):
    """Raised when an aws CLI lookup fails or returns unparseable output."""


class AwsInventory:
    """Read-only lookups against ACM, ELBv2 and EC2 through the aws CLI."""

    def __init__(self, region: str, aws_cmd: str = "aws", *, runner: Runner = subprocess.run) -> None:
        self.region = region
        self.aws_cmd = aws_cmd
        self._runner = runner

    def find_wildcard_certificate(self, domain: str) -> Optional[str]:
        """Return the ACM certificate ARN covering ``*.<parent of domain>``, if any."""

        pattern = wildcard_for(domain)
        data = self._query(["acm", "list-certificates"])
        for summary in data.get("CertificateSummaryList") or []:
            if isinstance(summary, dict) and summary.get("DomainName") == pattern:
                return summary.get("CertificateArn")
        return None

    def load_balancers_matching(self, name_fragment: str) -> List[str]:
        data = self._query(["elbv2", "describe-load-balancers"])
        return [
            lb["LoadBalancerArn"]
            for lb in data.get("LoadBalancers") or []
            if isinstance(lb, dict) and name_fragment in str(lb.get("LoadBalancerName", "")) and lb.get("LoadBalancerArn")
        ]

    def security_groups_matching(self, cluster_name: str, name_fragment: str) -> List[str]:
        data = self._query(
            [
                "ec2",
                "describe-security-groups",
                "--filters",
                f"Name=tag:kubernetes.io/cluster/{cluster_name},Values=shared",
            ]
        )
        return [
            group["GroupId"]
            for group in data.get("SecurityGroups") or []
            if isinstance(group, dict) and name_fragment in str(group.get("GroupName", "")) and group.get("GroupId")
        ]

    def _query(self, args: Sequence[str]) -> Any:
        cmd = [self.aws_cmd, *args, "--region", self.region, "--output", "json"]
        logger.debug("+ %s", " ".join(cmd))
        try:
            proc = self._runner(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise CloudInventoryError(f"{self.aws_cmd} executable not found") from exc
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            raise CloudInventoryError(f"{' '.join(args[:2])} failed: {detail}")
        try:
            data = json.loads(proc.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise CloudInventoryError(f"{' '.join(args[:2])} returned invalid JSON: {exc}") from exc
        return data if isinstance(data, dict) else {}


def wildcard_for(domain: str) -> str:
    _, _, parent = domain.partition(".")
    return f"*.{parent or domain}"


def cluster_name_from_context(context: Optional[str]) -> Optional[str]:
    """Extract the cluster name from an EKS context ARN (``arn:...:cluster/<name>``).

    Contexts without a ``/`` are plain cluster names and are returned as-is.
    """

    if not context:
        return None
    parts = context.split("/")
    name = (parts[1] if len(parts) > 1 else parts[0]).strip()
    return name or None
