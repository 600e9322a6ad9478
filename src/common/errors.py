"""Exception hierarchy shared by the deploy and cleanup entry points."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DeployError(Exception):
    """Base class for fatal deployment failures."""


class ValidationError(DeployError):
    """Raised when the supplied domain name is not a valid hostname."""

    def __init__(self, domain: str) -> None:
        super().__init__(f"Invalid domain format: {domain}")
        self.domain = domain


class MissingDependency(DeployError):
    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} is required but not installed.")
        self.tool = tool


class WrongCluster(DeployError):
    def __init__(self, actual: str, expected: str, reason: Optional[str] = None) -> None:
        message = reason or "kubectl is not configured for the expected cluster"
        super().__init__(f"{message} (current context: {actual}, expected: {expected})")
        self.actual = actual
        self.expected = expected


class TemplateNotFound(DeployError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Ingress template not found: {path}")
        self.path = path


class RenderTargetUnwritable(DeployError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Cannot write rendered manifest to {path}: {detail}")
        self.path = path


class MissingRenderedManifest(DeployError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Processed ingress not found: {path}")
        self.path = path


class ApplyFailed(DeployError):
    def __init__(self, manifest: Path, detail: str) -> None:
        super().__init__(f"kubectl apply failed for {manifest.name}: {detail}")
        self.manifest = manifest
        self.detail = detail


class KubectlError(Exception):
    """Raised when a kubectl read call exits non-zero for a reason other than NotFound."""

    def __init__(self, args: list, detail: str) -> None:
        super().__init__(f"kubectl {' '.join(args)} failed: {detail}")
        self.detail = detail
