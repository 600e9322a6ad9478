"""Runtime configuration for the nginx-demo deploy and cleanup tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import typer
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

CONFIG_ENV_VAR = "NGINX_DEMO_CONFIG"
DEFAULT_CONFIG_PATH = Path("configs/deploy.yaml")
DEFAULT_MANIFEST_DIR = Path(__file__).resolve().parents[2] / "k8s-manifests"


class RetryBudget(BaseModel):
    model_config = ConfigDict(extra="forbid")

    attempts: int = Field(..., ge=1, description="Maximum number of checks before giving up")
    interval: float = Field(..., ge=0, description="Seconds slept between checks")


class ResourceNames(BaseModel):
    model_config = ConfigDict(extra="forbid")

    deployment: str = "nginx-demo-deployment"
    service: str = "nginx-demo-service"
    ingress: str = "nginx-demo-ingress"
    hpa: str = "nginx-demo-hpa"
    pod_selector: str = "app=nginx-demo"


class DeployConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    namespace: str = Field("nginx-demo", description="Namespace holding every demo resource")
    app_name: str = Field("nginx-demo", description="Naming prefix used for cloud resource lookups")
    cluster_context: str = Field("eks-demo-dev-cluster", description="Expected kubectl context")
    context_match: Literal["contains", "exact"] = Field(
        "contains",
        description="How the active context is compared with cluster_context",
    )
    region: str = "us-west-2"
    manifest_dir: Path = DEFAULT_MANIFEST_DIR
    render_dir: Optional[Path] = Field(
        default=None,
        description="Scratch directory for rendered manifests (a fresh temp dir when unset)",
    )
    static_manifests: List[str] = Field(
        default_factory=lambda: ["00-namespace.yaml", "01-deployment.yaml", "02-service.yaml", "04-hpa.yaml"]
    )
    ingress_template: str = "03-ingress.yaml.template"
    domain_placeholder: str = "DOMAIN_NAME"
    resources: ResourceNames = Field(default_factory=ResourceNames)
    cluster_issuers: List[str] = Field(
        default_factory=lambda: ["letsencrypt-prod", "letsencrypt-staging", "selfsigned-issuer"]
    )
    required_tools: List[str] = Field(default_factory=lambda: ["kubectl", "aws"])
    kubectl_cmd: str = "kubectl"
    aws_cmd: str = "aws"
    check_certificate: bool = True
    rollout_timeout: int = Field(300, ge=1, description="Seconds passed to kubectl rollout status")
    deployment_poll: RetryBudget = Field(default_factory=lambda: RetryBudget(attempts=5, interval=5))
    pod_poll: RetryBudget = Field(default_factory=lambda: RetryBudget(attempts=12, interval=5))
    ingress_poll: RetryBudget = Field(default_factory=lambda: RetryBudget(attempts=30, interval=10))
    namespace_delete_timeout: int = Field(300, ge=0)
    namespace_delete_interval: int = Field(5, ge=1)
    namespace_delete_report_every: int = Field(30, ge=1)
    backup_suffix: str = ".bak"

    @field_validator("static_manifests")
    @classmethod
    def _no_empty_names(cls, value: List[str]) -> List[str]:
        if any(not name.strip() for name in value):
            raise ValueError("static manifest names must not be empty")
        return value

    @property
    def template_path(self) -> Path:
        return self.manifest_dir / self.ingress_template

    @property
    def static_manifest_paths(self) -> List[Path]:
        return [self.manifest_dir / name for name in self.static_manifests]


def load_config(path: Optional[Path] = None) -> DeployConfig:
    """Load configuration from YAML.

    When ``path`` is omitted the ``NGINX_DEMO_CONFIG`` environment variable is
    consulted, then ``configs/deploy.yaml``; if neither exists the built-in
    defaults are used. Relative ``manifest_dir`` / ``render_dir`` entries are
    resolved against the config file's directory.
    """

    if path is None:
        override = os.environ.get(CONFIG_ENV_VAR)
        if override:
            path = Path(override).expanduser()
        elif DEFAULT_CONFIG_PATH.exists():
            path = DEFAULT_CONFIG_PATH
        else:
            return DeployConfig()

    data = _load_yaml(path)
    base_dir = path.resolve().parent
    for key in ("manifest_dir", "render_dir"):
        value = data.get(key)
        if isinstance(value, str):
            candidate = Path(value).expanduser()
            data[key] = candidate if candidate.is_absolute() else (base_dir / candidate).resolve()
    try:
        return DeployConfig(**data)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config {path}: {exc}") from exc


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("Config file must contain a mapping")
    return data
