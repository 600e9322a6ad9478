"""Deploy pipeline for the nginx-demo application."""

from .orchestrator import DeployOrchestrator, DeployResult
from .validator import validate_domain

__all__ = [
    "DeployOrchestrator",
    "DeployResult",
    "validate_domain",
]
