"""kubectl access for the deploy and cleanup pipelines."""

from .client import KubectlClient

__all__ = ["KubectlClient"]
