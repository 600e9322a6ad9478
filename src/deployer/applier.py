from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

from src.common.console import success
from src.common.errors import ApplyFailed, MissingRenderedManifest
from src.kube.client import KubectlClient

logger = logging.getLogger(__name__)


class ManifestApplier:
    def __init__(self, kubectl: KubectlClient) -> None:
        self.kubectl = kubectl

    def apply_all(self, static_manifests: Sequence[Path], rendered_ingress: Path) -> List[Path]:
        """Apply static manifests in order, then the rendered ingress.

        Missing static manifests are skipped with a warning; a missing
        rendered ingress is fatal. Returns the manifests actually applied.
        """

        logger.info("Deploying manifests...")
        applied: List[Path] = []
        for manifest in static_manifests:
            if not manifest.is_file():
                logger.warning("Manifest not found: %s", manifest.name)
                continue
            logger.info("Applying %s...", manifest.name)
            self._apply(manifest)
            applied.append(manifest)

        if not rendered_ingress.is_file():
            raise MissingRenderedManifest(rendered_ingress)
        logger.info("Applying processed ingress...")
        self._apply(rendered_ingress)
        applied.append(rendered_ingress)

        success(logger, "All manifests deployed")
        return applied

    def _apply(self, manifest: Path) -> None:
        proc = self.kubectl.apply(manifest)
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip() or f"exit code {proc.returncode}"
            raise ApplyFailed(manifest, detail)
        if proc.stdout:
            logger.info(proc.stdout.strip())
