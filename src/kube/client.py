from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from src.common.errors import KubectlError

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]

_NOT_FOUND_MARKERS = ("NotFound", "not found")


class KubectlClient:
    """Thin wrapper over the kubectl binary.

    Every call goes through ``runner`` (``subprocess.run`` by default) with
    captured text output and ``check=False``; callers decide whether a
    non-zero exit is fatal.
    """

    def __init__(self, kubectl_cmd: str = "kubectl", *, runner: Runner = subprocess.run) -> None:
        self.kubectl_cmd = kubectl_cmd
        self._runner = runner

    def run(self, args: Sequence[str], *, timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        cmd = [self.kubectl_cmd, *args]
        logger.debug("+ %s", " ".join(cmd))
        try:
            return self._runner(cmd, capture_output=True, text=True, check=False, timeout=timeout)
        except FileNotFoundError:
            return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=f"{self.kubectl_cmd} executable not found")

    # Reads

    def current_context(self) -> Optional[str]:
        proc = self.run(["config", "current-context"])
        if proc.returncode != 0:
            return None
        context = (proc.stdout or "").strip()
        return context or None

    def cluster_reachable(self) -> bool:
        return self.run(["cluster-info"]).returncode == 0

    def exists(self, kind: str, name: str, namespace: Optional[str] = None) -> bool:
        return self.run(self._scoped(["get", kind, name], namespace)).returncode == 0

    def get_table(self, kind: str, name: Optional[str] = None, *, namespace: Optional[str] = None,
                  selector: Optional[str] = None, all_namespaces: bool = False,
                  field_selector: Optional[str] = None, no_headers: bool = False) -> Optional[str]:
        """Return ``kubectl get`` tabular output, or ``None`` when nothing matched."""

        args = ["get", kind]
        if name:
            args.append(name)
        if all_namespaces:
            args.append("--all-namespaces")
        args = self._scoped(args, None if all_namespaces else namespace)
        if selector:
            args.extend(["-l", selector])
        if field_selector:
            args.append(f"--field-selector={field_selector}")
        if no_headers:
            args.append("--no-headers")
        proc = self.run(args)
        if proc.returncode != 0:
            return None
        output = (proc.stdout or "").strip()
        if not output or output.startswith("No resources found"):
            return None
        return output

    def get_json(self, kind: str, name: Optional[str] = None, *, namespace: Optional[str] = None,
                 selector: Optional[str] = None, field_selector: Optional[str] = None) -> Optional[Dict[str, Any]]:
        args = ["get", kind]
        if name:
            args.append(name)
        args = self._scoped(args, namespace)
        if selector:
            args.extend(["-l", selector])
        if field_selector:
            args.append(f"--field-selector={field_selector}")
        args.extend(["-o", "json"])
        proc = self.run(args)
        if proc.returncode != 0:
            if self._is_not_found(proc):
                return None
            raise KubectlError(args, (proc.stderr or "").strip())
        try:
            return json.loads(proc.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise KubectlError(args, f"unparseable output: {exc}") from exc

    def count_running_pods(self, namespace: str, selector: str) -> int:
        data = self.get_json("pods", namespace=namespace, selector=selector, field_selector="status.phase=Running")
        if not data:
            return 0
        return len(data.get("items") or [])

    def ingress_hostname(self, name: str, namespace: str) -> Optional[str]:
        data = self.get_json("ingress", name, namespace=namespace)
        if not data:
            return None
        entries = ((data.get("status") or {}).get("loadBalancer") or {}).get("ingress") or []
        if not entries or not isinstance(entries[0], dict):
            return None
        return entries[0].get("hostname") or None

    def rollout_status(self, deployment: str, namespace: str, timeout_seconds: int) -> bool:
        proc = self.run(
            ["rollout", "status", f"deployment/{deployment}", "-n", namespace, f"--timeout={timeout_seconds}s"]
        )
        if proc.stdout:
            logger.info(proc.stdout.strip())
        return proc.returncode == 0

    # Writes

    def apply(self, manifest: Path) -> subprocess.CompletedProcess:
        return self.run(["apply", "-f", str(manifest)])

    def delete(self, kind: str, name: str, *, namespace: Optional[str] = None,
               dry_run: bool = False) -> subprocess.CompletedProcess:
        args = self._scoped(["delete", kind, name], namespace)
        if dry_run:
            args.append("--dry-run=client")
        return self.run(args)

    @staticmethod
    def _scoped(args: List[str], namespace: Optional[str]) -> List[str]:
        if namespace:
            return [*args, "-n", namespace]
        return list(args)

    @staticmethod
    def _is_not_found(proc: subprocess.CompletedProcess) -> bool:
        stderr = proc.stderr or ""
        return any(marker in stderr for marker in _NOT_FOUND_MARKERS)
