from __future__ import annotations

import logging
import re
import shutil
import signal
import tempfile
from pathlib import Path
from typing import Mapping, Optional, Set

from src.common.errors import RenderTargetUnwritable, TemplateNotFound

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".template"


def substitute(text: str, values: Mapping[str, str]) -> str:
    """Replace ``${NAME}`` and ``$NAME`` for every name in ``values``.

    Anything else, including unknown ``$VARS``, is left byte-for-byte intact.
    """

    if not values:
        return text
    names = "|".join(re.escape(name) for name in sorted(values, key=len, reverse=True))
    pattern = re.compile(rf"\$\{{({names})\}}|\$({names})(?![A-Za-z0-9_])")
    return pattern.sub(lambda match: values[match.group(1) or match.group(2)], text)


class TemplateRenderer:
    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def render(self, template: Path, values: Mapping[str, str]) -> Path:
        if not template.is_file():
            raise TemplateNotFound(template)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RenderTargetUnwritable(self.output_dir, str(exc)) from exc

        name = template.name[: -len(TEMPLATE_SUFFIX)] if template.name.endswith(TEMPLATE_SUFFIX) else template.name
        target = self.output_dir / name
        # newline="" keeps CRLF templates byte-identical
        with template.open("r", encoding="utf-8", newline="") as handle:
            rendered = substitute(handle.read(), values)
        try:
            with target.open("w", encoding="utf-8", newline="") as handle:
                handle.write(rendered)
        except OSError as exc:
            raise RenderTargetUnwritable(target, str(exc)) from exc
        return target


class RenderWorkspace:
    """Scratch directory for rendered manifests, removed however the run ends.

    A fresh temp dir is removed wholesale. A configured directory is only
    removed if this run created it; otherwise just the entries added during
    the run are deleted. While active, SIGTERM is turned into ``SystemExit``
    so the ``finally`` path also runs when the process is terminated.
    """

    def __init__(self, directory: Optional[Path] = None, prefix: str = "nginx-demo-") -> None:
        self._requested = directory
        self._prefix = prefix
        self.path: Optional[Path] = None
        self._owned: Optional[Path] = None
        self._preexisting: Set[Path] = set()
        self._previous_handler = None

    def __enter__(self) -> Path:
        if self._requested is not None:
            self.path = self._requested
            self._claim_requested(self._requested)
        else:
            try:
                self.path = Path(tempfile.mkdtemp(prefix=self._prefix))
            except OSError as exc:
                raise RenderTargetUnwritable(Path(tempfile.gettempdir()), str(exc)) from exc
            self._owned = self.path
        self._install_signal_handler()
        return self.path

    def __exit__(self, exc_type, exc, tb) -> None:
        self._restore_signal_handler()
        if self._owned is not None:
            if self._owned.exists():
                shutil.rmtree(self._owned, ignore_errors=True)
        elif self.path is not None and self.path.is_dir():
            for entry in self.path.iterdir():
                if entry in self._preexisting:
                    continue
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry, ignore_errors=True)
                else:
                    entry.unlink(missing_ok=True)
        logger.info("Cleaned up temporary files")

    def _claim_requested(self, directory: Path) -> None:
        if directory.is_dir():
            self._preexisting = set(directory.iterdir())
            return
        # topmost missing ancestor, so nested paths are removed completely
        missing = directory
        while not missing.parent.exists() and missing.parent != missing:
            missing = missing.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RenderTargetUnwritable(directory, str(exc)) from exc
        self._owned = missing

    def _install_signal_handler(self) -> None:
        try:
            self._previous_handler = signal.signal(signal.SIGTERM, _raise_system_exit)
        except ValueError:
            # signal handlers can only be installed from the main thread
            self._previous_handler = None

    def _restore_signal_handler(self) -> None:
        if self._previous_handler is not None:
            signal.signal(signal.SIGTERM, self._previous_handler)
            self._previous_handler = None


def _raise_system_exit(signum, frame) -> None:
    raise SystemExit(128 + signum)
