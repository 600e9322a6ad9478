"""Console logging with the coloured ``[LEVEL]`` prefixes operators expect."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

import typer

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVEL_COLOURS = {
    logging.DEBUG: None,
    logging.INFO: typer.colors.BLUE,
    SUCCESS: typer.colors.GREEN,
    logging.WARNING: typer.colors.YELLOW,
    logging.ERROR: typer.colors.RED,
    logging.CRITICAL: typer.colors.RED,
}


class ColourFormatter(logging.Formatter):
    def __init__(self, colour: bool = True) -> None:
        super().__init__("%(message)s")
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = f"[{record.levelname}]"
        fg = _LEVEL_COLOURS.get(record.levelno)
        if self.colour and fg:
            prefix = typer.style(prefix, fg=fg)
        return f"{prefix} {message}"


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColourFormatter(colour=stream.isatty()))
    logging.basicConfig(level=level, handlers=[handler], force=True)


def success(logger: logging.Logger, message: str, *args) -> None:
    logger.log(SUCCESS, message, *args)
