"""Logging setup for forge-release."""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "forge_release"


class AnnotationHandler(logging.Handler):
    """Emit warnings and errors as CI workflow commands.

    Runners turn ``::warning::`` and ``::error::`` lines on stdout into
    annotations on the job summary.
    """

    COMMANDS = {
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def __init__(self, stream=None):
        super().__init__(level=logging.WARNING)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return
        try:
            message = record.getMessage()
            # Workflow commands are single line; the runner decodes these escapes
            message = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
            stream = self.stream or sys.stdout
            stream.write(f"::{command}::{message}\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False, debug: bool = False, annotate: bool = False) -> logging.Logger:
    """Configure the forge_release logger.

    Args:
        verbose: Show debug messages from forge-release itself
        debug: Also show HTTP wire logs and full tracebacks
        annotate: Add the workflow command handler for warnings and errors

    Returns:
        The package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose or debug else logging.INFO)
    logger.propagate = False

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=debug,
        rich_tracebacks=debug,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if annotate:
        logger.addHandler(AnnotationHandler())

    if debug:
        for name in ("httpx", "httpcore"):
            wire = logging.getLogger(name)
            wire.setLevel(logging.DEBUG)
            wire.addHandler(handler)

    return logger


def mask_secret(secret: str, stream=None) -> None:
    """Ask the runner to redact `secret` from all further job output."""
    if not secret:
        return
    stream = stream or sys.stdout
    stream.write(f"::add-mask::{secret}\n")
    stream.flush()
