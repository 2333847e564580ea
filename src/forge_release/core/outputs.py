"""Publishing step outputs for the calling pipeline."""

import logging
import uuid
from pathlib import Path

from rich.console import Console

logger = logging.getLogger(__name__)


class OutputSink:
    """Writes key/value outputs to the runner's output file.

    Without an output file (running outside CI) the values are printed.
    """

    def __init__(self, output_file: Path | None = None, console: Console | None = None):
        self.output_file = output_file
        self.console = console or Console()
        self.values: dict[str, str] = {}

    def set_output(self, key: str, value: str) -> None:
        """Publish one output value."""
        self.values[key] = value
        logger.debug("Output %s=%s", key, value)

        if self.output_file is None:
            self.console.print(f"[bold]{key}[/bold]={value}", highlight=False)
            return

        with open(self.output_file, "a", encoding="utf-8") as f:
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{key}={value}\n")

    def publish(self, outputs: dict[str, str]) -> None:
        """Publish several output values in order."""
        for key, value in outputs.items():
            self.set_output(key, value)
