"""Detect command implementation."""

import click
from rich.console import Console
from rich.panel import Panel

from forge_release.core.config import CIEnvironment, ConfigError, input_env_var
from forge_release.core.detector import detect_platform

console = Console()


@click.command()
@click.option("--platform", envvar=input_env_var("platform"), help="Explicit platform")
@click.option("--repository", envvar=input_env_var("repository"), help="Repository URL")
def detect(platform: str | None, repository: str | None):
    """Show which platform and repository a release would go to."""
    try:
        env = CIEnvironment.from_environ()
        info = detect_platform(platform, repository, env)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    lines = [
        f"[bold]Platform:[/bold] {info.platform}",
        f"[bold]Base URL:[/bold] {info.base_url or '-'}",
        f"[bold]Owner:[/bold] {info.owner or '-'}",
        f"[bold]Repository:[/bold] {info.repo or '-'}",
    ]
    console.print(Panel("\n".join(lines), title="Detected platform"))
