"""Publish command implementation."""

import logging
from pathlib import Path

import click
import httpx
from rich.console import Console

from forge_release.core.config import (
    CIEnvironment,
    ConfigError,
    input_env_var,
    load_config_file,
    load_inputs,
)
from forge_release.core.detector import detect_platform
from forge_release.core.log import mask_secret, setup_logging
from forge_release.core.manager import ReleaseManager, ReleaseStateError
from forge_release.core.outputs import OutputSink
from forge_release.models.release import MalformedResponseError
from forge_release.providers.base import ApiError, AssetError
from forge_release.providers.factory import create_provider, is_url
from forge_release.providers.gitea import ReleaseConfirmationError

console = Console(stderr=True)
logger = logging.getLogger("forge_release")

FATAL_ERRORS = (
    ConfigError,
    ApiError,
    AssetError,
    MalformedResponseError,
    ReleaseConfirmationError,
    ReleaseStateError,
    httpx.HTTPError,
)


def load_config_defaults(ctx: click.Context, param: click.Parameter, value: str | None):
    """Use a YAML config file as defaults for every other option."""
    if value:
        try:
            defaults = load_config_file(Path(value))
        except ConfigError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e
        ctx.default_map = {**(ctx.default_map or {}), **defaults}
    return value


def text_input(name: str, help: str, **kwargs):
    """Option for a text input, readable from INPUT_<NAME>."""
    option = "--" + "".join(f"-{c.lower()}" if c.isupper() else c for c in name)
    return click.option(option, envvar=input_env_var(name), help=help, **kwargs)


def flag_input(name: str, help: str):
    """Boolean option for a flag input, readable from INPUT_<NAME>."""
    return text_input(name, help, is_flag=True, default=False)


def repository_url_for(repository: str | None, env: CIEnvironment) -> str | None:
    """URL the detector should look at, when one can be derived."""
    if is_url(repository):
        return repository
    if env.server_url and env.repository:
        return f"{env.server_url.rstrip('/')}/{env.repository}"
    return None


INPUTS = [
    click.option(
        "--config",
        type=click.Path(exists=True, dir_okay=False),
        is_eager=True,
        expose_value=False,
        callback=load_config_defaults,
        help="YAML file with default input values",
    ),
    text_input("platform", "Platform to release on: github or gitea (auto-detected by default)"),
    click.option(
        "--token",
        envvar=["INPUT_TOKEN", "GITHUB_TOKEN"],
        help="API token (defaults to GITHUB_TOKEN)",
    ),
    text_input("tag", "Tag of the release (defaults to the pushed tag)"),
    text_input("name", "Release title (defaults to the tag)"),
    text_input("body", "Release description"),
    text_input("bodyFile", "File to read the release description from"),
    flag_input("draft", "Mark the release as a draft"),
    flag_input("prerelease", "Mark the release as a prerelease"),
    text_input("commit", "Commit to create the tag at when it does not exist"),
    text_input("artifacts", "Comma separated glob patterns of files to upload"),
    text_input("artifactContentType", "Content type for uploaded artifacts"),
    flag_input("replacesArtifacts", "Replace existing assets that have the same name"),
    flag_input("removeArtifacts", "Remove all existing assets before uploading"),
    flag_input("artifactErrorsFailBuild", "Fail when an artifact cannot be removed or uploaded"),
    flag_input("allowUpdates", "Update the release when it already exists"),
    flag_input("skipIfReleaseExists", "Do nothing when a published release already exists"),
    flag_input("updateOnlyUnreleased", "Only update drafts and prereleases"),
    flag_input("generateReleaseNotes", "Generate release notes for new releases"),
    text_input("generateReleaseNotesPreviousTag", "Tag to generate release notes from"),
    text_input("repository", "Repository as owner/repo or URL"),
    text_input("owner", "Repository owner"),
    text_input("repo", "Repository name"),
    flag_input("omitName", "Never send the release name"),
    flag_input("omitNameDuringUpdate", "Do not send the release name when updating"),
    flag_input("omitBody", "Never send the release body"),
    flag_input("omitBodyDuringUpdate", "Do not send the release body when updating"),
    flag_input("omitDraft", "Never send the draft flag"),
    flag_input("omitDraftDuringUpdate", "Do not send the draft flag when updating"),
    flag_input("omitPrerelease", "Never send the prerelease flag"),
    flag_input("omitPrereleaseDuringUpdate", "Do not send the prerelease flag when updating"),
    flag_input("verbose", "Show debug messages"),
    flag_input("debug", "Show debug messages and HTTP traffic"),
    flag_input("skipCertificateCheck", "Do not verify TLS certificates"),
]


def with_inputs(func):
    for option in reversed(INPUTS):
        func = option(func)
    return func


@click.command()
@with_inputs
def publish(**params):
    """Create or update a release and upload its artifacts.

    Every option can also be given as an INPUT_<NAME> environment
    variable, the way CI runners pass action inputs.
    """
    try:
        env = CIEnvironment.from_environ()
        inputs = load_inputs(params, env)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    setup_logging(inputs.verbose, inputs.debug, annotate=env.in_actions)
    if env.in_actions:
        mask_secret(inputs.token)

    if inputs.skip_certificate_check:
        logger.warning(
            "TLS certificate verification is disabled. Only use this with trusted endpoints."
        )

    try:
        platform_info = detect_platform(
            inputs.platform, repository_url_for(inputs.repository, env), env
        )
        logger.info("Detected platform: %s", platform_info.platform)

        with create_provider(platform_info, inputs, env) as provider:
            manager = ReleaseManager(provider, inputs, env, OutputSink(env.output_file))
            release = manager.execute()
    except FATAL_ERRORS as e:
        logger.error("%s", e)
        raise SystemExit(1)

    console.print(f"[green]✓[/green] Release ready: [bold]{release.html_url or release.id}[/bold]")
