"""Provider construction from detected platform and inputs."""

import httpx

from forge_release.core.config import CIEnvironment, ConfigError
from forge_release.core.detector import GITEA, PlatformInfo
from forge_release.core.repository import parse_repo_spec
from forge_release.models.inputs import ActionInputs
from forge_release.providers.base import Provider
from forge_release.providers.gitea import GiteaProvider
from forge_release.providers.github import GitHubProvider


def is_url(value: str | None) -> bool:
    return bool(value) and value.startswith(("http://", "https://"))


def resolve_coordinates(
    platform_info: PlatformInfo,
    inputs: ActionInputs,
    env: CIEnvironment,
) -> tuple[str, str]:
    """Work out (owner, repo) for the release.

    The repository input wins: a URL was already parsed by the detector,
    anything else must be owner/repo. Without it, explicit owner/repo
    inputs come first, then the detector, then the runner environment.
    """
    if inputs.repository:
        if is_url(inputs.repository):
            owner, repo = platform_info.owner or "", platform_info.repo or ""
        else:
            try:
                owner, repo = parse_repo_spec(inputs.repository)
            except ValueError as e:
                raise ConfigError(str(e)) from e
    else:
        env_owner, env_repo = env.repository_parts
        owner = inputs.owner or platform_info.owner or env.repository_owner or env_owner
        repo = inputs.repo or platform_info.repo or env_repo

    if not owner or not repo:
        raise ConfigError(
            "Repository owner and name must be provided or available from the environment"
        )
    return owner, repo


def create_provider(
    platform_info: PlatformInfo,
    inputs: ActionInputs,
    env: CIEnvironment,
    transport: httpx.BaseTransport | None = None,
) -> Provider:
    """Create the provider for the detected platform."""
    owner, repo = resolve_coordinates(platform_info, inputs, env)

    if platform_info.platform == GITEA:
        if not platform_info.base_url:
            raise ConfigError(
                "Gitea base URL is required. Ensure GITHUB_SERVER_URL is set "
                "or provide a repository URL."
            )
        return GiteaProvider(
            inputs.token,
            owner,
            repo,
            platform_info.base_url,
            env=env,
            skip_certificate_check=inputs.skip_certificate_check,
            transport=transport,
        )

    return GitHubProvider(
        inputs.token,
        owner,
        repo,
        skip_certificate_check=inputs.skip_certificate_check,
        transport=transport,
    )
