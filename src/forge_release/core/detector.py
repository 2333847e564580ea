"""Platform detection from explicit input, repository URL or environment."""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from forge_release.core.config import CIEnvironment, ConfigError

logger = logging.getLogger(__name__)

GITHUB = "github"
GITEA = "gitea"
PLATFORMS = (GITHUB, GITEA)


@dataclass
class PlatformInfo:
    """Which backend to talk to and where."""

    platform: str  # github, gitea
    base_url: str | None = None
    owner: str | None = None
    repo: str | None = None


def _path_parts(url: str) -> list[str]:
    return [part for part in urlparse(url).path.split("/") if part]


def _gitea_from_url(url: str, env: CIEnvironment) -> PlatformInfo:
    """Build Gitea info from a base URL or a repository URL."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigError(
            f"Invalid Gitea URL: {url}. Expected a base URL (https://gitea.example.com) "
            "or a repository URL (https://gitea.example.com/owner/repo)"
        )

    base_url = f"{parsed.scheme}://{parsed.netloc}"
    parts = _path_parts(url)
    if len(parts) >= 2:
        return PlatformInfo(GITEA, base_url, parts[0], parts[1].removesuffix(".git"))

    # Bare server URL, coordinates have to come from the runner
    _, env_repo = env.repository_parts
    return PlatformInfo(GITEA, base_url, env.repository_owner or None, env_repo or None)


def _detect_from_url(url: str, env: CIEnvironment) -> PlatformInfo:
    host = (urlparse(url).hostname or "").lower()
    if not host:
        logger.warning("Failed to parse repository URL: %s, defaulting to GitHub", url)
        return PlatformInfo(GITHUB)

    if "github" in host:
        parts = _path_parts(url)
        if len(parts) >= 2:
            return PlatformInfo(GITHUB, owner=parts[0], repo=parts[1].removesuffix(".git"))
        return PlatformInfo(GITHUB)

    if "gitea" in host:
        return _gitea_from_url(url, env)

    # A self-hosted instance on a custom domain is the runner's own server
    if env.server_url and host == (urlparse(env.server_url).hostname or "").lower():
        return _gitea_from_url(url, env)

    logger.warning("Could not detect platform from URL: %s, defaulting to GitHub", url)
    return PlatformInfo(GITHUB)


def detect_platform(
    explicit: str | None,
    repository_url: str | None,
    env: CIEnvironment,
) -> PlatformInfo:
    """Detect the platform to release on.

    An explicit platform always wins. Otherwise the repository URL (or
    the runner's server URL + repository) decides, defaulting to GitHub.
    """
    if explicit:
        platform = explicit.strip().lower()
        if platform not in PLATFORMS:
            raise ConfigError(
                f"Invalid platform: {explicit}. Supported platforms: {', '.join(PLATFORMS)}"
            )

        if platform == GITHUB:
            return PlatformInfo(GITHUB)

        if repository_url:
            return _gitea_from_url(repository_url, env)
        if env.server_url:
            owner, repo = env.repository_parts
            return PlatformInfo(GITEA, env.server_url, owner or None, repo or None)
        raise ConfigError(
            "Gitea URL could not be detected. Ensure GITHUB_SERVER_URL is set "
            "or provide a repository URL."
        )

    if not repository_url and env.server_url and env.repository:
        repository_url = f"{env.server_url.rstrip('/')}/{env.repository}"

    if repository_url:
        return _detect_from_url(repository_url, env)

    logger.warning("Could not detect platform from repository URL, defaulting to GitHub")
    return PlatformInfo(GITHUB)
