"""Platform providers."""

from forge_release.providers.base import ApiError, AssetError, NotFoundError, Provider
from forge_release.providers.gitea import GiteaProvider, ReleaseConfirmationError
from forge_release.providers.github import GitHubProvider

__all__ = [
    "ApiError",
    "AssetError",
    "GiteaProvider",
    "GitHubProvider",
    "NotFoundError",
    "Provider",
    "ReleaseConfirmationError",
]
