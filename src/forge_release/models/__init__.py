"""Data models for forge-release."""

from forge_release.models.inputs import ActionInputs
from forge_release.models.release import AssetConfig, AssetInfo, ReleaseConfig, ReleaseResult

__all__ = ["ActionInputs", "AssetConfig", "AssetInfo", "ReleaseConfig", "ReleaseResult"]
