"""Release workflow: decide between create and update, then sync assets."""

import glob
import logging
import os
from pathlib import Path

from forge_release.core.config import CIEnvironment, ConfigError
from forge_release.core.outputs import OutputSink
from forge_release.models.inputs import ActionInputs
from forge_release.models.release import AssetConfig, AssetInfo, ReleaseConfig, ReleaseResult
from forge_release.providers.base import AssetError, Provider

logger = logging.getLogger(__name__)

TAG_REF_PREFIX = "refs/tags/"


class ReleaseStateError(Exception):
    """The existing release is in a state the inputs do not allow touching."""

    pass


def resolve_artifact_paths(patterns: str) -> list[Path]:
    """Expand a comma separated list of glob patterns into unique file paths.

    Matches keep their order (sorted within each pattern) and a path
    matched by several patterns is only returned once.
    """
    paths: list[str] = []
    for pattern in (p.strip() for p in patterns.split(",")):
        if not pattern:
            continue
        try:
            matches = sorted(glob.glob(pattern, recursive=True))
        except (OSError, ValueError) as e:
            logger.warning("Failed to expand glob pattern %s: %s", pattern, e)
            matches = []

        # Names with glob characters in them only match literally
        if not matches and os.path.exists(pattern):
            matches = [pattern]
        paths.extend(os.path.normpath(match) for match in matches)

    return [Path(path) for path in dict.fromkeys(paths)]


class ReleaseManager:
    """Drives one release through a provider.

    The manager never asks which platform it is talking to; everything
    platform specific lives in the provider.
    """

    def __init__(
        self,
        provider: Provider,
        inputs: ActionInputs,
        env: CIEnvironment,
        outputs: OutputSink | None = None,
    ):
        self.provider = provider
        self.inputs = inputs
        self.env = env
        self.outputs = outputs or OutputSink(env.output_file)

    def execute(self) -> ReleaseResult:
        """Create or update the release and upload artifacts."""
        tag = self.resolve_tag()
        logger.info("Processing release for tag: %s", tag)

        existing = self.provider.get_release_by_tag(tag)

        if existing is not None and self.inputs.skip_if_release_exists and not existing.draft:
            logger.info("Release for tag %s already exists, skipping", tag)
            self.outputs.publish(existing.to_outputs())
            return existing

        updating = existing is not None and self.inputs.allow_updates
        if updating and self.inputs.update_only_unreleased:
            if not (existing.draft or existing.prerelease):
                raise ReleaseStateError(
                    f"Release {tag} is already published and update_only_unreleased is set"
                )

        if existing is None and self.inputs.commit:
            self.provider.create_tag(tag, self.inputs.commit, f"Release {tag}")

        config = self.build_release_config(tag, existing)

        if self.inputs.generate_release_notes and existing is None and not config.body:
            notes = self._generate_notes(tag)
            if notes:
                config.body = notes

        if updating:
            logger.info("Updating existing release: %s", existing.id)
            release = self.provider.update_release(existing.id, config)
        else:
            logger.info("Creating new release")
            release = self.provider.create_release(config)

        if self.inputs.artifacts:
            release = self.reconcile_assets(release)

        self.outputs.publish(release.to_outputs())
        return release

    def resolve_tag(self) -> str:
        """Tag from inputs, else from a pushed tag ref."""
        if self.inputs.tag:
            return self.inputs.tag

        if self.env.ref.startswith(TAG_REF_PREFIX):
            return self.env.ref[len(TAG_REF_PREFIX):]

        raise ConfigError(
            "Tag is required. Provide the tag input or push a tag to trigger the workflow."
        )

    def build_release_config(self, tag: str, existing: ReleaseResult | None) -> ReleaseConfig:
        """Build the payload, leaving out every omitted field."""
        inputs = self.inputs
        updating = existing is not None and inputs.allow_updates

        def keep(omit: bool, omit_during_update: bool) -> bool:
            return not omit and not (updating and omit_during_update)

        config = ReleaseConfig(tag=tag, commit=inputs.commit, owner=inputs.owner, repo=inputs.repo)
        if keep(inputs.omit_name, inputs.omit_name_during_update):
            config.name = inputs.name or tag
        if keep(inputs.omit_body, inputs.omit_body_during_update):
            config.body = self._read_body()
        if keep(inputs.omit_draft, inputs.omit_draft_during_update):
            config.draft = inputs.draft
        if keep(inputs.omit_prerelease, inputs.omit_prerelease_during_update):
            config.prerelease = inputs.prerelease
        return config

    def _read_body(self) -> str:
        if self.inputs.body_file:
            if not self.inputs.body_file.is_file():
                raise ConfigError(f"Body file not found: {self.inputs.body_file}")
            return self.inputs.body_file.read_text(encoding="utf-8").strip()
        return (self.inputs.body or "").strip()

    def _generate_notes(self, tag: str) -> str:
        logger.debug("Generating release notes")
        try:
            return self.provider.generate_release_notes(
                tag, self.inputs.generate_release_notes_previous_tag
            )
        except Exception as e:
            logger.warning("Failed to generate release notes: %s", e)
            return ""

    # Assets

    def _asset_failure(self, error: Exception, message: str) -> None:
        """Raise or log an asset stage failure, depending on policy."""
        if self.inputs.artifact_errors_fail_build:
            raise error
        logger.warning("%s: %s", message, error)

    def _existing_assets(self, release: ReleaseResult) -> list[AssetInfo]:
        try:
            return self.provider.list_assets(release.id)
        except Exception as e:
            self._asset_failure(e, "Failed to list existing assets")
            return []

    def _delete_assets(self, assets: list[AssetInfo]) -> set[str]:
        """Delete assets by id and return the names that are gone."""
        deleted = set()
        for asset in assets:
            if not asset.id:
                logger.warning("Cannot remove asset %s: the server did not report its id", asset.name)
                continue
            try:
                self.provider.delete_asset(asset.id)
                logger.info("Removed existing asset: %s", asset.name)
                deleted.add(asset.name)
            except Exception as e:
                self._asset_failure(e, f"Failed to remove asset {asset.name}")
        return deleted

    def reconcile_assets(self, release: ReleaseResult) -> ReleaseResult:
        """Upload artifacts, clearing old ones first when asked to.

        Returns the release with deleted assets dropped and uploaded ones
        merged in.
        """
        paths = resolve_artifact_paths(self.inputs.artifacts or "")
        if not paths:
            logger.warning("No artifacts found to upload")
            return release

        deleted: set[str] = set()
        if self.inputs.remove_artifacts:
            deleted = self._delete_assets(self._existing_assets(release))
        elif self.inputs.replaces_artifacts:
            names = {path.name for path in paths}
            deleted = self._delete_assets(
                [asset for asset in self._existing_assets(release) if asset.name in names]
            )

        uploaded: dict[str, str] = {}
        for path in paths:
            try:
                if not path.exists():
                    raise AssetError(f"Asset file not found: {path}")
                if not path.is_file():
                    raise AssetError(f"Asset path is not a file: {path}")

                asset = AssetConfig(path=path, content_type=self.inputs.artifact_content_type)
                uploaded[asset.name] = self.provider.upload_asset(
                    release.id, release.upload_url, asset
                )
            except Exception as e:
                self._asset_failure(e, f"Failed to upload asset {path}")

        return release.without_assets(deleted).with_assets(uploaded)
