"""Gitea provider."""

import logging
import re
import time
from collections.abc import Callable
from urllib.parse import quote

import httpx

from forge_release.core.config import CIEnvironment
from forge_release.core.retry import exponential_backoff, retry
from forge_release.models.release import (
    AssetConfig,
    AssetInfo,
    MalformedResponseError,
    ReleaseConfig,
    ReleaseResult,
)
from forge_release.providers.base import UPLOAD_TIMEOUT, ApiError, NotFoundError, Provider

logger = logging.getLogger(__name__)


API_PATH = "/api/v1"
ATTACHMENT_FIELD = "attachment"


class ReleaseConfirmationError(Exception):
    """A release was created but the server never showed it back."""

    pass


class GiteaProvider(Provider):
    """Release operations against the Gitea REST API.

    Gitea differs from GitHub in a few ways that stay inside this class:
    the tag has to exist before a release can point at it, the create
    call sometimes answers with an empty body, uploads are multipart and
    there is no release notes generator.
    """

    accept = "application/json"

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str,
        *,
        env: CIEnvironment | None = None,
        skip_certificate_check: bool = False,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(
            token,
            owner,
            repo,
            skip_certificate_check=skip_certificate_check,
            transport=transport,
            sleep=sleep,
        )
        self.env = env or CIEnvironment()
        self.api_base_url = re.sub(r"/api/v1/?$", "", base_url.rstrip("/")) + API_PATH
        logger.debug(
            "Gitea provider: api %s, repository %s/%s", self.api_base_url, self.owner, self.repo
        )

    def _url(self, path: str = "", owner: str | None = None, repo: str | None = None) -> str:
        url = f"{self.api_base_url}/repos/{owner or self.owner}/{repo or self.repo}"
        return f"{url}/{path}" if path else url

    # Tags and commits

    def _tag_exists(self, tag: str, owner: str | None = None, repo: str | None = None) -> bool:
        try:
            self.request("GET", self._url(f"git/refs/tags/{quote(tag)}", owner, repo))
        except NotFoundError:
            return False
        return True

    def _default_branch_sha(self, owner: str | None = None, repo: str | None = None) -> str:
        """HEAD commit of the repository's default branch."""
        logger.debug("Getting default branch HEAD SHA from Gitea")

        repository = self.request("GET", self._url("", owner, repo)).data
        branch = repository.get("default_branch") if isinstance(repository, dict) else None
        if not branch:
            raise MalformedResponseError("Could not determine default branch from repository")

        refs = self.request("GET", self._url(f"git/refs/heads/{quote(branch)}", owner, repo)).data
        # Gitea matches refs by prefix and may answer with a list
        if isinstance(refs, list):
            exact = [ref for ref in refs if ref.get("ref") == f"refs/heads/{branch}"]
            refs = (exact or refs or [{}])[0]

        sha = (refs.get("object") or {}).get("sha")
        if not sha:
            raise MalformedResponseError(f"Could not get HEAD SHA for branch {branch}")

        logger.debug("Default branch %s HEAD SHA: %s", branch, sha)
        return sha

    def _resolve_commit(
        self, commit: str | None, owner: str | None = None, repo: str | None = None
    ) -> str:
        """Explicit commit, then the runner's SHA, then default branch HEAD."""
        if commit:
            return commit
        if self.env.sha:
            logger.debug("Using commit SHA from environment: %s", self.env.sha[:7])
            return self.env.sha
        return self._default_branch_sha(owner, repo)

    def _post_tag(
        self,
        tag: str,
        commit: str,
        message: str | None,
        owner: str | None = None,
        repo: str | None = None,
    ) -> None:
        logger.debug("Creating Gitea tag: %s at commit: %s", tag, commit)
        self.request(
            "POST",
            self._url("tags", owner, repo),
            json={"tag_name": tag, "target": commit, "message": message or f"Release {tag}"},
        )
        logger.info("Created tag: %s", tag)

    def create_tag(self, tag: str, commit: str, message: str | None = None) -> None:
        if self._tag_exists(tag):
            logger.info("Tag %s already exists, leaving it in place", tag)
            return
        self._post_tag(tag, commit, message)

    # Releases

    def create_release(self, config: ReleaseConfig) -> ReleaseResult:
        logger.debug("Creating Gitea release for tag: %s", config.tag)
        owner, repo = config.owner, config.repo

        if not self._tag_exists(config.tag, owner, repo):
            logger.debug("Tag %s does not exist, creating it first", config.tag)
            commit = self._resolve_commit(config.commit, owner, repo)
            self._post_tag(config.tag, commit, f"Release {config.tag}", owner, repo)

        response = self.request(
            "POST",
            self._url("releases", owner, repo),
            json={"tag_name": config.tag, **config.to_payload()},
        )

        if not isinstance(response.data, dict) or not response.data.get("id"):
            logger.warning(
                "Gitea returned an empty body for the new release, fetching it by tag with retries"
            )
            return self._confirm_release(config.tag)

        release = ReleaseResult.from_api_response(response.data)
        logger.info("Created Gitea release: %s", release.html_url)
        return release

    def _confirm_release(self, tag: str) -> ReleaseResult:
        attempts = self.env.confirm_attempts
        release = retry(
            lambda: self.get_release_by_tag(tag) or self._find_in_release_list(tag),
            attempts=attempts,
            delay=exponential_backoff(self.env.confirm_delay, self.env.confirm_max_delay),
            sleep=self.sleep,
            description=f"confirmation of release {tag}",
        )
        if release is None:
            raise ReleaseConfirmationError(
                f"Release for tag {tag} was created but could not be confirmed "
                f"after {attempts} attempts"
            )
        return release

    def _find_in_release_list(self, tag: str) -> ReleaseResult | None:
        try:
            releases = self.request("GET", self._url("releases")).data or []
        except ApiError as e:
            logger.debug("Failed to list releases while confirming %s: %s", tag, e)
            return None

        for release in releases:
            if release.get("tag_name") == tag:
                return ReleaseResult.from_api_response(release)
        return None

    def update_release(self, release_id: str, config: ReleaseConfig) -> ReleaseResult:
        logger.debug("Updating Gitea release: %s", release_id)

        response = self.request(
            "PATCH",
            self._url(f"releases/{release_id}"),
            json=config.to_payload(),
        )
        data = response.data if isinstance(response.data, dict) else {}

        if not data.get("id"):
            logger.warning("Gitea returned an empty body for the updated release, keeping id %s", release_id)
            return ReleaseResult(
                id=release_id,
                html_url=data.get("html_url") or "",
                upload_url=data.get("upload_url") or "",
                tarball_url=data.get("tarball_url") or "",
                zipball_url=data.get("zipball_url") or "",
                draft=data.get("draft"),
                prerelease=data.get("prerelease"),
            )

        release = ReleaseResult.from_api_response(data)
        logger.info("Updated Gitea release: %s", release.html_url)
        return release

    def get_release_by_tag(self, tag: str) -> ReleaseResult | None:
        logger.debug("Getting Gitea release by tag: %s", tag)
        try:
            response = self.request("GET", self._url(f"releases/tags/{quote(tag)}"))
        except NotFoundError:
            return None
        return ReleaseResult.from_api_response(response.data)

    def generate_release_notes(self, tag: str, previous_tag: str | None = None) -> str:
        logger.warning(
            "Gitea does not support automatic release notes generation. "
            "Consider using a changelog generator."
        )
        return ""

    # Assets

    def upload_asset(self, release_id: str, upload_url: str, asset: AssetConfig) -> str:
        logger.debug("Uploading asset to Gitea release %s: %s", release_id, asset.path)

        content = self.read_asset(asset)
        url = upload_url or self._url(f"releases/{release_id}/assets")
        response = self.request(
            "POST",
            url,
            files={ATTACHMENT_FIELD: (asset.name, content, asset.content_type)},
            timeout=UPLOAD_TIMEOUT,
        )

        logger.info("Uploaded asset: %s", asset.name)
        data = response.data if isinstance(response.data, dict) else {}
        return data.get("browser_download_url") or data.get("url") or ""

    def delete_asset(self, asset_id: str) -> None:
        logger.debug("Deleting Gitea asset: %s", asset_id)
        self.request("DELETE", self._url(f"releases/attachments/{asset_id}"))
        logger.info("Deleted asset: %s", asset_id)

    def list_assets(self, release_id: str) -> list[AssetInfo]:
        """List assets, resolving `release_id` as a tag first.

        Assets found through the tag carry no id because the release
        endpoint does not expose one; those cannot be deleted by id.
        """
        logger.debug("Listing assets for Gitea release: %s", release_id)

        release = self.get_release_by_tag(release_id)
        if release is not None:
            return [AssetInfo(id="", name=name, url=url) for name, url in release.assets.items()]

        response = self.request("GET", self._url(f"releases/{release_id}"))
        return [AssetInfo.from_api_response(asset) for asset in response.data.get("assets") or []]
