"""GitHub provider."""

import logging
import re
from dataclasses import replace
from urllib.parse import quote

from forge_release.core.retry import fixed_delay, retry
from forge_release.models.release import AssetConfig, AssetInfo, ReleaseConfig, ReleaseResult
from forge_release.providers.base import UPLOAD_TIMEOUT, NotFoundError, Provider

logger = logging.getLogger(__name__)


GITHUB_API_BASE = "https://api.github.com"

# upload_url comes back as ".../assets{?name,label}"
UPLOAD_URL_TEMPLATE = re.compile(r"\{\?[^}]*\}$")

# Draft releases are not served by the tags endpoint and show up in the
# release list with some delay
DRAFT_LOOKUP_ATTEMPTS = 3
DRAFT_LOOKUP_DELAY = 1.0
RELEASES_PER_PAGE = 100


class GitHubProvider(Provider):
    """Release operations against the GitHub REST API."""

    accept = "application/vnd.github+json"
    extra_headers = {"X-GitHub-Api-Version": "2022-11-28"}

    def _url(self, path: str, owner: str | None = None, repo: str | None = None) -> str:
        return f"{GITHUB_API_BASE}/repos/{owner or self.owner}/{repo or self.repo}/{path}"

    def _to_result(self, data: dict) -> ReleaseResult:
        result = ReleaseResult.from_api_response(data)
        return replace(result, upload_url=UPLOAD_URL_TEMPLATE.sub("", result.upload_url))

    def create_release(self, config: ReleaseConfig) -> ReleaseResult:
        logger.debug("Creating GitHub release for tag: %s", config.tag)

        payload = {
            "tag_name": config.tag,
            **config.to_payload(),
            "generate_release_notes": False,  # notes are generated separately
        }
        response = self.request(
            "POST",
            self._url("releases", config.owner, config.repo),
            json=payload,
        )
        release = self._to_result(response.data)

        logger.info("Created GitHub release: %s", release.html_url)
        return release

    def update_release(self, release_id: str, config: ReleaseConfig) -> ReleaseResult:
        logger.debug("Updating GitHub release: %s", release_id)

        response = self.request(
            "PATCH",
            self._url(f"releases/{release_id}"),
            json=config.to_payload(),
        )
        release = self._to_result(response.data)

        logger.info("Updated GitHub release: %s", release.html_url)
        return release

    def get_release_by_tag(self, tag: str) -> ReleaseResult | None:
        logger.debug("Getting GitHub release by tag: %s", tag)

        try:
            response = self.request("GET", self._url(f"releases/tags/{quote(tag)}"))
        except NotFoundError:
            logger.debug("Release not found via tag endpoint, checking drafts for tag: %s", tag)
            return self._find_in_release_list(tag)

        return self._to_result(response.data)

    def _find_in_release_list(self, tag: str) -> ReleaseResult | None:
        """Scan the release list for `tag`; this also covers drafts."""

        def scan() -> dict | None:
            response = self.request(
                "GET",
                self._url("releases"),
                params={"per_page": RELEASES_PER_PAGE},
            )
            releases = response.data or []
            logger.debug("Found %d releases in list, looking for tag: %s", len(releases), tag)
            for release in releases:
                if release.get("tag_name") == tag:
                    return release
            return None

        found = retry(
            scan,
            attempts=DRAFT_LOOKUP_ATTEMPTS,
            delay=fixed_delay(DRAFT_LOOKUP_DELAY),
            sleep=self.sleep,
            description=f"draft lookup for {tag}",
        )
        if found is None:
            logger.debug("No release for tag %s after %d list scans", tag, DRAFT_LOOKUP_ATTEMPTS)
            return None

        logger.debug("Found release in list: %s, draft: %s", found.get("id"), found.get("draft"))
        return self._to_result(found)

    def upload_asset(self, release_id: str, upload_url: str, asset: AssetConfig) -> str:
        logger.debug("Uploading asset to GitHub release %s: %s", release_id, asset.path)

        content = self.read_asset(asset)
        # Raw body upload; name travels in the query string
        response = self.request(
            "POST",
            upload_url,
            params={"name": asset.name},
            content=content,
            headers={
                "Content-Type": asset.content_type,
                "Content-Length": str(len(content)),
            },
            timeout=UPLOAD_TIMEOUT,
        )

        logger.info("Uploaded asset: %s", asset.name)
        return response.data.get("browser_download_url", "")

    def delete_asset(self, asset_id: str) -> None:
        logger.debug("Deleting GitHub asset: %s", asset_id)
        self.request("DELETE", self._url(f"releases/assets/{asset_id}"))
        logger.info("Deleted asset: %s", asset_id)

    def list_assets(self, release_id: str) -> list[AssetInfo]:
        logger.debug("Listing assets for GitHub release: %s", release_id)
        response = self.request(
            "GET",
            self._url(f"releases/{release_id}/assets"),
            params={"per_page": RELEASES_PER_PAGE},
        )
        return [AssetInfo.from_api_response(asset) for asset in response.data or []]

    def _tag_exists(self, tag: str) -> bool:
        try:
            self.request("GET", self._url(f"git/ref/tags/{quote(tag)}"))
        except NotFoundError:
            return False
        return True

    def create_tag(self, tag: str, commit: str, message: str | None = None) -> None:
        if self._tag_exists(tag):
            logger.info("Tag %s already exists, leaving it in place", tag)
            return

        logger.debug("Creating GitHub tag: %s at commit: %s", tag, commit)

        self.request(
            "POST",
            self._url("git/refs"),
            json={"ref": f"refs/tags/{tag}", "sha": commit},
        )

        if message:
            # Annotated tag: create the tag object, then point the ref at it
            response = self.request(
                "POST",
                self._url("git/tags"),
                json={"tag": tag, "message": message, "object": commit, "type": "commit"},
            )
            self.request(
                "PATCH",
                self._url(f"git/refs/tags/{quote(tag)}"),
                json={"sha": response.data["sha"]},
            )

        logger.info("Created tag: %s", tag)

    def generate_release_notes(self, tag: str, previous_tag: str | None = None) -> str:
        logger.debug("Generating GitHub release notes for tag: %s", tag)

        payload = {"tag_name": tag}
        if previous_tag:
            payload["previous_tag_name"] = previous_tag

        response = self.request("POST", self._url("releases/generate-notes"), json=payload)
        return response.data.get("body", "")
