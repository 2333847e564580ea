"""Release data models shared by every provider."""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path


DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MalformedResponseError(Exception):
    """The API answered with something that is not a usable response."""

    pass


@dataclass
class ReleaseConfig:
    """Desired state of a release.

    Fields left as None are omitted from API payloads entirely, which is
    different from sending an empty string or False.
    """

    tag: str
    name: str | None = None
    body: str | None = None
    draft: bool | None = None
    prerelease: bool | None = None
    commit: str | None = None  # only used when the tag has to be created
    owner: str | None = None
    repo: str | None = None

    def to_payload(self) -> dict:
        """Release fields to send, skipping any that are unset."""
        fields = {
            "name": self.name,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }
        return {key: value for key, value in fields.items() if value is not None}


@dataclass(frozen=True)
class ReleaseResult:
    """A release as seen by the caller, whatever the backend."""

    id: str
    html_url: str
    upload_url: str
    tarball_url: str = ""
    zipball_url: str = ""
    assets: dict[str, str] = field(default_factory=dict)
    draft: bool | None = None
    prerelease: bool | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> "ReleaseResult":
        """Create ReleaseResult from a release object returned by the API."""
        if not data.get("id"):
            raise MalformedResponseError("Release response does not contain an id")

        assets = {
            asset["name"]: asset.get("browser_download_url", "")
            for asset in data.get("assets") or []
        }
        return cls(
            id=str(data["id"]),
            html_url=data.get("html_url") or "",
            upload_url=data.get("upload_url") or "",
            tarball_url=data.get("tarball_url") or "",
            zipball_url=data.get("zipball_url") or "",
            assets=assets,
            draft=data.get("draft"),
            prerelease=data.get("prerelease"),
        )

    def with_assets(self, uploaded: dict[str, str]) -> "ReleaseResult":
        """Return a copy with uploaded assets merged over the known ones."""
        return replace(self, assets={**self.assets, **uploaded})

    def without_assets(self, names) -> "ReleaseResult":
        """Return a copy that no longer lists the named assets."""
        return replace(
            self, assets={name: url for name, url in self.assets.items() if name not in names}
        )

    def to_outputs(self) -> dict[str, str]:
        """Key/value pairs published for the calling pipeline."""
        outputs = {
            "id": self.id,
            "html_url": self.html_url,
            "upload_url": self.upload_url,
        }
        if self.tarball_url:
            outputs["tarball_url"] = self.tarball_url
        if self.zipball_url:
            outputs["zipball_url"] = self.zipball_url
        if self.assets:
            outputs["assets"] = json.dumps(self.assets)
        return outputs


@dataclass
class AssetConfig:
    """A local file to attach to a release."""

    path: Path
    name: str | None = None
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self):
        self.path = Path(self.path)
        if not self.name:
            self.name = self.path.name
        if not self.content_type:
            self.content_type = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class AssetInfo:
    """An asset already attached to a release."""

    id: str
    name: str
    url: str

    @classmethod
    def from_api_response(cls, data: dict) -> "AssetInfo":
        """Create AssetInfo from an asset object returned by the API."""
        return cls(
            id=str(data.get("id") or ""),
            name=data["name"],
            url=data.get("browser_download_url", ""),
        )
