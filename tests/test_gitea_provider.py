"""Tests for the Gitea provider."""

import logging

import pytest

from forge_release.core.config import CIEnvironment
from forge_release.models.release import AssetConfig, ReleaseConfig
from forge_release.providers.base import AssetError
from forge_release.providers.gitea import GiteaProvider, ReleaseConfirmationError

API = "/api/v1/repos/owner/repo"
RELEASES = f"{API}/releases"


def release_json(**overrides):
    data = {
        "id": 42,
        "tag_name": "v1.0.0",
        "html_url": "https://gitea.example.com/owner/repo/releases/tag/v1.0.0",
        "upload_url": "https://gitea.example.com/api/v1/repos/owner/repo/releases/42/assets",
        "tarball_url": "https://gitea.example.com/owner/repo/archive/v1.0.0.tar.gz",
        "zipball_url": "https://gitea.example.com/owner/repo/archive/v1.0.0.zip",
        "draft": False,
        "prerelease": False,
        "assets": [],
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize(
    "base_url",
    [
        "https://gitea.example.com",
        "https://gitea.example.com/",
        "https://gitea.example.com/api/v1",
        "https://gitea.example.com/api/v1/",
    ],
)
def test_api_base_url_is_normalized(base_url):
    with GiteaProvider("t", "owner", "repo", base_url) as provider:
        assert provider.api_base_url == "https://gitea.example.com/api/v1"


class TestCreateRelease:
    def test_existing_tag_is_not_recreated(self, gitea, mock_api):
        mock_api.add("GET", f"{API}/git/refs/tags/v1.0.0", json={"ref": "refs/tags/v1.0.0"})
        mock_api.add("POST", RELEASES, status=201, json=release_json())

        release = gitea.create_release(ReleaseConfig(tag="v1.0.0", name="v1.0.0", body="b"))

        assert release.id == "42"
        assert mock_api.route_log() == [
            ("GET", f"{API}/git/refs/tags/v1.0.0"),
            ("POST", RELEASES),
        ]
        assert mock_api.body(mock_api.requests[1]) == {
            "tag_name": "v1.0.0",
            "name": "v1.0.0",
            "body": "b",
        }

    def test_missing_tag_created_at_explicit_commit(self, gitea, mock_api):
        mock_api.add("POST", f"{API}/tags", status=201, json={"name": "v1.0.0"})
        mock_api.add("POST", RELEASES, status=201, json=release_json())

        gitea.create_release(ReleaseConfig(tag="v1.0.0", commit="deadbeef"))

        assert mock_api.route_log() == [
            ("GET", f"{API}/git/refs/tags/v1.0.0"),
            ("POST", f"{API}/tags"),
            ("POST", RELEASES),
        ]
        assert mock_api.body(mock_api.requests[1]) == {
            "tag_name": "v1.0.0",
            "target": "deadbeef",
            "message": "Release v1.0.0",
        }

    def test_missing_tag_uses_environment_sha(self, mock_api, sleeps):
        mock_api.add("POST", f"{API}/tags", status=201, json={})
        mock_api.add("POST", RELEASES, status=201, json=release_json())
        env = CIEnvironment(sha="cafebabe")

        with GiteaProvider(
            "t", "owner", "repo", "https://gitea.example.com",
            env=env, transport=mock_api.transport, sleep=sleeps.append,
        ) as provider:
            provider.create_release(ReleaseConfig(tag="v1.0.0"))

        assert mock_api.body(mock_api.calls("POST", f"{API}/tags")[0])["target"] == "cafebabe"
        assert mock_api.calls("GET", API) == []

    def test_missing_tag_falls_back_to_default_branch_head(self, gitea, mock_api):
        """Without any commit the default branch is looked up before tagging."""
        mock_api.add("GET", API, json={"default_branch": "main"})
        mock_api.add("GET", f"{API}/git/refs/heads/main", json={"ref": "refs/heads/main", "object": {"sha": "abc123"}})
        mock_api.add("POST", f"{API}/tags", status=201, json={})
        mock_api.add("POST", RELEASES, status=201, json=release_json())

        gitea.create_release(ReleaseConfig(tag="v1.0.0"))

        assert mock_api.route_log() == [
            ("GET", f"{API}/git/refs/tags/v1.0.0"),
            ("GET", API),
            ("GET", f"{API}/git/refs/heads/main"),
            ("POST", f"{API}/tags"),
            ("POST", RELEASES),
        ]
        assert mock_api.body(mock_api.requests[3])["target"] == "abc123"

    def test_default_branch_ref_list_response(self, gitea, mock_api):
        mock_api.add("GET", API, json={"default_branch": "main"})
        mock_api.add(
            "GET",
            f"{API}/git/refs/heads/main",
            json=[
                {"ref": "refs/heads/main-old", "object": {"sha": "old"}},
                {"ref": "refs/heads/main", "object": {"sha": "new"}},
            ],
        )
        mock_api.add("POST", f"{API}/tags", status=201, json={})
        mock_api.add("POST", RELEASES, status=201, json=release_json())

        gitea.create_release(ReleaseConfig(tag="v1.0.0"))

        assert mock_api.body(mock_api.calls("POST", f"{API}/tags")[0])["target"] == "new"

    def test_empty_body_confirmed_by_tag_lookup(self, gitea, mock_api, sleeps):
        mock_api.add("GET", f"{API}/git/refs/tags/v1.0.0", json={})
        mock_api.add("POST", RELEASES, status=201, content=b"")
        mock_api.add("GET", f"{RELEASES}/tags/v1.0.0", status=404, json={})
        mock_api.add("GET", f"{RELEASES}/tags/v1.0.0", json=release_json(id=77))
        mock_api.add("GET", RELEASES, json=[])

        release = gitea.create_release(ReleaseConfig(tag="v1.0.0"))

        assert release.id == "77"
        assert sleeps == [0.5, 1.0]

    def test_empty_body_confirmed_by_list_scan(self, gitea, mock_api, sleeps):
        mock_api.add("GET", f"{API}/git/refs/tags/v1.0.0", json={})
        mock_api.add("POST", RELEASES, status=201, json={})
        mock_api.add("GET", RELEASES, json=[release_json(id=5, tag_name="v0.1.0"), release_json(id=78)])

        release = gitea.create_release(ReleaseConfig(tag="v1.0.0"))

        assert release.id == "78"
        assert sleeps == [0.5]

    def test_empty_body_never_confirmed(self, gitea, mock_api, sleeps):
        mock_api.add("GET", f"{API}/git/refs/tags/v1.0.0", json={})
        mock_api.add("POST", RELEASES, status=201, content=b"")
        mock_api.add("GET", RELEASES, status=500, content=b"boom")

        with pytest.raises(ReleaseConfirmationError, match="created but could not be confirmed"):
            gitea.create_release(ReleaseConfig(tag="v1.0.0"))

        assert sleeps == [0.5, 1.0, 2.0, 4.0, 8.0, 8.0, 8.0, 8.0, 8.0, 8.0]
        assert len(mock_api.calls("GET", f"{RELEASES}/tags/v1.0.0")) == 10

    def test_confirmation_bounds_come_from_environment(self, mock_api, sleeps):
        mock_api.add("GET", f"{API}/git/refs/tags/v1.0.0", json={})
        mock_api.add("POST", RELEASES, status=201, content=b"")
        mock_api.add("GET", RELEASES, json=[])
        env = CIEnvironment(confirm_attempts=3, confirm_delay=0.1, confirm_max_delay=0.2)

        with GiteaProvider(
            "t", "owner", "repo", "https://gitea.example.com",
            env=env, transport=mock_api.transport, sleep=sleeps.append,
        ) as provider:
            with pytest.raises(ReleaseConfirmationError):
                provider.create_release(ReleaseConfig(tag="v1.0.0"))

        assert sleeps == [0.1, 0.2, 0.2]


class TestUpdateRelease:
    def test_update_sends_only_present_fields(self, gitea, mock_api):
        mock_api.add("PATCH", f"{RELEASES}/42", json=release_json(body="new"))

        release = gitea.update_release("42", ReleaseConfig(tag="v1.0.0", body="new", draft=False))

        assert mock_api.body(mock_api.requests[0]) == {"body": "new", "draft": False}
        assert release.id == "42"

    def test_update_with_empty_body_keeps_known_id(self, gitea, mock_api):
        mock_api.add("PATCH", f"{RELEASES}/42", status=200, content=b"")

        release = gitea.update_release("42", ReleaseConfig(tag="v1.0.0", name="x"))

        assert release.id == "42"
        assert release.assets == {}


class TestGetReleaseByTag:
    def test_found(self, gitea, mock_api):
        mock_api.add(
            "GET",
            f"{RELEASES}/tags/v1.0.0",
            json=release_json(assets=[{"id": 3, "name": "a.zip", "browser_download_url": "https://dl/a.zip"}]),
        )

        release = gitea.get_release_by_tag("v1.0.0")

        assert release.assets == {"a.zip": "https://dl/a.zip"}
        assert release.upload_url.endswith("/releases/42/assets")

    def test_absent_returns_none(self, gitea, mock_api):
        assert gitea.get_release_by_tag("v404") is None
        assert len(mock_api.requests) == 1


class TestAssets:
    def test_upload_is_multipart(self, gitea, mock_api, tmp_path):
        artifact = tmp_path / "app.zip"
        artifact.write_bytes(b"zipdata")
        mock_api.add(
            "POST",
            f"{RELEASES}/42/assets",
            status=201,
            json={"id": 9, "browser_download_url": "https://gitea.example.com/attachments/9"},
        )

        url = gitea.upload_asset(
            "42", "https://gitea.example.com/api/v1/repos/owner/repo/releases/42/assets", AssetConfig(path=artifact)
        )

        assert url == "https://gitea.example.com/attachments/9"
        request = mock_api.requests[0]
        assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
        assert b'name="attachment"; filename="app.zip"' in request.content
        assert b"zipdata" in request.content

    def test_upload_without_upload_url_uses_release_endpoint(self, gitea, mock_api, tmp_path):
        artifact = tmp_path / "app.zip"
        artifact.write_bytes(b"zipdata")
        mock_api.add("POST", f"{RELEASES}/42/assets", status=201, json={"url": "https://x/9"})

        assert gitea.upload_asset("42", "", AssetConfig(path=artifact)) == "https://x/9"

    def test_upload_missing_file(self, gitea, mock_api, tmp_path):
        with pytest.raises(AssetError, match="file not found"):
            gitea.upload_asset("42", "", AssetConfig(path=tmp_path / "missing"))

        assert mock_api.requests == []

    def test_list_assets_by_tag_has_no_ids(self, gitea, mock_api):
        mock_api.add(
            "GET",
            f"{RELEASES}/tags/v1.0.0",
            json=release_json(assets=[{"id": 3, "name": "a.zip", "browser_download_url": "https://dl/a.zip"}]),
        )

        assets = gitea.list_assets("v1.0.0")

        assert [(a.id, a.name, a.url) for a in assets] == [("", "a.zip", "https://dl/a.zip")]

    def test_list_assets_falls_back_to_release_id(self, gitea, mock_api):
        mock_api.add(
            "GET",
            f"{RELEASES}/42",
            json=release_json(assets=[{"id": 3, "name": "a.zip", "browser_download_url": "https://dl/a.zip"}]),
        )

        assets = gitea.list_assets("42")

        assert [(a.id, a.name) for a in assets] == [("3", "a.zip")]
        assert mock_api.route_log() == [("GET", f"{RELEASES}/tags/42"), ("GET", f"{RELEASES}/42")]

    def test_delete_asset(self, gitea, mock_api):
        mock_api.add("DELETE", f"{RELEASES}/attachments/3", status=204)

        gitea.delete_asset("3")

        assert mock_api.route_log() == [("DELETE", f"{RELEASES}/attachments/3")]


def test_create_tag(gitea, mock_api):
    mock_api.add("POST", f"{API}/tags", status=201, json={})

    gitea.create_tag("v2", "abc", "Annotated")

    assert mock_api.route_log() == [("GET", f"{API}/git/refs/tags/v2"), ("POST", f"{API}/tags")]
    assert mock_api.body(mock_api.requests[1]) == {"tag_name": "v2", "target": "abc", "message": "Annotated"}


def test_create_tag_leaves_existing_tag_alone(gitea, mock_api):
    mock_api.add("GET", f"{API}/git/refs/tags/v2", json={"ref": "refs/tags/v2"})
    mock_api.add("POST", f"{API}/tags", status=409, json={"message": "tag already exists"})

    gitea.create_tag("v2", "abc", "Annotated")

    assert mock_api.calls("POST") == []


def test_release_and_tag_use_the_same_repository(gitea, mock_api):
    other = "/api/v1/repos/team/app"
    mock_api.add("GET", other, json={"default_branch": "main"})
    mock_api.add("GET", f"{other}/git/refs/heads/main", json={"ref": "refs/heads/main", "object": {"sha": "f00"}})
    mock_api.add("POST", f"{other}/tags", status=201, json={})
    mock_api.add("POST", f"{other}/releases", status=201, json=release_json())

    gitea.create_release(ReleaseConfig(tag="v1.0.0", owner="team", repo="app"))

    assert mock_api.route_log() == [
        ("GET", f"{other}/git/refs/tags/v1.0.0"),
        ("GET", other),
        ("GET", f"{other}/git/refs/heads/main"),
        ("POST", f"{other}/tags"),
        ("POST", f"{other}/releases"),
    ]
    assert mock_api.body(mock_api.requests[3])["target"] == "f00"


def test_generate_release_notes_is_unsupported(gitea, mock_api, caplog):
    with caplog.at_level(logging.WARNING):
        notes = gitea.generate_release_notes("v1.0.0", "v0.9.0")

    assert notes == ""
    assert mock_api.requests == []
    assert "does not support automatic release notes" in caplog.text
