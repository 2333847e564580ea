"""Resolved action inputs."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class ActionInputs:
    """Every input of a publish run, already validated."""

    token: str
    platform: str | None = None
    tag: str = ""
    name: str | None = None
    body: str | None = None
    body_file: Path | None = None
    draft: bool = False
    prerelease: bool = False
    commit: str | None = None

    # Artifacts
    artifacts: str | None = None  # comma separated glob patterns
    artifact_content_type: str | None = None
    replaces_artifacts: bool = False
    remove_artifacts: bool = False
    artifact_errors_fail_build: bool = False

    # Create/update policy
    allow_updates: bool = False
    skip_if_release_exists: bool = False
    update_only_unreleased: bool = False
    generate_release_notes: bool = False
    generate_release_notes_previous_tag: str | None = None

    # Repository coordinates
    repository: str | None = None  # owner/repo or full URL
    owner: str | None = None
    repo: str | None = None

    # Field omission
    omit_name: bool = False
    omit_name_during_update: bool = False
    omit_body: bool = False
    omit_body_during_update: bool = False
    omit_draft: bool = False
    omit_draft_during_update: bool = False
    omit_prerelease: bool = False
    omit_prerelease_during_update: bool = False

    verbose: bool = False
    debug: bool = False
    skip_certificate_check: bool = False
