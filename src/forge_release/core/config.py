"""Configuration loading for forge-release."""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from forge_release.models.inputs import ActionInputs


class ConfigError(Exception):
    """Missing or invalid configuration."""

    pass


DEFAULT_CONFIRM_ATTEMPTS = 10
DEFAULT_CONFIRM_DELAY_MS = 500
DEFAULT_CONFIRM_MAX_DELAY_MS = 8000

TRUTHY = ("true", "1")


def _int_from_env(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from None
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {value}")
    return value


@dataclass
class CIEnvironment:
    """Values the CI runner exposes through environment variables.

    Built once at startup and passed to whatever needs it, so nothing
    deeper in the call chain reads os.environ on its own.
    """

    ref: str = ""
    sha: str = ""
    repository: str = ""  # owner/repo
    repository_owner: str = ""
    server_url: str = ""
    output_file: Path | None = None
    in_actions: bool = False
    step_debug: bool = False
    confirm_attempts: int = DEFAULT_CONFIRM_ATTEMPTS
    confirm_delay: float = DEFAULT_CONFIRM_DELAY_MS / 1000
    confirm_max_delay: float = DEFAULT_CONFIRM_MAX_DELAY_MS / 1000

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "CIEnvironment":
        """Create environment from a mapping (defaults to os.environ)."""
        if environ is None:
            environ = os.environ

        output_file = environ.get("GITHUB_OUTPUT")
        return cls(
            ref=environ.get("GITHUB_REF") or environ.get("GITEA_REF") or "",
            sha=environ.get("GITHUB_SHA") or environ.get("GITEA_SHA") or "",
            repository=environ.get("GITHUB_REPOSITORY") or environ.get("GITEA_REPOSITORY") or "",
            repository_owner=(
                environ.get("GITHUB_REPOSITORY_OWNER")
                or environ.get("GITEA_REPOSITORY_OWNER")
                or ""
            ),
            server_url=environ.get("GITHUB_SERVER_URL") or environ.get("GITEA_SERVER_URL") or "",
            output_file=Path(output_file) if output_file else None,
            in_actions=environ.get("GITHUB_ACTIONS", "").lower() == "true",
            step_debug=environ.get("ACTIONS_STEP_DEBUG", "").lower() in TRUTHY,
            confirm_attempts=_int_from_env(
                environ, "FORGE_RELEASE_CONFIRM_ATTEMPTS", DEFAULT_CONFIRM_ATTEMPTS
            ),
            confirm_delay=_int_from_env(
                environ, "FORGE_RELEASE_CONFIRM_DELAY_MS", DEFAULT_CONFIRM_DELAY_MS
            ) / 1000,
            confirm_max_delay=_int_from_env(
                environ, "FORGE_RELEASE_CONFIRM_MAX_DELAY_MS", DEFAULT_CONFIRM_MAX_DELAY_MS
            ) / 1000,
        )

    @property
    def repository_parts(self) -> tuple[str, str]:
        """Split GITHUB_REPOSITORY into (owner, repo), empty when unset."""
        if "/" not in self.repository:
            return "", ""
        owner, repo = self.repository.split("/", 1)
        return owner, repo


def input_env_var(name: str) -> str:
    """Environment variable the runner uses for an action input.

    Runners upper-case the input name as written in action.yml, so
    ``allowUpdates`` arrives as ``INPUT_ALLOWUPDATES``.
    """
    return f"INPUT_{name.replace(' ', '_').upper()}"


def _normalize_key(key: str) -> str:
    """Turn camelCase or kebab-case config keys into parameter names."""
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key)
    return key.replace("-", "_").lower()


def load_config_file(path: Path) -> dict:
    """Load a YAML config file into a dict keyed by parameter name."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return {_normalize_key(str(key)): value for key, value in data.items()}


def load_inputs(params: Mapping, env: CIEnvironment) -> ActionInputs:
    """Build ActionInputs from parsed command parameters.

    Empty strings count as unset, matching how runners pass inputs
    that were never given a value.
    """
    token = params.get("token") or ""
    if not token:
        raise ConfigError(
            "Token is required. Provide the token input or ensure GITHUB_TOKEN is available."
        )

    known = {f.name for f in fields(ActionInputs)}
    values = {}
    for key, value in params.items():
        if key not in known:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        if value is not None:
            values[key] = value

    if values.get("body_file") is not None:
        values["body_file"] = Path(values["body_file"])

    inputs = ActionInputs(**values)
    inputs.verbose = inputs.verbose or inputs.debug or env.step_debug
    return inputs
