import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft7Validator

from mcp_skill.constants import (
    DEFAULT_REGISTRY_BRANCH,
    DEFAULT_REGISTRY_REPO,
    DEFAULT_SYNC_TTL_SECONDS,
    ENV_REGISTRY_BRANCH,
    ENV_REGISTRY_REPO,
    ENV_REGISTRY_TTL,
    ENV_STORE_HOME,
    SETTINGS_FILENAME,
    STORE_DIRNAME,
)
from mcp_skill.errors import (
    InvalidConfigSchemaError,
    InvalidJsonFormatError,
    SkillManagerError,
)
from mcp_skill.utils import read_json_safe

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "registryRepo": {"type": "string", "minLength": 1},
        "registryBranch": {"type": "string", "minLength": 1},
        "syncTtlSeconds": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": True,
}

_SETTINGS_VALIDATOR = Draft7Validator(SETTINGS_SCHEMA)


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


@dataclass(frozen=True)
class Settings:
    store_root: Path
    registry_repo: str = DEFAULT_REGISTRY_REPO
    registry_branch: str = DEFAULT_REGISTRY_BRANCH
    sync_ttl_seconds: int = DEFAULT_SYNC_TTL_SECONDS

    @property
    def settings_path(self) -> Path:
        return self.store_root / SETTINGS_FILENAME

    def raw_base_url(self) -> str:
        repo = self.registry_repo.strip()
        if not repo:
            raise SkillManagerError("registry repo is empty")
        for prefix in ("https://github.com/", "http://github.com/"):
            if repo.startswith(prefix):
                repo = repo[len(prefix) :]
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        repo = repo.strip("/")
        if repo.count("/") != 1:
            raise SkillManagerError(f"invalid registry repo: {repo}")
        return f"https://raw.githubusercontent.com/{repo}/{self.registry_branch}/"


def default_store_root(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(ENV_STORE_HOME, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / STORE_DIRNAME


def load_settings(
    env: Mapping[str, str] | None = None, store_root: Path | None = None
) -> Settings:
    env = os.environ if env is None else env
    settings = Settings(store_root=store_root or default_store_root(env))
    settings = _apply_file(settings)
    return _apply_env(settings, env)


def _apply_file(settings: Settings) -> Settings:
    path = settings.settings_path
    payload, error = read_json_safe(path)
    if error is not None:
        raise InvalidJsonFormatError(path, error)
    if payload is None:
        return settings

    schema_error = next(iter(_SETTINGS_VALIDATOR.iter_errors(payload)), None)
    if schema_error is not None:
        raise InvalidConfigSchemaError(path, format_schema_error(schema_error))

    return replace(
        settings,
        registry_repo=payload.get("registryRepo", settings.registry_repo),
        registry_branch=payload.get("registryBranch", settings.registry_branch),
        sync_ttl_seconds=payload.get("syncTtlSeconds", settings.sync_ttl_seconds),
    )


def _apply_env(settings: Settings, env: Mapping[str, str]) -> Settings:
    repo = env.get(ENV_REGISTRY_REPO, "").strip()
    branch = env.get(ENV_REGISTRY_BRANCH, "").strip()
    ttl = env.get(ENV_REGISTRY_TTL, "").strip()

    if repo:
        settings = replace(settings, registry_repo=repo)
    if branch:
        settings = replace(settings, registry_branch=branch)
    if ttl:
        try:
            seconds = int(ttl)
        except ValueError as exc:
            raise SkillManagerError(f"{ENV_REGISTRY_TTL} must be an integer: {ttl}") from exc
        settings = replace(settings, sync_ttl_seconds=max(seconds, 0))
    return settings
