import logging
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from mcp_skill.config import format_schema_error
from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import (
    InvalidConfigSchemaError,
    InvalidJsonFormatError,
    RegistryUnavailableError,
)
from mcp_skill.registry.models import MCPEntry, SkillEntry
from mcp_skill.registry.schema import MCP_INDEX_VALIDATOR, SKILL_INDEX_VALIDATOR
from mcp_skill.utils import read_json_safe

logger = logging.getLogger(__name__)


def _matches(entry_name: str, description: str, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in entry_name.lower() or needle in description.lower()


class RegistryIndex:
    """Read access to the locally mirrored registry indexes."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    def skills(self) -> list[SkillEntry]:
        payload = self._load(self._store.skill_index_path, SKILL_INDEX_VALIDATOR)
        return [
            SkillEntry.from_payload(item)
            for item in payload.get("skills") or []
            if isinstance(item, dict)
        ]

    def mcp_servers(self) -> list[MCPEntry]:
        payload = self._load(self._store.mcp_index_path, MCP_INDEX_VALIDATOR)
        candidates = payload.get("mcp") or payload.get("servers") or []
        return [MCPEntry.from_payload(item) for item in candidates if isinstance(item, dict)]

    def find_skill(self, name: str) -> SkillEntry | None:
        wanted = name.strip().lower()
        for entry in self.skills():
            if entry.name.lower() == wanted:
                return entry
        return None

    def find_mcp(self, name: str) -> MCPEntry | None:
        wanted = name.strip().lower()
        for entry in self.mcp_servers():
            if entry.name.lower() == wanted:
                return entry
        return None

    def search_skills(self, query: str = "") -> list[SkillEntry]:
        found = [entry for entry in self.skills() if _matches(entry.name, entry.description, query)]
        return sorted(found, key=lambda entry: entry.name.lower())

    def search_mcp(self, query: str = "") -> list[MCPEntry]:
        found = [
            entry for entry in self.mcp_servers() if _matches(entry.name, entry.description, query)
        ]
        return sorted(found, key=lambda entry: entry.name.lower())

    @staticmethod
    def _load(path: Path, validator: Draft7Validator) -> dict[str, Any]:
        payload, error = read_json_safe(path)
        if error is not None:
            raise InvalidJsonFormatError(path, error)
        if payload is None:
            raise RegistryUnavailableError(f"registry index missing: {path}")
        if not isinstance(payload, dict):
            raise InvalidConfigSchemaError(path, "must be a JSON object")
        schema_error = next(iter(validator.iter_errors(payload)), None)
        if schema_error is not None:
            raise InvalidConfigSchemaError(path, format_schema_error(schema_error))
        return payload
