"""Local store: cached artifacts, template definitions and provenance records."""

from __future__ import annotations

import logging
from pathlib import Path

from mcp_skill.constants import (
    INDEX_META_FILENAME,
    MCP_INDEX_FILENAME,
    MCP_STORE_DIRNAME,
    META_DIRNAME,
    SKILL_INDEX_FILENAME,
    SKILL_STORE_DIRNAME,
)
from mcp_skill.core.filesystem import clear_dir, copy_tree, count_entries, remove_path
from mcp_skill.errors import InvalidDefinitionError, InvalidJsonFormatError
from mcp_skill.models import ArtifactKind, Definition
from mcp_skill.registry.models import LocalRecord, SyncMeta
from mcp_skill.utils import is_under, read_json_safe, write_json

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    @property
    def skills_dir(self) -> Path:
        return self.root / SKILL_STORE_DIRNAME

    @property
    def mcp_dir(self) -> Path:
        return self.root / MCP_STORE_DIRNAME

    @property
    def meta_dir(self) -> Path:
        return self.root / META_DIRNAME

    @property
    def skill_index_path(self) -> Path:
        return self.root / SKILL_INDEX_FILENAME

    @property
    def mcp_index_path(self) -> Path:
        return self.root / MCP_INDEX_FILENAME

    @property
    def index_meta_path(self) -> Path:
        return self.root / INDEX_META_FILENAME

    def skill_path(self, name: str) -> Path:
        return self.skills_dir / name

    def mcp_source_path(self, name: str) -> Path:
        return self.mcp_dir / name

    def definition_path(self, name: str) -> Path:
        return self.mcp_dir / f"{name}.json"

    def record_path(self, kind: ArtifactKind, name: str) -> Path:
        return self.meta_dir / kind.value / f"{name}.json"

    def load_record(self, kind: ArtifactKind, name: str) -> LocalRecord | None:
        path = self.record_path(kind, name)
        payload, error = read_json_safe(path)
        if error is not None:
            raise InvalidJsonFormatError(path, error)
        if not isinstance(payload, dict):
            return None
        return LocalRecord.from_payload(payload)

    def save_record(self, kind: ArtifactKind, record: LocalRecord) -> Path:
        path = self.record_path(kind, record.name)
        write_json(path, record.to_payload())
        logger.debug("Saved %s provenance record: %s", kind.value, path)
        return path

    def drop_record(self, kind: ArtifactKind, name: str) -> None:
        path = self.record_path(kind, name)
        if path.exists():
            path.unlink()
            logger.debug("Dropped %s provenance record: %s", kind.value, path)

    def has_cached(self, kind: ArtifactKind, name: str) -> bool:
        if kind == ArtifactKind.SKILL:
            return self.skill_path(name).is_dir()
        return self.definition_path(name).is_file()

    def load_sync_meta(self) -> SyncMeta | None:
        payload, error = read_json_safe(self.index_meta_path)
        if error is not None or payload is None:
            return None
        return SyncMeta.from_payload(payload)

    def save_sync_meta(self, meta: SyncMeta) -> None:
        write_json(self.index_meta_path, meta.to_payload())

    def load_definition(self, name: str) -> Definition:
        return load_definition_file(self.definition_path(name), name=name)

    def save_definition(self, definition: Definition) -> Path:
        path = self.definition_path(definition.name)
        write_json(path, definition.to_payload())
        logger.debug("Saved template definition: %s", path)
        return path

    def cache_skill_dir(self, source: Path) -> Path:
        """Copy a skill directory into the store unless it already lives there."""
        if is_under(source, self.skills_dir):
            return source
        dest = self.skill_path(source.name)
        remove_path(dest)
        copy_tree(source, dest)
        self.drop_record(ArtifactKind.SKILL, source.name)
        logger.debug("Cached skill %s from %s", source.name, source)
        return dest

    def list_cached_skills(self) -> list[str]:
        if not self.skills_dir.is_dir():
            return []
        return sorted(child.name for child in self.skills_dir.iterdir() if child.is_dir())

    def list_cached_definitions(self) -> list[str]:
        if not self.mcp_dir.is_dir():
            return []
        return sorted(
            child.stem
            for child in self.mcp_dir.iterdir()
            if child.is_file() and child.suffix == ".json"
        )

    def entry_counts(self) -> dict[Path, int]:
        return {
            self.skills_dir: count_entries(self.skills_dir),
            self.mcp_dir: count_entries(self.mcp_dir),
        }

    def clean(self) -> None:
        clear_dir(self.skills_dir)
        clear_dir(self.mcp_dir)


def load_definition_file(path: Path, name: str | None = None) -> Definition:
    payload, error = read_json_safe(path)
    if error is not None:
        raise InvalidJsonFormatError(path, error)
    if not isinstance(payload, dict):
        raise InvalidDefinitionError(f"definition file must hold a JSON object: {path}")
    embedded = payload.get("name")
    if name is None and isinstance(embedded, str) and embedded.strip():
        name = embedded
    return Definition.from_payload(name or path.stem, payload)
