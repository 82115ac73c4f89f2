"""Turn a user-supplied token into an installable source."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import ArtifactNotFoundError, RegistryUnavailableError, SyncFileError
from mcp_skill.models import ArtifactKind
from mcp_skill.registry.index import RegistryIndex
from mcp_skill.registry.models import MCPEntry, SkillEntry
from mcp_skill.registry.sync import IndexSyncService
from mcp_skill.sources.git import is_repo_reference

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    PATH = "path"
    REPO = "repo"
    REGISTRY = "registry"
    LOCAL = "local"


@dataclass(frozen=True)
class Resolution:
    kind: SourceKind
    token: str
    path: Path | None = None
    skill_entry: SkillEntry | None = None
    mcp_entry: MCPEntry | None = None


class ArtifactResolver:
    """Resolve tokens in a fixed order: path, repository, registry, local store.

    Explicit sources come first so that a local copy can shadow a registry
    entry of the same name.
    """

    def __init__(
        self, store: LocalStore, sync: IndexSyncService, index: RegistryIndex
    ) -> None:
        self._store = store
        self._sync = sync
        self._index = index

    def resolve(self, kind: ArtifactKind, token: str) -> Resolution:
        value = token.strip()
        if not value:
            raise ArtifactNotFoundError(kind.value, token)

        path = Path(value).expanduser()
        if path.exists():
            return Resolution(kind=SourceKind.PATH, token=value, path=path)

        if is_repo_reference(value):
            return Resolution(kind=SourceKind.REPO, token=value)

        registry = self._from_registry(kind, value)
        if registry is not None:
            return registry

        if self._store.has_cached(kind, value):
            cached = (
                self._store.skill_path(value)
                if kind == ArtifactKind.SKILL
                else self._store.definition_path(value)
            )
            logger.debug("Resolved %s %s from the local store", kind.value, value)
            return Resolution(kind=SourceKind.LOCAL, token=value, path=cached)

        raise ArtifactNotFoundError(kind.value, value)

    def _from_registry(self, kind: ArtifactKind, value: str) -> Resolution | None:
        try:
            self._sync.ensure_indexes()
            if kind == ArtifactKind.SKILL:
                skill = self._index.find_skill(value)
                if skill is not None:
                    return Resolution(kind=SourceKind.REGISTRY, token=value, skill_entry=skill)
                return None
            server = self._index.find_mcp(value)
            if server is not None:
                return Resolution(kind=SourceKind.REGISTRY, token=value, mcp_entry=server)
            return None
        except RegistryUnavailableError as exc:
            logger.warning("Registry unavailable, checking the local store: %s", exc)
            return None
        except SyncFileError as exc:
            logger.warning("Registry index unreadable, checking the local store: %s", exc)
            return None
