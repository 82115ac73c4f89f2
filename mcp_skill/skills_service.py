"""Skill install, update, uninstall and listing across client skill roots."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from mcp_skill.apps.app_id import ClientId, client_metadata, parse_client
from mcp_skill.constants import SKILL_FILENAME
from mcp_skill.core.filesystem import find_skill_dirs, remove_path, replace_tree
from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import (
    AlreadyExistsError,
    ArtifactNotFoundError,
    NotInstalledError,
    SkillManagerError,
)
from mcp_skill.fetcher import ContentFetcher
from mcp_skill.models import ArtifactKind, Installed, Scope, UpdateResult, UpdateStatus
from mcp_skill.reconcile import filter_by_name, group_by_name
from mcp_skill.registry.index import RegistryIndex
from mcp_skill.registry.models import LocalRecord, SkillEntry
from mcp_skill.registry.sync import IndexSyncService
from mcp_skill.resolver import ArtifactResolver, Resolution, SourceKind
from mcp_skill.skills.models import SkillMetadata
from mcp_skill.skills.parser import read_skill_metadata

logger = logging.getLogger(__name__)


def _same_skill_file(left: Path, right: Path) -> bool:
    left_file = left / SKILL_FILENAME
    right_file = right / SKILL_FILENAME
    if not left_file.is_file() or not right_file.is_file():
        return False
    return left_file.read_bytes() == right_file.read_bytes()


class SkillService:
    def __init__(
        self,
        store: LocalStore,
        sync: IndexSyncService,
        index: RegistryIndex,
        resolver: ArtifactResolver,
        fetcher: ContentFetcher,
        home: Path | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._store = store
        self._sync = sync
        self._index = index
        self._resolver = resolver
        self._fetcher = fetcher
        self._home = home or Path.home()
        self._cwd = cwd or Path.cwd()

    def skill_root(self, client: ClientId | str, scope: Scope) -> Path:
        return client_metadata(client).skill_root(scope, self._home, self._cwd)

    def install(
        self,
        token: str,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
        refresh: bool = False,
    ) -> list[Installed]:
        resolution = self._resolver.resolve(ArtifactKind.SKILL, token)
        logger.debug("Resolved %s as %s", token, resolution.kind.value)
        if resolution.kind == SourceKind.PATH and resolution.path is not None:
            return self._install_from_path(resolution.path, clients, scope, force)
        if resolution.kind == SourceKind.REPO:
            with tempfile.TemporaryDirectory(prefix="mcp-skill-") as tmp:
                checkout = self._fetcher.clone_repository(resolution.token, Path(tmp) / "repo")
                return self._install_from_path(checkout, clients, scope, force)
        skill_dirs = self._skill_dirs_for(resolution, refresh)
        return self.install_dirs(skill_dirs, clients, scope, force)

    def install_dirs(
        self,
        skill_dirs: list[Path],
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
    ) -> list[Installed]:
        """Copy cached skill directories into each client's skill root.

        Every destination is checked before the first copy so a conflict
        leaves all clients untouched.
        """
        self.check_conflicts([skill_dir.name for skill_dir in skill_dirs], clients, scope, force)
        plan = [
            (skill_dir, client, self.skill_root(client, scope) / skill_dir.name)
            for skill_dir in skill_dirs
            for client in clients
        ]

        results: list[Installed] = []
        for skill_dir, client, dest in plan:
            replace_tree(skill_dir, dest)
            logger.info("Installed skill %s for %s (%s)", skill_dir.name, client.value, dest)
            results.append(self._installed(skill_dir.name, client, scope, dest))
        return results

    def check_conflicts(
        self, names: list[str], clients: list[ClientId], scope: Scope, force: bool
    ) -> None:
        if force:
            return
        for name in names:
            for client in clients:
                dest = self.skill_root(client, scope) / name
                if dest.exists():
                    raise AlreadyExistsError(ArtifactKind.SKILL.value, name, dest)

    def list(self, clients: list[ClientId], scopes: list[Scope]) -> list[Installed]:
        results: list[Installed] = []
        for scope in scopes:
            for client in clients:
                root = self.skill_root(client, scope)
                if not root.is_dir():
                    continue
                for child in sorted(root.iterdir(), key=lambda item: item.name):
                    if child.is_dir() and not child.name.startswith("."):
                        results.append(self._installed(child.name, client, scope, child))
        return results

    def uninstall(
        self,
        name: str,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
    ) -> list[Installed]:
        targets: list[tuple[ClientId, Path]] = []
        for client in clients:
            dest = self.skill_root(client, scope) / name
            if dest.exists() or dest.is_symlink():
                targets.append((client, dest))
            elif not force:
                raise NotInstalledError(ArtifactKind.SKILL.value, name, dest)

        results: list[Installed] = []
        for client, dest in targets:
            remove_path(dest)
            logger.info("Removed skill %s from %s (%s)", name, client.value, dest)
            results.append(Installed(name=name, client=client.value, scope=scope, path=dest))
        return results

    def uninstall_targets(
        self, clients: list[ClientId], scopes: list[Scope]
    ) -> list[Installed]:
        return self.list(clients, scopes)

    def uninstall_all(self, targets: list[Installed]) -> list[Installed]:
        for item in targets:
            remove_path(item.path)
        return list(targets)

    def update(
        self,
        clients: list[ClientId],
        scopes: list[Scope],
        name: str | None = None,
    ) -> list[UpdateResult]:
        targets = filter_by_name(self.list(clients, scopes), name)
        if not targets:
            return []
        self._sync.ensure_indexes()

        results: list[UpdateResult] = []
        for item_name, items in group_by_name(targets).items():
            entry = self._index.find_skill(item_name)
            if entry is None:
                results.extend(UpdateResult(item, UpdateStatus.NOT_IN_REGISTRY) for item in items)
                continue

            try:
                stale = self._fetcher.needs_update(ArtifactKind.SKILL, entry)
            except SkillManagerError as exc:
                results.extend(
                    UpdateResult(item, UpdateStatus.FAILED, str(exc), exc) for item in items
                )
                continue

            refresh = stale
            for item in items:
                try:
                    cached = self._fetcher.fetch_skill(entry, force=refresh)
                    refresh = False
                    if not stale and _same_skill_file(item.path, cached):
                        results.append(UpdateResult(item, UpdateStatus.LATEST, item.version))
                        continue
                    installed = self.install_dirs(
                        [cached], [parse_client(item.client)], item.scope, force=True
                    )
                except SkillManagerError as exc:
                    results.append(UpdateResult(item, UpdateStatus.FAILED, str(exc), exc))
                    continue
                results.append(
                    UpdateResult(item, UpdateStatus.UPDATED, installed[0].version)
                )
        return results

    def available(self, query: str = "") -> list[SkillEntry]:
        self._sync.ensure_indexes()
        return self._index.search_skills(query)

    def view(self, name: str) -> tuple[SkillEntry, LocalRecord | None, SkillMetadata | None]:
        self._sync.ensure_indexes()
        entry = self._index.find_skill(name)
        if entry is None:
            raise ArtifactNotFoundError(ArtifactKind.SKILL.value, name)
        record = self._store.load_record(ArtifactKind.SKILL, entry.name)
        cached = self._store.skill_path(entry.name)
        metadata = read_skill_metadata(cached) if cached.is_dir() else None
        return entry, record, metadata

    def _skill_dirs_for(self, resolution: Resolution, refresh: bool) -> list[Path]:
        if resolution.kind == SourceKind.REGISTRY and resolution.skill_entry is not None:
            return [self._fetcher.fetch_skill(resolution.skill_entry, force=refresh)]
        if resolution.kind == SourceKind.LOCAL and resolution.path is not None:
            return [resolution.path]
        raise ArtifactNotFoundError(ArtifactKind.SKILL.value, resolution.token)

    def _install_from_path(
        self, path: Path, clients: list[ClientId], scope: Scope, force: bool
    ) -> list[Installed]:
        if path.is_file() and path.name != SKILL_FILENAME:
            raise SkillManagerError(f"path is not a directory: {path}")
        skill_dirs = find_skill_dirs(path)
        if not skill_dirs:
            raise SkillManagerError(f"no {SKILL_FILENAME} found in {path}")
        self.check_conflicts([skill_dir.name for skill_dir in skill_dirs], clients, scope, force)
        cached = [self._store.cache_skill_dir(skill_dir) for skill_dir in skill_dirs]
        return self.install_dirs(cached, clients, scope, force)

    @staticmethod
    def _installed(name: str, client: ClientId, scope: Scope, path: Path) -> Installed:
        metadata = read_skill_metadata(path)
        return Installed(
            name=name,
            client=client.value,
            scope=scope,
            path=path,
            version=metadata.version,
            description=metadata.description,
        )
