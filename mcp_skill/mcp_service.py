"""MCP server install, update, uninstall and listing across clients."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable

from mcp_skill.apps.app_id import ClientId, parse_client
from mcp_skill.apps.common.framework import create_client_repository
from mcp_skill.apps.common.interfaces.repositories import IClientConfigRepository
from mcp_skill.constants import MCP_DEFINITION_FILENAME
from mcp_skill.core.filesystem import replace_tree
from mcp_skill.core.repository import LocalStore, load_definition_file
from mcp_skill.errors import (
    AlreadyExistsError,
    ArtifactNotFoundError,
    InvalidDefinitionError,
    NotInstalledError,
    SkillManagerError,
    UnsupportedScopeError,
)
from mcp_skill.fetcher import ContentFetcher, check_requirements
from mcp_skill.inputs import InputCollector, expand, expand_list, expand_map, with_builtins
from mcp_skill.models import (
    ArtifactKind,
    Definition,
    Installed,
    Scope,
    Transport,
    UpdateResult,
    UpdateStatus,
)
from mcp_skill.reconcile import Confirm, filter_by_name, group_by_name
from mcp_skill.registry.index import RegistryIndex
from mcp_skill.registry.models import LocalRecord, MCPEntry
from mcp_skill.registry.sync import IndexSyncService
from mcp_skill.resolver import ArtifactResolver, Resolution, SourceKind

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[ClientId, Path, Path], IClientConfigRepository]


def build_definition(entry: MCPEntry, values: dict[str, str]) -> Definition:
    """Instantiate a registry entry with placeholder values substituted."""
    transport = entry.transport
    if transport == Transport.HTTP:
        return Definition.create(
            entry.name,
            transport,
            url=expand(entry.url, values),
            headers=expand_map(entry.headers, values),
        )
    if transport == Transport.STDIO:
        return Definition.create(
            entry.name,
            transport,
            command=expand(entry.run.command, values),
            args=expand_list(entry.run.args, values),
            env=expand_map(entry.run.env, values),
        )
    raise InvalidDefinitionError(f"invalid mcp entry: missing type: {entry.name}")


def expand_definition(definition: Definition, values: dict[str, str]) -> Definition:
    return Definition.create(
        definition.name,
        definition.transport,
        url=expand(definition.url, values),
        command=expand(definition.command, values),
        args=expand_list(definition.args, values),
        env=expand_map(definition.env, values),
        headers=expand_map(definition.headers, values),
    )


def repo_name(repo: str) -> str:
    name = repo.strip().rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    return name[: -len(".git")] if name.endswith(".git") else name


class MCPService:
    def __init__(
        self,
        store: LocalStore,
        sync: IndexSyncService,
        index: RegistryIndex,
        resolver: ArtifactResolver,
        fetcher: ContentFetcher,
        collector: InputCollector,
        home: Path | None = None,
        cwd: Path | None = None,
        repository_factory: RepositoryFactory | None = None,
        confirm: Confirm | None = None,
    ) -> None:
        self._store = store
        self._sync = sync
        self._index = index
        self._resolver = resolver
        self._fetcher = fetcher
        self._collector = collector
        self._home = home or Path.home()
        self._cwd = cwd or Path.cwd()
        self._repository_factory = repository_factory or create_client_repository
        self._confirm = confirm

    def repository(self, client: ClientId | str) -> IClientConfigRepository:
        return self._repository_factory(parse_client(client), self._home, self._cwd)

    def install(
        self,
        token: str,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
        refresh: bool = False,
    ) -> list[Installed]:
        resolution = self._resolver.resolve(ArtifactKind.MCP, token)
        logger.debug("Resolved %s as %s", token, resolution.kind.value)
        if resolution.kind == SourceKind.REGISTRY and resolution.mcp_entry is not None:
            return self.install_entry(
                resolution.mcp_entry, clients, scope, force=force, refresh=refresh
            )
        if resolution.kind == SourceKind.REPO:
            return self._install_from_repo(resolution.token, clients, scope, force)

        return self.install_inline(self._definition_for(resolution), clients, scope, force)

    def install_inline(
        self,
        definition: Definition,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
    ) -> list[Installed]:
        """Install a ready definition and keep it as a template in the store."""
        self.preflight_install(definition.name, clients, scope, force)
        self._store.save_definition(definition)
        self._store.drop_record(ArtifactKind.MCP, definition.name)
        return self.install_definition(definition, clients, scope, force)

    def install_definition(
        self,
        definition: Definition,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
    ) -> list[Installed]:
        """Write ``definition`` into every selected client config.

        All targets are checked for scope support and conflicts before the
        first config file is touched.
        """
        self.preflight_install(definition.name, clients, scope, force)
        results: list[Installed] = []
        for client in clients:
            path = self.repository(client).install(definition, scope, force=force)
            logger.info("Installed MCP server %s for %s (%s)", definition.name, client.value, path)
            results.append(
                Installed(
                    name=definition.name,
                    client=client.value,
                    scope=scope,
                    path=path,
                    transport=definition.transport.value,
                )
            )
        return results

    def install_entry(
        self,
        entry: MCPEntry,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
        refresh: bool = False,
        inputs: dict[str, str] | None = None,
    ) -> list[Installed]:
        transport = entry.transport
        if transport is None:
            raise InvalidDefinitionError(f"invalid mcp entry: missing type: {entry.name}")

        self.preflight_install(entry.name, clients, scope, force)
        check_requirements(entry.requires, transport)
        values = inputs if inputs is not None else self._collector.collect(entry.inputs)

        root = ""
        if transport == Transport.STDIO:
            source, _ = self._fetcher.fetch_mcp_source(
                entry, force=refresh, confirm=None if refresh else self._confirm
            )
            root = str(source)

        definition = build_definition(entry, with_builtins(values, root))
        self._store.save_definition(build_definition(entry, with_builtins({}, root)))
        results = self.install_definition(definition, clients, scope, force)
        if transport != Transport.STDIO:
            self._store.save_record(ArtifactKind.MCP, LocalRecord.for_entry(entry))
        return results

    def preflight_install(
        self, name: str, clients: list[ClientId], scope: Scope, force: bool
    ) -> None:
        for client in clients:
            repository = self.repository(client)
            path = repository.config_path(scope)
            if force:
                continue
            if any(entry.name == name for entry in repository.list_servers(scope)):
                raise AlreadyExistsError(ArtifactKind.MCP.value, name, path)

    def list(self, clients: list[ClientId], scopes: list[Scope]) -> list[Installed]:
        results: list[Installed] = []
        for scope in scopes:
            for client in clients:
                repository = self.repository(client)
                try:
                    path = repository.config_path(scope)
                except UnsupportedScopeError:
                    continue
                for entry in repository.list_servers(scope):
                    results.append(
                        Installed(
                            name=entry.name,
                            client=client.value,
                            scope=scope,
                            path=path,
                            transport=entry.transport,
                        )
                    )
        return results

    def uninstall(
        self,
        name: str,
        clients: list[ClientId],
        scope: Scope,
        force: bool = False,
    ) -> list[Installed]:
        present: list[ClientId] = []
        for client in clients:
            repository = self.repository(client)
            path = repository.config_path(scope)
            if any(entry.name == name for entry in repository.list_servers(scope)):
                present.append(client)
            elif not force:
                raise NotInstalledError(ArtifactKind.MCP.value, name, path)

        results: list[Installed] = []
        for client in present:
            path = self.repository(client).uninstall(name, scope, force=force)
            logger.info("Removed MCP server %s from %s (%s)", name, client.value, path)
            results.append(Installed(name=name, client=client.value, scope=scope, path=path))
        return results

    def uninstall_targets(
        self, clients: list[ClientId], scopes: list[Scope]
    ) -> list[Installed]:
        return self.list(clients, scopes)

    def uninstall_all(self, targets: list[Installed]) -> list[Installed]:
        results: list[Installed] = []
        for item in targets:
            path = self.repository(item.client).uninstall(item.name, item.scope, force=True)
            results.append(
                Installed(name=item.name, client=item.client, scope=item.scope, path=path)
            )
        return results

    def update(
        self,
        clients: list[ClientId],
        scopes: list[Scope],
        name: str | None = None,
    ) -> list[UpdateResult]:
        """Reinstall every installed (client, scope) pair whose registry entry moved.

        Staleness and inputs are decided once per name; only the first
        successful pair re-fetches the cached source. Failures are collected
        per pair.
        """
        targets = filter_by_name(self.list(clients, scopes), name)
        if not targets:
            return []
        self._sync.ensure_indexes()

        results: list[UpdateResult] = []
        for item_name, items in group_by_name(targets).items():
            entry = self._index.find_mcp(item_name)
            if entry is None:
                results.extend(UpdateResult(item, UpdateStatus.NOT_IN_REGISTRY) for item in items)
                continue

            try:
                stale = self._fetcher.needs_update(ArtifactKind.MCP, entry)
            except SkillManagerError as exc:
                results.extend(
                    UpdateResult(item, UpdateStatus.FAILED, str(exc), exc) for item in items
                )
                continue
            if not stale:
                results.extend(UpdateResult(item, UpdateStatus.LATEST) for item in items)
                continue

            values: dict[str, str] | None = None
            refresh = True
            for item in items:
                try:
                    if values is None:
                        values = self._collector.collect(entry.inputs)
                    self.install_entry(
                        entry,
                        [parse_client(item.client)],
                        item.scope,
                        force=True,
                        refresh=refresh,
                        inputs=values,
                    )
                except SkillManagerError as exc:
                    logger.debug("Update failed for %s (%s/%s)", item.name, item.client, item.scope.value)
                    results.append(UpdateResult(item, UpdateStatus.FAILED, str(exc), exc))
                    continue
                refresh = False
                results.append(UpdateResult(item, UpdateStatus.UPDATED, entry.head or entry.updated_at))
        return results

    def available(self, query: str = "") -> list[MCPEntry]:
        self._sync.ensure_indexes()
        return self._index.search_mcp(query)

    def view(self, name: str) -> tuple[MCPEntry, LocalRecord | None]:
        self._sync.ensure_indexes()
        entry = self._index.find_mcp(name)
        if entry is None:
            raise ArtifactNotFoundError(ArtifactKind.MCP.value, name)
        return entry, self._store.load_record(ArtifactKind.MCP, entry.name)

    def _definition_for(self, resolution: Resolution) -> Definition:
        if resolution.kind == SourceKind.PATH and resolution.path is not None:
            return self._definition_from_path(resolution.path)
        if resolution.kind == SourceKind.LOCAL:
            return self._store.load_definition(resolution.token)
        raise ArtifactNotFoundError(ArtifactKind.MCP.value, resolution.token)

    def _definition_from_path(self, path: Path) -> Definition:
        if path.is_file():
            return load_definition_file(path)
        definition_file = path / MCP_DEFINITION_FILENAME
        if not definition_file.is_file():
            raise InvalidDefinitionError(f"{MCP_DEFINITION_FILENAME} not found in {path}")
        definition = load_definition_file(definition_file, name=path.resolve().name)
        return expand_definition(definition, with_builtins({}, str(path.resolve())))

    def _install_from_repo(
        self, repo: str, clients: list[ClientId], scope: Scope, force: bool
    ) -> list[Installed]:
        """Clone ``repo``, check every target, then replace the cached checkout."""
        name = repo_name(repo)
        dest = self._store.mcp_source_path(name)
        with tempfile.TemporaryDirectory(prefix="mcp-skill-") as tmp:
            checkout = self._fetcher.clone_repository(repo, Path(tmp) / "repo")
            definition_file = checkout / MCP_DEFINITION_FILENAME
            if not definition_file.is_file():
                raise InvalidDefinitionError(
                    f"{MCP_DEFINITION_FILENAME} not found at the root of {repo}"
                )
            template = load_definition_file(definition_file, name=name)
            self.preflight_install(name, clients, scope, force)
            replace_tree(checkout, dest)
        self._store.drop_record(ArtifactKind.MCP, name)
        definition = expand_definition(template, with_builtins({}, str(dest)))
        return self.install_inline(definition, clients, scope, force)
