import logging
from pathlib import Path

from mcp_skill.apps.app_id import ClientId
from mcp_skill.apps.codex.mapper import CodexMCPMapper
from mcp_skill.apps.codex.toml_blocks import (
    Block,
    BlockKind,
    find_server,
    parse_blocks,
    remove_server,
    render_blocks,
    upsert_server,
)
from mcp_skill.apps.common.framework import RegisteredClientConfigRepository
from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.errors import AlreadyExistsError, NotInstalledError, UnsupportedScopeError
from mcp_skill.models import ArtifactKind, Definition, Scope, ServerEntry
from mcp_skill.utils import write_config_text

logger = logging.getLogger(__name__)


class CodexConfigRepository(RegisteredClientConfigRepository):
    CLIENT_ID = ClientId.CODEX

    def __init__(
        self,
        mapper: IClientMCPMapper,
        home: Path | None = None,
        cwd: Path | None = None,
    ) -> None:
        super().__init__(home=home, cwd=cwd)
        self._mapper = mapper

    @classmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "CodexConfigRepository":
        return cls(mapper=CodexMCPMapper(), home=home, cwd=cwd)

    @property
    def mapper(self) -> IClientMCPMapper:
        return self._mapper

    def config_path(self, scope: Scope) -> Path:
        if scope != Scope.USER:
            raise UnsupportedScopeError(
                self.client_id.value, scope.value, "use the global scope"
            )
        return self.home / ".codex" / "config.toml"

    def load_blocks(self, path: Path) -> list[Block]:
        if not path.exists():
            return []
        return parse_blocks(path.read_text(encoding="utf-8"))

    def save_blocks(self, path: Path, blocks: list[Block]) -> None:
        write_config_text(path, render_blocks(blocks))
        logger.debug("Wrote codex config: %s", path)

    def install(self, definition: Definition, scope: Scope, force: bool = False) -> Path:
        path = self.config_path(scope)
        blocks = self.load_blocks(path)
        if find_server(blocks, definition.name) is not None and not force:
            raise AlreadyExistsError(ArtifactKind.MCP.value, definition.name, path)

        lines = self.mapper.to_client(definition)
        self.save_blocks(path, upsert_server(blocks, definition.name, lines))
        return path

    def uninstall(self, name: str, scope: Scope, force: bool = False) -> Path:
        path = self.config_path(scope)
        blocks = self.load_blocks(path)
        if find_server(blocks, name) is None:
            if force:
                return path
            raise NotInstalledError(ArtifactKind.MCP.value, name, path)

        self.save_blocks(path, remove_server(blocks, name))
        return path

    def list_servers(self, scope: Scope) -> list[ServerEntry]:
        path = self.config_path(scope)
        entries = [
            ServerEntry(name=block.name, transport=self.mapper.detect_transport(block.lines))
            for block in self.load_blocks(path)
            if block.kind == BlockKind.SERVER
        ]
        return sorted(entries, key=lambda entry: entry.name)
