import logging
from pathlib import Path
from typing import Any, ClassVar

from mcp_skill.apps.common.framework import RegisteredClientConfigRepository
from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.apps.common.jsonc import load_jsonc_object
from mcp_skill.apps.common.utils import extract_entries
from mcp_skill.errors import AlreadyExistsError, NotInstalledError
from mcp_skill.models import ArtifactKind, Definition, Scope, ServerEntry
from mcp_skill.utils import write_config_json

logger = logging.getLogger(__name__)


class JsonClientConfigRepository(RegisteredClientConfigRepository):
    """Shared logic for clients that keep servers in one map of a JSON file.

    Only the map under ``SERVERS_KEY`` is mutated; every sibling key is written
    back unchanged.
    """

    SERVERS_KEY: ClassVar[str] = "mcpServers"

    def __init__(
        self,
        mapper: IClientMCPMapper,
        home: Path | None = None,
        cwd: Path | None = None,
    ) -> None:
        super().__init__(home=home, cwd=cwd)
        self._mapper = mapper

    @property
    def mapper(self) -> IClientMCPMapper:
        return self._mapper

    def load_config(self, path: Path) -> dict[str, Any]:
        return load_jsonc_object(path)

    def save_config(self, path: Path, payload: dict[str, Any]) -> None:
        write_config_json(path, payload)
        logger.debug("Wrote %s config: %s", self.client_id.value, path)

    def prepare_config(self, payload: dict[str, Any]) -> None:
        """Hook for client-specific top-level keys written alongside servers."""

    def load_servers(self, payload: dict[str, Any]) -> dict[str, Any]:
        servers = payload.get(self.SERVERS_KEY)
        return dict(servers) if isinstance(servers, dict) else {}

    def install(self, definition: Definition, scope: Scope, force: bool = False) -> Path:
        path = self.config_path(scope)
        payload = self.load_config(path)
        servers = self.load_servers(payload)
        if definition.name in servers and not force:
            raise AlreadyExistsError(ArtifactKind.MCP.value, definition.name, path)

        servers[definition.name] = self.mapper.to_client(definition)
        payload[self.SERVERS_KEY] = servers
        self.prepare_config(payload)
        self.save_config(path, payload)
        return path

    def uninstall(self, name: str, scope: Scope, force: bool = False) -> Path:
        path = self.config_path(scope)
        payload = self.load_config(path)
        servers = self.load_servers(payload)
        if name not in servers:
            if force:
                return path
            raise NotInstalledError(ArtifactKind.MCP.value, name, path)

        del servers[name]
        payload[self.SERVERS_KEY] = servers
        self.save_config(path, payload)
        return path

    def list_servers(self, scope: Scope) -> list[ServerEntry]:
        path = self.config_path(scope)
        servers = self.load_servers(self.load_config(path))
        return extract_entries(servers, self.mapper.detect_transport)
