from pathlib import Path
from typing import Any

from mcp_skill.apps.app_id import ClientId
from mcp_skill.apps.common.json_repository import JsonClientConfigRepository
from mcp_skill.apps.opencode.mapper import OpenCodeMCPMapper
from mcp_skill.constants import OPENCODE_SCHEMA_URL
from mcp_skill.models import Scope


class OpenCodeConfigRepository(JsonClientConfigRepository):
    CLIENT_ID = ClientId.OPENCODE
    SERVERS_KEY = "mcp"

    @classmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "OpenCodeConfigRepository":
        return cls(mapper=OpenCodeMCPMapper(), home=home, cwd=cwd)

    def config_path(self, scope: Scope) -> Path:
        if scope == Scope.USER:
            return self.home / ".config" / "opencode" / "opencode.json"
        return self.cwd / ".opencode" / "opencode.json"

    def prepare_config(self, payload: dict[str, Any]) -> None:
        payload.setdefault("$schema", OPENCODE_SCHEMA_URL)
