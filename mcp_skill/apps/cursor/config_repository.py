from pathlib import Path

from mcp_skill.apps.app_id import ClientId
from mcp_skill.apps.common.json_repository import JsonClientConfigRepository
from mcp_skill.apps.cursor.mapper import CursorMCPMapper
from mcp_skill.models import Scope


class CursorConfigRepository(JsonClientConfigRepository):
    CLIENT_ID = ClientId.CURSOR

    @classmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "CursorConfigRepository":
        return cls(mapper=CursorMCPMapper(), home=home, cwd=cwd)

    def config_path(self, scope: Scope) -> Path:
        if scope == Scope.USER:
            return self.home / ".cursor" / "mcp.json"
        return self.cwd / ".cursor" / "mcp.json"
