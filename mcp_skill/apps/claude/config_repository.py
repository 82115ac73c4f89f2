from pathlib import Path

from mcp_skill.apps.app_id import ClientId
from mcp_skill.apps.claude.mapper import ClaudeMCPMapper
from mcp_skill.apps.common.json_repository import JsonClientConfigRepository
from mcp_skill.models import Scope


class ClaudeConfigRepository(JsonClientConfigRepository):
    CLIENT_ID = ClientId.CLAUDE

    @classmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "ClaudeConfigRepository":
        return cls(mapper=ClaudeMCPMapper(), home=home, cwd=cwd)

    def config_path(self, scope: Scope) -> Path:
        if scope == Scope.USER:
            return self.home / ".claude.json"
        return self.cwd / ".mcp.json"
