from pathlib import Path

from mcp_skill.apps.app_id import ClientId
from mcp_skill.apps.common.json_repository import JsonClientConfigRepository
from mcp_skill.apps.gemini.mapper import GeminiMCPMapper
from mcp_skill.models import Scope


class GeminiConfigRepository(JsonClientConfigRepository):
    CLIENT_ID = ClientId.GEMINI

    @classmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "GeminiConfigRepository":
        return cls(mapper=GeminiMCPMapper(), home=home, cwd=cwd)

    def config_path(self, scope: Scope) -> Path:
        if scope == Scope.USER:
            return self.home / ".gemini" / "mcp.json"
        return self.cwd / ".gemini" / "mcp.json"
