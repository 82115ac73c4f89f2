from typing import Any

from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.apps.common.utils import detect_transport
from mcp_skill.models import Definition, Transport


class ClaudeMCPMapper(IClientMCPMapper):
    def to_client(self, definition: Definition) -> dict[str, Any]:
        if definition.transport == Transport.HTTP:
            out: dict[str, Any] = {"type": "http", "url": definition.url}
            if definition.headers:
                out["headers"] = dict(definition.headers)
            return out

        out = {
            "type": "stdio",
            "command": definition.command,
            "args": list(definition.args),
        }
        if definition.env:
            out["env"] = dict(definition.env)
        return out

    def detect_transport(self, payload: Any) -> str:
        return detect_transport(payload)
