from typing import Any

from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.apps.common.utils import detect_transport
from mcp_skill.models import Definition, Transport


class OpenCodeMCPMapper(IClientMCPMapper):
    def to_client(self, definition: Definition) -> dict[str, Any]:
        if definition.transport == Transport.HTTP:
            out: dict[str, Any] = {"type": "remote", "url": definition.url}
            if definition.headers:
                out["headers"] = dict(definition.headers)
            out["enabled"] = True
            return out

        out = {
            "type": "local",
            "command": [definition.command, *definition.args],
        }
        if definition.env:
            out["environment"] = dict(definition.env)
        out["enabled"] = True
        return out

    def detect_transport(self, payload: Any) -> str:
        return detect_transport(payload)
