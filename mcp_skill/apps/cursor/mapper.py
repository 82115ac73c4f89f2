from copy import deepcopy
from typing import Any

from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.apps.common.utils import detect_transport
from mcp_skill.models import Definition, Transport


class CursorMCPMapper(IClientMCPMapper):
    def to_client(self, definition: Definition) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if definition.transport == Transport.STDIO:
            out["command"] = definition.command
            out["args"] = deepcopy(definition.args)
            if definition.env:
                out["env"] = deepcopy(definition.env)
            return out

        out["url"] = definition.url
        if definition.headers:
            out["headers"] = deepcopy(definition.headers)
        return out

    def detect_transport(self, payload: Any) -> str:
        return detect_transport(payload)
