from typing import Any

from mcp_skill.apps.codex.toml_blocks import (
    dump_toml_array,
    dump_toml_string,
    format_key,
    parse_table_header,
    server_table,
)
from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.models import Definition, Transport


def _dump_string_table(lines: list[str], header: str, values: dict[str, str]) -> None:
    if not values:
        return
    lines.append("")
    lines.append(header)
    for key in sorted(values):
        lines.append(f"{format_key(key)} = {dump_toml_string(values[key])}")


class CodexMCPMapper(IClientMCPMapper):
    def to_client(self, definition: Definition) -> list[str]:
        lines = [server_table(definition.name)]
        if definition.transport == Transport.HTTP:
            lines.append(f"url = {dump_toml_string(definition.url)}")
            _dump_string_table(
                lines,
                server_table(definition.name, "http_headers"),
                definition.headers,
            )
            return lines

        lines.append(f"command = {dump_toml_string(definition.command)}")
        if definition.args:
            lines.append(f"args = {dump_toml_array(definition.args)}")
        _dump_string_table(lines, server_table(definition.name, "env"), definition.env)
        return lines

    def detect_transport(self, payload: Any) -> str:
        if not isinstance(payload, list):
            return ""
        for line in payload:
            text = str(line).strip()
            parts = parse_table_header(text)
            if parts is not None:
                if len(parts) > 2:
                    break
                continue
            key = text.split("=", 1)[0].strip() if "=" in text else ""
            if key == "url":
                return Transport.HTTP.value
            if key == "command":
                return Transport.STDIO.value
        return ""
