"""Line-block editing for the ``config.toml`` server tables.

The file is split into an ordered list of blocks. A ``[mcp_servers.NAME]``
table starts a server block that also absorbs its ``[mcp_servers.NAME.*]``
sub-tables; every other table (and any preamble) is an opaque block. Untouched
blocks are written back line for line.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from mcp_skill.constants import CODEX_SERVERS_TABLE

_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class BlockKind(str, Enum):
    OTHER = "other"
    SERVER = "server"


@dataclass
class Block:
    kind: BlockKind
    name: str = ""
    lines: list[str] = field(default_factory=list)


def dump_toml_string(value: str) -> str:
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def dump_toml_array(values: list[str]) -> str:
    return "[" + ", ".join(dump_toml_string(item) for item in values) + "]"


def format_key(key: str) -> str:
    return key if _BARE_KEY_RE.match(key) else dump_toml_string(key)


def server_table(name: str, *sub: str) -> str:
    parts = [CODEX_SERVERS_TABLE, format_key(name), *[format_key(item) for item in sub]]
    return "[" + ".".join(parts) + "]"


def parse_table_header(line: str) -> list[str] | None:
    """Return the dotted key parts of a ``[table]`` header line, else ``None``."""
    text = line.strip()
    if not text.startswith("["):
        return None
    if text.startswith("[["):
        body, closing = text[2:], "]]"
    else:
        body, closing = text[1:], "]"

    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    index = 0
    while index < len(body):
        ch = body[index]
        if quote is not None:
            if quote == '"' and ch == "\\" and index + 1 < len(body):
                current.append(_unescape(body[index + 1]))
                index += 2
                continue
            if ch == quote:
                quote = None
            else:
                current.append(ch)
            index += 1
            continue
        if ch in ('"', "'"):
            quote = ch
        elif ch == ".":
            parts.append("".join(current).strip())
            current = []
        elif body.startswith(closing, index):
            parts.append("".join(current).strip())
            rest = body[index + len(closing) :].strip()
            if rest and not rest.startswith("#"):
                return None
            return parts if all(parts) else None
        elif ch in " \t" or _BARE_KEY_RE.match(ch):
            current.append(ch)
        else:
            return None
        index += 1
    return None


def _unescape(ch: str) -> str:
    return {"n": "\n", "t": "\t", "r": "\r"}.get(ch, ch)


def parse_blocks(text: str) -> list[Block]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    blocks: list[Block] = []
    current = Block(kind=BlockKind.OTHER)
    for line in lines:
        parts = parse_table_header(line)
        if parts is None:
            current.lines.append(line)
            continue

        if (
            current.kind == BlockKind.SERVER
            and len(parts) > 2
            and parts[0] == CODEX_SERVERS_TABLE
            and parts[1] == current.name
        ):
            current.lines.append(line)
            continue

        if current.lines:
            blocks.append(current)
        if len(parts) >= 2 and parts[0] == CODEX_SERVERS_TABLE:
            current = Block(kind=BlockKind.SERVER, name=parts[1], lines=[line])
        else:
            current = Block(kind=BlockKind.OTHER, lines=[line])

    if current.lines:
        blocks.append(current)
    return blocks


def render_blocks(blocks: list[Block]) -> str:
    lines = [line for block in blocks for line in block.lines]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def find_server(blocks: list[Block], name: str) -> int | None:
    for index, block in enumerate(blocks):
        if block.kind == BlockKind.SERVER and block.name == name:
            return index
    return None


def upsert_server(blocks: list[Block], name: str, lines: list[str]) -> list[Block]:
    updated = list(blocks)
    index = find_server(updated, name)
    if index is not None:
        old = updated[index].lines
        trailing = 0
        while trailing < len(old) - 1 and not old[-1 - trailing].strip():
            trailing += 1
        updated[index] = Block(
            kind=BlockKind.SERVER, name=name, lines=[*lines, *([""] * trailing)]
        )
        return updated

    if updated and updated[-1].lines and updated[-1].lines[-1].strip():
        updated.append(Block(kind=BlockKind.OTHER, lines=[""]))
    updated.append(Block(kind=BlockKind.SERVER, name=name, lines=list(lines)))
    return updated


def remove_server(blocks: list[Block], name: str) -> list[Block]:
    return [
        block
        for block in blocks
        if not (block.kind == BlockKind.SERVER and block.name == name)
    ]
