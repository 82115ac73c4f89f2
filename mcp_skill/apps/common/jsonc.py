import json
from pathlib import Path
from typing import Any

from mcp_skill.errors import InvalidConfigSchemaError, InvalidJsonFormatError


def strip_json_comments(text: str) -> str:
    """Drop ``//`` and ``/* */`` comments that sit outside string literals.

    Newlines ending a line comment are kept so decoder error positions still
    match the original file.
    """
    out: list[str] = []
    in_string = False
    escape = False
    in_line_comment = False
    in_block_comment = False

    index = 0
    length = len(text)
    while index < length:
        ch = text[index]

        if in_line_comment:
            if ch == "\n":
                in_line_comment = False
                out.append(ch)
            index += 1
            continue

        if in_block_comment:
            if ch == "*" and index + 1 < length and text[index + 1] == "/":
                in_block_comment = False
                index += 2
                continue
            index += 1
            continue

        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            index += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            index += 1
            continue

        if ch == "/" and index + 1 < length:
            following = text[index + 1]
            if following == "/":
                in_line_comment = True
                index += 2
                continue
            if following == "*":
                in_block_comment = True
                index += 2
                continue

        out.append(ch)
        index += 1

    return "".join(out)


def loads_jsonc(text: str) -> Any:
    return json.loads(strip_json_comments(text))


def load_jsonc_object(path: Path) -> dict[str, Any]:
    """Read a comment-tolerant JSON object; a missing or blank file is ``{}``."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        payload = loads_jsonc(text)
    except ValueError as exc:
        raise InvalidJsonFormatError(path, str(exc)) from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidConfigSchemaError(path, "must be a JSON object")
    return payload
