from typing import Any

from jsonschema import Draft7Validator

_STRING_MAP: dict[str, Any] = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}

_STRING_LIST: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

SKILL_ENTRY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "path": {"type": "string"},
        "repo": {"type": "string"},
        "head": {"type": "string"},
        "updatedAt": {"type": "string"},
        "version": {"type": "string"},
        "description": {"type": "string"},
    },
}

MCP_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "label": {"type": "string"},
        "type": {"type": "string", "enum": ["", "text", "bool", "choice"]},
        "required": {"type": "boolean"},
        "default": {"type": "string"},
        "options": _STRING_LIST,
    },
}

MCP_ENTRY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "type": {"type": "string"},
        "description": {"type": "string"},
        "path": {"type": "string"},
        "repo": {"type": "string"},
        "url": {"type": "string"},
        "headers": _STRING_MAP,
        "requires": _STRING_LIST,
        "install": _STRING_LIST,
        "run": {
            "type": "object",
            "properties": {
                "command": {"type": "string"},
                "args": _STRING_LIST,
                "env": _STRING_MAP,
            },
        },
        "inputs": {"type": "array", "items": MCP_INPUT_SCHEMA},
        "head": {"type": "string"},
        "updatedAt": {"type": "string"},
    },
}

SKILL_INDEX_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "generatedAt": {"type": "string"},
        "skills": {"type": "array", "items": SKILL_ENTRY_SCHEMA},
    },
}

MCP_INDEX_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "generatedAt": {"type": "string"},
        "mcp": {"type": "array", "items": MCP_ENTRY_SCHEMA},
        "servers": {"type": "array", "items": MCP_ENTRY_SCHEMA},
    },
}

SKILL_INDEX_VALIDATOR = Draft7Validator(SKILL_INDEX_SCHEMA)
MCP_INDEX_VALIDATOR = Draft7Validator(MCP_INDEX_SCHEMA)
