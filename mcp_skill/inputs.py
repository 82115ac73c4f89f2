"""Typed input collection and ``${NAME}`` placeholder expansion."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Mapping, TextIO

from mcp_skill.constants import ROOT_PLACEHOLDER
from mcp_skill.errors import InputAbortedError, InvalidDefinitionError
from mcp_skill.registry.models import InputType, MCPInput

PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_TRUE_WORDS = frozenset({"y", "yes", "true", "1"})
_FALSE_WORDS = frozenset({"n", "no", "false", "0"})

INVALID_CHOICE_MESSAGE = "Invalid choice. Try again."
INVALID_BOOL_MESSAGE = "Invalid choice. Use y/n."


@dataclass(frozen=True)
class InputOutcome:
    accepted: bool
    value: str = ""
    message: str = ""


def prompt_text(spec: MCPInput) -> str:
    prompt = spec.display_label
    if spec.type == InputType.CHOICE and spec.options:
        prompt = f"{prompt} ({'/'.join(spec.options)})"
    if spec.default:
        prompt = f"{prompt} [{spec.default}]"
    if spec.type == InputType.BOOL:
        prompt = f"{prompt} (y/n)"
    return f"{prompt}: "


def evaluate_input(spec: MCPInput, raw: str) -> InputOutcome:
    """Decide whether one line of user input satisfies ``spec``.

    A rejected outcome means the caller should prompt again, printing
    ``message`` first when it is set.
    """
    value = raw.strip() or spec.default
    if not value and spec.required:
        return InputOutcome(accepted=False)

    if spec.type == InputType.CHOICE:
        if not spec.options or not value:
            return InputOutcome(accepted=True, value=value)
        if value.isdigit():
            index = int(value)
            if 1 <= index <= len(spec.options):
                return InputOutcome(accepted=True, value=spec.options[index - 1])
        for option in spec.options:
            if option.lower() == value.lower():
                return InputOutcome(accepted=True, value=option)
        return InputOutcome(accepted=False, message=INVALID_CHOICE_MESSAGE)

    if spec.type == InputType.BOOL:
        if not value:
            return InputOutcome(accepted=True, value="")
        lowered = value.lower()
        if lowered in _TRUE_WORDS:
            return InputOutcome(accepted=True, value="true")
        if lowered in _FALSE_WORDS:
            return InputOutcome(accepted=True, value="false")
        return InputOutcome(accepted=False, message=INVALID_BOOL_MESSAGE)

    return InputOutcome(accepted=True, value=value)


class InputCollector:
    def __init__(self, stdin: TextIO | None = None, out: TextIO | None = None) -> None:
        self._stdin = stdin
        self._out = out

    def collect(self, specs: list[MCPInput]) -> dict[str, str]:
        values: dict[str, str] = {}
        for spec in specs:
            if not spec.name:
                raise InvalidDefinitionError("invalid input: missing name")
            values[spec.name] = self.ask(spec)
        return values

    def ask(self, spec: MCPInput) -> str:
        stdin = self._stdin if self._stdin is not None else sys.stdin
        out = self._out if self._out is not None else sys.stdout
        while True:
            out.write(prompt_text(spec))
            out.flush()
            line = stdin.readline()
            if not line:
                raise InputAbortedError(spec.name)

            outcome = evaluate_input(spec, line)
            if outcome.accepted:
                return outcome.value
            if outcome.message:
                out.write(outcome.message + "\n")
                out.flush()


def expand(value: str, values: Mapping[str, str]) -> str:
    if not value or not values:
        return value

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return PLACEHOLDER_RE.sub(replace, value)


def expand_list(items: list[str], values: Mapping[str, str]) -> list[str]:
    return [expand(item, values) for item in items]


def expand_map(items: Mapping[str, str], values: Mapping[str, str]) -> dict[str, str]:
    return {key: expand(item, values) for key, item in items.items()}


def with_builtins(values: Mapping[str, str], root: str | None = None) -> dict[str, str]:
    """Add built-in placeholders; collected values with the same name win."""
    merged = dict(values)
    if root:
        merged.setdefault(ROOT_PLACEHOLDER, root)
    return merged
