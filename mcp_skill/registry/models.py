"""Registry index records and local provenance records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mcp_skill.models import Transport


class InputType(str, Enum):
    TEXT = "text"
    BOOL = "bool"
    CHOICE = "choice"


@dataclass(frozen=True)
class MCPInput:
    name: str
    label: str = ""
    type: InputType = InputType.TEXT
    required: bool = False
    default: str = ""
    options: list[str] = field(default_factory=list)

    @property
    def display_label(self) -> str:
        return self.label.strip() or self.name

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MCPInput":
        raw_type = str(payload.get("type") or "").strip().lower()
        try:
            input_type = InputType(raw_type) if raw_type else InputType.TEXT
        except ValueError:
            input_type = InputType.TEXT
        return cls(
            name=str(payload.get("name") or "").strip(),
            label=str(payload.get("label") or ""),
            type=input_type,
            required=bool(payload.get("required", False)),
            default=str(payload.get("default") or ""),
            options=[str(item) for item in payload.get("options") or []],
        )


@dataclass(frozen=True)
class MCPRun:
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "MCPRun":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            command=str(payload.get("command") or ""),
            args=[str(item) for item in payload.get("args") or []],
            env={str(k): str(v) for k, v in (payload.get("env") or {}).items()},
        )


@dataclass(frozen=True)
class SkillEntry:
    name: str
    path: str = ""
    repo: str = ""
    head: str = ""
    updated_at: str = ""
    version: str = ""
    description: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SkillEntry":
        return cls(
            name=str(payload.get("name") or "").strip(),
            path=str(payload.get("path") or ""),
            repo=str(payload.get("repo") or ""),
            head=str(payload.get("head") or ""),
            updated_at=str(payload.get("updatedAt") or ""),
            version=str(payload.get("version") or ""),
            description=str(payload.get("description") or ""),
        )


@dataclass(frozen=True)
class MCPEntry:
    name: str
    type: str = ""
    description: str = ""
    path: str = ""
    repo: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    requires: list[str] = field(default_factory=list)
    install: list[str] = field(default_factory=list)
    run: MCPRun = field(default_factory=MCPRun)
    inputs: list[MCPInput] = field(default_factory=list)
    head: str = ""
    updated_at: str = ""

    @property
    def transport(self) -> Transport | None:
        entry_type = self.type.strip().lower()
        if not entry_type and self.url.strip():
            entry_type = Transport.HTTP.value
        if not entry_type and self.repo.strip():
            entry_type = Transport.STDIO.value
        try:
            return Transport(entry_type)
        except ValueError:
            return None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MCPEntry":
        return cls(
            name=str(payload.get("name") or "").strip(),
            type=str(payload.get("type") or ""),
            description=str(payload.get("description") or ""),
            path=str(payload.get("path") or ""),
            repo=str(payload.get("repo") or ""),
            url=str(payload.get("url") or ""),
            headers={str(k): str(v) for k, v in (payload.get("headers") or {}).items()},
            requires=[str(item) for item in payload.get("requires") or []],
            install=[str(item) for item in payload.get("install") or []],
            run=MCPRun.from_payload(payload.get("run")),
            inputs=[
                MCPInput.from_payload(item)
                for item in payload.get("inputs") or []
                if isinstance(item, dict)
            ],
            head=str(payload.get("head") or ""),
            updated_at=str(payload.get("updatedAt") or ""),
        )


@dataclass(frozen=True)
class LocalRecord:
    name: str
    repo: str = ""
    path: str = ""
    head: str = ""
    updated_at: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LocalRecord":
        return cls(
            name=str(payload.get("name") or ""),
            repo=str(payload.get("repo") or ""),
            path=str(payload.get("path") or ""),
            head=str(payload.get("head") or ""),
            updated_at=str(payload.get("updatedAt") or ""),
        )

    @classmethod
    def for_entry(cls, entry: SkillEntry | MCPEntry) -> "LocalRecord":
        return cls(
            name=entry.name,
            repo=entry.repo,
            path=entry.path,
            head=entry.head,
            updated_at=entry.updated_at,
        )

    def to_payload(self) -> dict[str, str]:
        payload = {
            "name": self.name,
            "repo": self.repo,
            "path": self.path,
            "head": self.head,
        }
        if self.updated_at:
            payload["updatedAt"] = self.updated_at
        return payload


@dataclass(frozen=True)
class SyncMeta:
    repo: str = ""
    branch: str = ""
    last_sync: str = ""
    skill_index: str = ""
    mcp_index: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "SyncMeta":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            repo=str(payload.get("repo") or ""),
            branch=str(payload.get("branch") or ""),
            last_sync=str(payload.get("lastSync") or ""),
            skill_index=str(payload.get("skillIndex") or ""),
            mcp_index=str(payload.get("mcpIndex") or ""),
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "repo": self.repo,
            "branch": self.branch,
            "lastSync": self.last_sync,
            "skillIndex": self.skill_index,
            "mcpIndex": self.mcp_index,
        }
