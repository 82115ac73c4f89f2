from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from mcp_skill.errors import InvalidDefinitionError


class Scope(str, Enum):
    USER = "user"
    PROJECT = "project"


class Transport(str, Enum):
    HTTP = "http"
    STDIO = "stdio"


class ArtifactKind(str, Enum):
    SKILL = "skill"
    MCP = "mcp"


TRANSPORT_SYNONYMS: dict[str, Transport] = {
    "http": Transport.HTTP,
    "remote": Transport.HTTP,
    "stdio": Transport.STDIO,
    "local": Transport.STDIO,
}


def normalize_transport(value: str | None) -> Transport | None:
    if value is None:
        return None
    return TRANSPORT_SYNONYMS.get(value.strip().lower())


@dataclass(frozen=True)
class Definition:
    """A client-independent MCP server definition.

    Instances are only built through :meth:`create`, which enforces that an
    http definition carries a url and a stdio definition carries a command.
    """

    name: str
    transport: Transport
    url: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        name: str,
        transport: str | Transport | None,
        *,
        url: str | None = None,
        command: str | None = None,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> "Definition":
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidDefinitionError("name is required")

        raw_transport = transport.value if isinstance(transport, Transport) else transport
        normalized = normalize_transport(raw_transport or "")
        if normalized is None:
            raise InvalidDefinitionError(
                f"unsupported transport: {(raw_transport or '').strip()}"
            )

        clean_url = (url or "").strip()
        clean_command = (command or "").strip()
        if normalized == Transport.HTTP:
            if not clean_url:
                raise InvalidDefinitionError("url is required for http transport")
            return cls(
                name=clean_name,
                transport=normalized,
                url=clean_url,
                headers=dict(headers or {}),
            )

        if not clean_command:
            raise InvalidDefinitionError("command is required for stdio transport")
        return cls(
            name=clean_name,
            transport=normalized,
            command=clean_command,
            args=[str(item) for item in (args or [])],
            env=dict(env or {}),
        )

    @classmethod
    def from_payload(cls, name: str, payload: dict[str, Any]) -> "Definition":
        transport = payload.get("transport") or payload.get("type")
        return cls.create(
            name,
            transport if isinstance(transport, str) else None,
            url=_as_str(payload.get("url")),
            command=_as_str(payload.get("command")),
            args=_as_str_list(payload.get("args")),
            env=_as_str_map(payload.get("env")),
            headers=_as_str_map(payload.get("headers")),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"transport": self.transport.value}
        if self.transport == Transport.HTTP:
            payload["url"] = self.url
            if self.headers:
                payload["headers"] = dict(self.headers)
            return payload
        payload["command"] = self.command
        payload["args"] = list(self.args)
        if self.env:
            payload["env"] = dict(self.env)
        return payload

    def renamed(self, name: str) -> "Definition":
        return Definition.create(
            name,
            self.transport,
            url=self.url,
            command=self.command,
            args=self.args,
            env=self.env,
            headers=self.headers,
        )


@dataclass(frozen=True)
class ServerEntry:
    name: str
    transport: str = ""


@dataclass(frozen=True)
class Installed:
    name: str
    client: str
    scope: Scope
    path: Path
    transport: str = ""
    version: str = ""
    description: str = ""


class UpdateStatus(str, Enum):
    UPDATED = "updated"
    LATEST = "latest"
    NOT_IN_REGISTRY = "not_in_registry"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateResult:
    item: Installed
    status: UpdateStatus
    detail: str = ""
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.status == UpdateStatus.FAILED


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _as_str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}
