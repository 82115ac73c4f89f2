from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from mcp_skill.errors import SkillManagerError, UnknownClientError
from mcp_skill.models import Scope


class ClientId(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"
    OPENCODE = "opencode"
    CURSOR = "cursor"
    AMP = "amp"
    KILOCODE = "kilocode"
    ROO = "roo"
    GOOSE = "goose"
    ANTIGRAVITY = "antigravity"
    COPILOT = "copilot"
    CLAWDBOT = "clawdbot"
    DROID = "droid"
    WINDSURF = "windsurf"


class ConfigFormat(str, Enum):
    JSON = "json"
    BLOCKS = "blocks"


@dataclass(frozen=True)
class ClientMetadata:
    client_id: ClientId
    label: str
    user_skill_root: str
    project_skill_root: str
    config_format: ConfigFormat | None = None

    @property
    def supports_mcp(self) -> bool:
        return self.config_format is not None

    def skill_root(self, scope: Scope, home: Path, cwd: Path) -> Path:
        if scope == Scope.USER:
            return home / self.user_skill_root
        return cwd / self.project_skill_root


CLIENT_CATALOG: dict[ClientId, ClientMetadata] = {
    ClientId.CLAUDE: ClientMetadata(
        client_id=ClientId.CLAUDE,
        label="Claude",
        user_skill_root=".claude/skills",
        project_skill_root=".claude/skills",
        config_format=ConfigFormat.JSON,
    ),
    ClientId.CODEX: ClientMetadata(
        client_id=ClientId.CODEX,
        label="Codex",
        user_skill_root=".codex/skills",
        project_skill_root=".codex/skills",
        config_format=ConfigFormat.BLOCKS,
    ),
    ClientId.GEMINI: ClientMetadata(
        client_id=ClientId.GEMINI,
        label="Gemini",
        user_skill_root=".gemini/skills",
        project_skill_root=".gemini/skills",
        config_format=ConfigFormat.JSON,
    ),
    ClientId.OPENCODE: ClientMetadata(
        client_id=ClientId.OPENCODE,
        label="OpenCode",
        user_skill_root=".config/opencode/skill",
        project_skill_root=".opencode/skill",
        config_format=ConfigFormat.JSON,
    ),
    ClientId.CURSOR: ClientMetadata(
        client_id=ClientId.CURSOR,
        label="Cursor",
        user_skill_root=".cursor/skills",
        project_skill_root=".cursor/skills",
        config_format=ConfigFormat.JSON,
    ),
    ClientId.AMP: ClientMetadata(
        client_id=ClientId.AMP,
        label="Amp",
        user_skill_root=".config/agents/skills",
        project_skill_root=".agents/skills",
    ),
    ClientId.KILOCODE: ClientMetadata(
        client_id=ClientId.KILOCODE,
        label="Kilo Code",
        user_skill_root=".kilocode/skills",
        project_skill_root=".kilocode/skills",
    ),
    ClientId.ROO: ClientMetadata(
        client_id=ClientId.ROO,
        label="Roo Code",
        user_skill_root=".roo/skills",
        project_skill_root=".roo/skills",
    ),
    ClientId.GOOSE: ClientMetadata(
        client_id=ClientId.GOOSE,
        label="Goose",
        user_skill_root=".config/goose/skills",
        project_skill_root=".goose/skills",
    ),
    ClientId.ANTIGRAVITY: ClientMetadata(
        client_id=ClientId.ANTIGRAVITY,
        label="Antigravity",
        user_skill_root=".gemini/antigravity/skills",
        project_skill_root=".agent/skills",
    ),
    ClientId.COPILOT: ClientMetadata(
        client_id=ClientId.COPILOT,
        label="GitHub Copilot",
        user_skill_root=".copilot/skills",
        project_skill_root=".github/skills",
    ),
    ClientId.CLAWDBOT: ClientMetadata(
        client_id=ClientId.CLAWDBOT,
        label="Clawdbot",
        user_skill_root=".clawdbot/skills",
        project_skill_root="skills",
    ),
    ClientId.DROID: ClientMetadata(
        client_id=ClientId.DROID,
        label="Droid",
        user_skill_root=".factory/skills",
        project_skill_root=".factory/skills",
    ),
    ClientId.WINDSURF: ClientMetadata(
        client_id=ClientId.WINDSURF,
        label="Windsurf",
        user_skill_root=".codeium/windsurf/skills",
        project_skill_root=".windsurf/skills",
    ),
}


def client_metadata(client: ClientId | str) -> ClientMetadata:
    return CLIENT_CATALOG[parse_client(client)]


def client_label(client: ClientId | str) -> str:
    return client_metadata(client).label


def parse_client(value: ClientId | str) -> ClientId:
    if isinstance(value, ClientId):
        return value
    try:
        return ClientId(value.strip().lower())
    except ValueError as exc:
        raise UnknownClientError(value) from exc


def client_ids(*, supports_mcp: bool | None = None) -> list[ClientId]:
    ids: list[ClientId] = []
    for client_id, metadata in CLIENT_CATALOG.items():
        if supports_mcp is not None and metadata.supports_mcp != supports_mcp:
            continue
        ids.append(client_id)
    return ids


def parse_clients(value: str, *, mcp_only: bool = False) -> list[ClientId]:
    """Parse a comma-separated client list or ``all``.

    ``all`` narrows to MCP-capable clients when ``mcp_only`` is set; an explicit
    client without MCP support is an error in that mode.
    """
    text = (value or "").strip().lower()
    if not text:
        raise SkillManagerError("no client selected")
    if text == "all":
        return client_ids(supports_mcp=True if mcp_only else None)

    selected: list[ClientId] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        client_id = parse_client(part)
        if mcp_only and not CLIENT_CATALOG[client_id].supports_mcp:
            raise SkillManagerError(f"{client_id.value} does not support MCP servers")
        if client_id not in selected:
            selected.append(client_id)
    if not selected:
        raise SkillManagerError("no client selected")
    return selected
