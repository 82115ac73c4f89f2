from typing import Final


APP_NAME: Final[str] = "mcp-skill"
USER_AGENT: Final[str] = "mcp-skill"

STORE_DIRNAME: Final[str] = ".mcp-skill"
SKILL_STORE_DIRNAME: Final[str] = "skill"
MCP_STORE_DIRNAME: Final[str] = "mcp"
META_DIRNAME: Final[str] = ".meta"
SETTINGS_FILENAME: Final[str] = "config.json"

SKILL_INDEX_FILENAME: Final[str] = "index.skill.json"
MCP_INDEX_FILENAME: Final[str] = "index.mcp.json"
INDEX_META_FILENAME: Final[str] = "index.meta.json"

SKILL_FILENAME: Final[str] = "SKILL.md"
MCP_DEFINITION_FILENAME: Final[str] = "mcp.json"
GIT_DIRNAME: Final[str] = ".git"
VCS_DIRNAMES: Final[tuple[str, ...]] = (".git", ".hg", ".svn")

DEFAULT_REGISTRY_REPO: Final[str] = "https://github.com/wangxu-dev/mcp-skill-registry"
DEFAULT_REGISTRY_BRANCH: Final[str] = "main"
DEFAULT_SYNC_TTL_SECONDS: Final[int] = 5 * 60

ENV_STORE_HOME: Final[str] = "MCP_SKILL_HOME"
ENV_REGISTRY_REPO: Final[str] = "MCP_REGISTRY_REPO"
ENV_REGISTRY_BRANCH: Final[str] = "MCP_REGISTRY_BRANCH"
ENV_REGISTRY_TTL: Final[str] = "MCP_REGISTRY_TTL"

OPENCODE_SCHEMA_URL: Final[str] = "https://opencode.ai/config.json"
CODEX_SERVERS_TABLE: Final[str] = "mcp_servers"

ROOT_PLACEHOLDER: Final[str] = "ROOT"
