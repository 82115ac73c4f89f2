_LOADED = False


def load_client_repository_modules() -> None:
    global _LOADED
    if _LOADED:
        return

    from mcp_skill.apps.claude import config_repository as _claude  # noqa: F401
    from mcp_skill.apps.codex import config_repository as _codex  # noqa: F401
    from mcp_skill.apps.cursor import config_repository as _cursor  # noqa: F401
    from mcp_skill.apps.gemini import config_repository as _gemini  # noqa: F401
    from mcp_skill.apps.opencode import config_repository as _opencode  # noqa: F401

    _LOADED = True
