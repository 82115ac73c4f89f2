from mcp_skill.apps.claude.mapper import ClaudeMCPMapper


class GeminiMCPMapper(ClaudeMCPMapper):
    """Gemini stores servers in the same typed shape as Claude."""
