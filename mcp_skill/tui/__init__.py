from mcp_skill.tui.renderers import SkillManagerConsoleUI

__all__ = ["SkillManagerConsoleUI"]
