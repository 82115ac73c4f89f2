from mcp_skill.apps.common.interfaces.mapper import IClientMCPMapper
from mcp_skill.apps.common.interfaces.repositories import IClientConfigRepository

__all__ = [
    "IClientConfigRepository",
    "IClientMCPMapper",
]
