from mcp_skill.apps.common.framework import (
    RegisteredClientConfigRepository,
    create_client_repository,
    list_registered_clients,
)
from mcp_skill.apps.common.utils import detect_transport, extract_entries

__all__ = [
    "RegisteredClientConfigRepository",
    "create_client_repository",
    "detect_transport",
    "extract_entries",
    "list_registered_clients",
]
