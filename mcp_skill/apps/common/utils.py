from typing import Any, Callable

from mcp_skill.models import ServerEntry, Transport, normalize_transport


def detect_transport(server: Any) -> str:
    """Infer the transport of a stored server entry.

    An explicit ``type`` wins (``local``/``remote`` are normalized), otherwise a
    ``url`` key means http and a ``command`` key means stdio.
    """
    if not isinstance(server, dict):
        return ""
    raw_type = server.get("type")
    normalized = normalize_transport(raw_type) if isinstance(raw_type, str) else None
    if normalized is not None:
        return normalized.value
    if "url" in server:
        return Transport.HTTP.value
    if "command" in server:
        return Transport.STDIO.value
    return ""


def extract_entries(
    servers: dict[str, Any], detect: Callable[[Any], str] = detect_transport
) -> list[ServerEntry]:
    return [
        ServerEntry(name=name, transport=detect(servers[name]))
        for name in sorted(servers)
    ]
