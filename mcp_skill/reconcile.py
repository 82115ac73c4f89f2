from typing import Callable, TypeVar

from mcp_skill.errors import AlreadyExistsError
from mcp_skill.models import Installed

T = TypeVar("T")

Confirm = Callable[[str], bool]


def with_overwrite_confirmation(
    operation: Callable[[bool], T],
    confirm: Confirm,
    force: bool = False,
    prompt: str = "{error}. Overwrite? Type 'yes' to continue: ",
) -> T | None:
    """Run ``operation(force)``; on a conflict ask once and retry forced.

    Returns ``None`` when the overwrite is declined. A conflict raised by the
    forced retry propagates.
    """
    try:
        return operation(force)
    except AlreadyExistsError as exc:
        if force:
            raise
        if not confirm(prompt.format(error=exc)):
            return None
    return operation(True)


def group_by_name(items: list[Installed]) -> dict[str, list[Installed]]:
    """Group installed targets by artifact name, keeping first-seen order."""
    grouped: dict[str, list[Installed]] = {}
    for item in items:
        grouped.setdefault(item.name, []).append(item)
    return grouped


def filter_by_name(items: list[Installed], name: str | None) -> list[Installed]:
    if not name:
        return list(items)
    return [item for item in items if item.name == name]
