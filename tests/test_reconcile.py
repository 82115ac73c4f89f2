from pathlib import Path

import pytest

from mcp_skill.errors import AlreadyExistsError
from mcp_skill.models import Installed, Scope
from mcp_skill.reconcile import filter_by_name, group_by_name, with_overwrite_confirmation


def _conflict() -> AlreadyExistsError:
    return AlreadyExistsError("mcp", "github", Path("/tmp/.mcp.json"))


class Operation:
    def __init__(self, conflicts: int) -> None:
        self.conflicts = conflicts
        self.calls: list[bool] = []

    def __call__(self, force: bool) -> str:
        self.calls.append(force)
        if len(self.calls) <= self.conflicts:
            raise _conflict()
        return "done"


def test_no_conflict_never_asks() -> None:
    asked: list[str] = []
    operation = Operation(conflicts=0)
    assert with_overwrite_confirmation(operation, asked.append) == "done"
    assert operation.calls == [False]
    assert asked == []


def test_confirmed_conflict_retries_forced() -> None:
    prompts: list[str] = []

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return True

    operation = Operation(conflicts=1)
    assert with_overwrite_confirmation(operation, confirm) == "done"
    assert operation.calls == [False, True]
    assert prompts == ["mcp already exists: github (/tmp/.mcp.json). Overwrite? Type 'yes' to continue: "]


def test_declined_conflict_returns_none() -> None:
    operation = Operation(conflicts=1)
    assert with_overwrite_confirmation(operation, lambda _prompt: False) is None
    assert operation.calls == [False]


def test_forced_conflict_propagates() -> None:
    operation = Operation(conflicts=5)
    with pytest.raises(AlreadyExistsError):
        with_overwrite_confirmation(operation, lambda _prompt: True, force=True)
    assert operation.calls == [True]


def test_grouping_keeps_first_seen_order() -> None:
    items = [
        Installed(name=name, client=client, scope=Scope.PROJECT, path=Path("/x"))
        for name, client in [("b", "claude"), ("a", "claude"), ("b", "cursor")]
    ]
    grouped = group_by_name(items)
    assert list(grouped) == ["b", "a"]
    assert [item.client for item in grouped["b"]] == ["claude", "cursor"]

    assert filter_by_name(items, None) == items
    assert [item.client for item in filter_by_name(items, "b")] == ["claude", "cursor"]
