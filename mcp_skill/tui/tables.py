from collections import Counter

from rich.table import Column, Table

from mcp_skill.models import Installed, UpdateResult
from mcp_skill.registry.models import LocalRecord, MCPEntry, SkillEntry
from mcp_skill.tui.enums import UPDATE_STATUS_LABEL, UPDATE_STATUS_STYLE, UIStyle
from mcp_skill.utils import compact_home_path, truncate

DESCRIPTION_LIMIT = 60


class InstalledTable:
    @staticmethod
    def skills_table(items: list[Installed]) -> Table:
        table = Table(
            Column(header="Skill", width=24),
            Column(header="Client", width=12),
            Column(header="Scope", width=8),
            Column(header="Version", width=10),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(
                item.name,
                item.client,
                item.scope.value,
                item.version,
                truncate(item.description, DESCRIPTION_LIMIT),
            )
        return table

    @staticmethod
    def servers_table(items: list[Installed]) -> Table:
        table = Table(
            Column(header="Server", width=24),
            Column(header="Client", width=12),
            Column(header="Scope", width=8),
            Column(header="Transport", width=10),
            Column(header="Config", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(
                item.name,
                item.client,
                item.scope.value,
                item.transport,
                compact_home_path(item.path),
            )
        return table

    @staticmethod
    def targets_table(items: list[Installed]) -> Table:
        table = Table(
            Column(header="Name", width=24),
            Column(header="Client", width=12),
            Column(header="Scope", width=8),
            Column(header="Path", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(item.name, item.client, item.scope.value, compact_home_path(item.path))
        return table


class RegistryTable:
    @staticmethod
    def skills_table(entries: list[SkillEntry]) -> Table:
        table = Table(
            Column(header="Skill", width=28),
            Column(header="Version", width=10),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for entry in entries:
            table.add_row(entry.name, entry.version, truncate(entry.description, DESCRIPTION_LIMIT))
        return table

    @staticmethod
    def servers_table(entries: list[MCPEntry]) -> Table:
        table = Table(
            Column(header="Server", width=28),
            Column(header="Type", width=8),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for entry in entries:
            transport = entry.transport.value if entry.transport is not None else entry.type
            table.add_row(entry.name, transport, truncate(entry.description, DESCRIPTION_LIMIT))
        return table

    @staticmethod
    def details_table(rows: list[tuple[str, str]]) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column(overflow="fold")
        for key, value in rows:
            if value:
                table.add_row(key, value)
        return table

    @staticmethod
    def record_rows(record: LocalRecord | None) -> list[tuple[str, str]]:
        if record is None:
            return [("Cached", "no")]
        return [
            ("Cached", "yes"),
            ("Cached head", record.head),
            ("Cached at", record.updated_at),
        ]


class UpdateTable:
    @staticmethod
    def results_table(results: list[UpdateResult]) -> Table:
        table = Table(
            Column(header="Name", width=24),
            Column(header="Client", width=12),
            Column(header="Scope", width=8),
            Column(header="Status", width=16),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for result in results:
            style = UPDATE_STATUS_STYLE.get(result.status, UIStyle.WHITE.value)
            label = UPDATE_STATUS_LABEL.get(result.status, result.status.value)
            table.add_row(
                result.item.name,
                result.item.client,
                result.item.scope.value,
                f"[{style}]{label}[/{style}]",
                result.detail,
            )
        return table

    @staticmethod
    def summary_block(results: list[UpdateResult]) -> Table:
        counts = Counter(UPDATE_STATUS_LABEL[result.status] for result in results)
        chips = [f"{key}={value}" for key, value in sorted(counts.items()) if value > 0]
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Targets", str(len(results)))
        table.add_row("Statuses", "  ".join(chips) or "none")
        return table
