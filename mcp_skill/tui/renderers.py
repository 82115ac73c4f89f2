from pathlib import Path

from rich.console import Console

from mcp_skill.models import Installed, UpdateResult
from mcp_skill.registry.models import LocalRecord, MCPEntry, SkillEntry
from mcp_skill.skills.models import SkillMetadata
from mcp_skill.tui.enums import UIStyle
from mcp_skill.tui.sections import UISection
from mcp_skill.tui.tables import InstalledTable, RegistryTable, UpdateTable
from mcp_skill.utils import compact_home_path, compact_home_paths_in_text


class SkillManagerConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_installed(self, kind: str, items: list[Installed]) -> None:
        if not items:
            self.render_note(kind, "Nothing was installed.", UIStyle.YELLOW.value)
            return
        lines = [
            f"installed {item.name} -> {compact_home_path(item.path)} ({item.client})"
            for item in items
        ]
        self.console.print(UISection.note(kind, "\n".join(lines), style=UIStyle.GREEN.value))

    def render_removed(self, kind: str, items: list[Installed]) -> None:
        if not items:
            self.render_note(kind, "Nothing was removed.", UIStyle.YELLOW.value)
            return
        lines = [
            f"removed {item.name} ({item.client}/{item.scope.value}) {compact_home_path(item.path)}"
            for item in items
        ]
        self.console.print(UISection.note(kind, "\n".join(lines), style=UIStyle.MAGENTA.value))

    def render_skills(self, items: list[Installed]) -> None:
        if not items:
            self.render_note("skills", "No skills installed.", UIStyle.YELLOW.value)
            return
        self.console.print(
            UISection.wrap("installed skills", InstalledTable.skills_table(items), style=UIStyle.CYAN.value)
        )

    def render_servers(self, items: list[Installed]) -> None:
        if not items:
            self.render_note("mcp", "No MCP servers installed.", UIStyle.YELLOW.value)
            return
        self.console.print(
            UISection.wrap("installed mcp servers", InstalledTable.servers_table(items), style=UIStyle.CYAN.value)
        )

    def render_targets(self, title: str, items: list[Installed]) -> None:
        self.console.print(
            UISection.wrap(title, InstalledTable.targets_table(items), style=UIStyle.YELLOW.value)
        )

    def render_available_skills(self, entries: list[SkillEntry]) -> None:
        if not entries:
            self.render_note("registry", "No matching skills in the registry.", UIStyle.YELLOW.value)
            return
        self.console.print(
            UISection.wrap("registry skills", RegistryTable.skills_table(entries), style=UIStyle.BLUE.value)
        )

    def render_available_servers(self, entries: list[MCPEntry]) -> None:
        if not entries:
            self.render_note("registry", "No matching MCP servers in the registry.", UIStyle.YELLOW.value)
            return
        self.console.print(
            UISection.wrap("registry mcp servers", RegistryTable.servers_table(entries), style=UIStyle.BLUE.value)
        )

    def render_skill_view(
        self, entry: SkillEntry, record: LocalRecord | None, metadata: SkillMetadata | None
    ) -> None:
        rows = [
            ("Name", entry.name),
            ("Version", entry.version or (metadata.version if metadata else "")),
            ("Description", entry.description or (metadata.description if metadata else "")),
            ("Repo", entry.repo),
            ("Path", entry.path),
            ("Head", entry.head),
            ("Updated", entry.updated_at),
        ]
        rows.extend(RegistryTable.record_rows(record))
        self.console.print(
            UISection.wrap(entry.name, RegistryTable.details_table(rows), style=UIStyle.BLUE.value)
        )

    def render_server_view(self, entry: MCPEntry, record: LocalRecord | None) -> None:
        transport = entry.transport.value if entry.transport is not None else entry.type
        rows = [
            ("Name", entry.name),
            ("Type", transport),
            ("Description", entry.description),
            ("URL", entry.url),
            ("Repo", entry.repo),
            ("Path", entry.path),
            ("Command", " ".join([entry.run.command, *entry.run.args]).strip()),
            ("Requires", ", ".join(entry.requires)),
            ("Install", "\n".join(entry.install)),
            ("Inputs", ", ".join(item.name for item in entry.inputs)),
            ("Head", entry.head),
            ("Updated", entry.updated_at),
        ]
        rows.extend(RegistryTable.record_rows(record))
        self.console.print(
            UISection.wrap(entry.name, RegistryTable.details_table(rows), style=UIStyle.BLUE.value)
        )

    def render_update(self, results: list[UpdateResult]) -> None:
        if not results:
            self.render_note("update", "Nothing installed to update.", UIStyle.YELLOW.value)
            return
        failed = any(result.failed for result in results)
        self.console.print(
            UISection.wrap(
                "update",
                UpdateTable.results_table(results),
                style=UIStyle.RED.value if failed else UIStyle.GREEN.value,
                subtitle=None,
            )
        )
        self.console.print(UpdateTable.summary_block(results))
        failures = [
            f"- {result.item.name} ({result.item.client}/{result.item.scope.value}): "
            f"{compact_home_paths_in_text(str(result.error or result.detail))}"
            for result in results
            if result.failed
        ]
        if failures:
            self.console.print(UISection.note("failures", "\n".join(failures), style=UIStyle.RED.value))

    def render_clean_counts(self, counts: dict[Path, int]) -> None:
        lines = [f"{compact_home_path(path)}: {count} entries" for path, count in counts.items()]
        self.render_note("local store", "\n".join(lines), UIStyle.YELLOW.value)

    def render_note(self, title: str, text: str, style: str = UIStyle.DIM.value) -> None:
        self.console.print(UISection.note(title, text, style=style))
