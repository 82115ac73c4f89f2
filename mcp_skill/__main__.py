from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

import click
from rich.console import Console

from mcp_skill.apps.app_id import ClientId, parse_clients
from mcp_skill.config import Settings, load_settings
from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import SkillManagerError
from mcp_skill.fetcher import ContentFetcher
from mcp_skill.inputs import InputCollector
from mcp_skill.logging_config import configure_logging
from mcp_skill.mcp_service import MCPService
from mcp_skill.models import Definition, Installed, Scope
from mcp_skill.reconcile import Confirm, filter_by_name, with_overwrite_confirmation
from mcp_skill.registry.index import RegistryIndex
from mcp_skill.registry.sync import HttpGet, IndexSyncService
from mcp_skill.resolver import ArtifactResolver
from mcp_skill.skills_service import SkillService
from mcp_skill.sources.git import GitClient
from mcp_skill.tui import SkillManagerConsoleUI
from mcp_skill.tui.enums import UIStyle
from mcp_skill.tui.progress import ProgressIndicator
from mcp_skill.tui.prompts import confirm_yes
from mcp_skill.utils import compact_home_paths_in_text

CONFIRM_PROMPT = "Type 'yes' to continue: "


@dataclass
class AppContext:
    settings: Settings
    store: LocalStore
    sync: IndexSyncService
    skills: SkillService
    mcp: MCPService
    ui: SkillManagerConsoleUI
    progress: ProgressIndicator
    confirm: Confirm

    def ask(self, prompt: str) -> bool:
        self.progress.stop()
        return self.confirm(prompt)


def build_context(
    home: Optional[Path] = None,
    cwd: Optional[Path] = None,
    fetch: Optional[HttpGet] = None,
    git: Optional[GitClient] = None,
    collector: Optional[InputCollector] = None,
    confirm: Optional[Confirm] = None,
    console: Optional[Console] = None,
) -> AppContext:
    settings = load_settings()
    store = LocalStore(settings.store_root)
    sync = IndexSyncService(store, settings, fetch=fetch)
    index = RegistryIndex(store)
    resolver = ArtifactResolver(store, sync, index)
    fetcher = ContentFetcher(store, git=git, default_repo=settings.registry_repo)
    confirm = confirm or confirm_yes
    return AppContext(
        settings=settings,
        store=store,
        sync=sync,
        skills=SkillService(store, sync, index, resolver, fetcher, home=home, cwd=cwd),
        mcp=MCPService(
            store,
            sync,
            index,
            resolver,
            fetcher,
            collector or InputCollector(),
            home=home,
            cwd=cwd,
            confirm=confirm,
        ),
        ui=SkillManagerConsoleUI(console),
        progress=ProgressIndicator(),
        confirm=confirm,
    )


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except SkillManagerError as exc:
        raise click.ClickException(compact_home_paths_in_text(str(exc))) from exc


def _scope_options(action: str) -> Callable:
    def decorator(func: Callable) -> Callable:
        func = click.option(
            "-l", "--local", "local_scope", is_flag=True, help=f"{action} project/local scope."
        )(func)
        func = click.option(
            "-g", "--global", "global_scope", is_flag=True, help=f"{action} user/global scope."
        )(func)
        return func

    return decorator


def _client_options(all_help: Optional[str] = None) -> Callable:
    def decorator(func: Callable) -> Callable:
        if all_help is not None:
            func = click.option("-a", "--all", "all_clients", is_flag=True, help=all_help)(func)
        func = click.option(
            "-c", "--client", default="", help="Comma-separated client list, or 'all'."
        )(func)
        return func

    return decorator


def _resolve_scope(global_scope: bool, local_scope: bool) -> Scope:
    if global_scope and local_scope:
        raise click.UsageError("choose only one of --global or --local")
    return Scope.USER if global_scope else Scope.PROJECT


def _resolve_scopes(global_scope: bool, local_scope: bool) -> list[Scope]:
    if global_scope and local_scope:
        return [Scope.USER, Scope.PROJECT]
    if global_scope:
        return [Scope.USER]
    return [Scope.PROJECT]


def _resolve_clients(
    client: str, all_clients: bool, mcp_only: bool, required: bool
) -> list[ClientId]:
    if all_clients:
        if client:
            raise click.UsageError("cannot combine --all with --client")
        return parse_clients("all", mcp_only=mcp_only)
    if not client.strip():
        if required:
            raise click.UsageError("choose a client with --client/-c or use --all")
        return parse_clients("all", mcp_only=mcp_only)
    return parse_clients(client, mcp_only=mcp_only)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, item = value.partition("=")
        if not sep or not key.strip():
            raise click.UsageError(f"{option} expects KEY=VALUE, got: {value}")
        pairs[key.strip()] = item
    return pairs


def _removal(
    obj: AppContext,
    kind: str,
    name: Optional[str],
    clients: list[ClientId],
    scope: Scope,
    force: bool,
    targets_of: Callable[[list[ClientId], list[Scope]], list[Installed]],
    remove_one: Callable[[str, list[ClientId], Scope, bool], list[Installed]],
    remove_all: Callable[[list[Installed]], list[Installed]],
    all_clients: bool,
) -> None:
    if not all_clients:
        if not name:
            raise click.UsageError(f"uninstall requires a {kind} name (or use -a)")
        obj.ui.render_removed(kind, remove_one(name, clients, scope, force))
        return

    targets = filter_by_name(targets_of(clients, [scope]), name)
    if not targets:
        obj.ui.render_note(kind, "No matching entries found.", UIStyle.YELLOW.value)
        return
    obj.ui.render_targets(f"about to remove {len(targets)} {kind} target(s)", targets)
    if not obj.ask(CONFIRM_PROMPT):
        obj.ui.render_note(kind, "Canceled.", UIStyle.YELLOW.value)
        return
    obj.ui.render_removed(kind, remove_all(targets))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Show debug logs on stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Install skills and MCP servers into AI coding clients."""
    configure_logging(verbose)
    if ctx.obj is None:
        with _reported_errors():
            ctx.obj = build_context()


@cli.command(help="Download the registry indexes now.")
@click.pass_obj
def sync(obj: AppContext) -> None:
    with _reported_errors():
        obj.progress.start("Syncing registry indexes")
        try:
            obj.sync.sync()
        finally:
            obj.progress.stop()
    obj.ui.render_note("registry", f"Synced from {obj.settings.registry_repo}", UIStyle.GREEN.value)


@cli.command(help="Clear cached skills and MCP servers from the local store.")
@click.pass_obj
def clean(obj: AppContext) -> None:
    obj.ui.render_clean_counts(obj.store.entry_counts())
    if not obj.ask(CONFIRM_PROMPT):
        obj.ui.render_note("local store", "Canceled.", UIStyle.YELLOW.value)
        return
    obj.store.clean()
    obj.ui.render_note("local store", "Clean complete.", UIStyle.GREEN.value)


@cli.group(help="Install and manage agent skills.")
def skill() -> None:
    pass


@skill.command("install", help="Install skills from a path, repository, registry name or the local store.")
@click.argument("source")
@_scope_options("Install to")
@_client_options(all_help="Install for all clients.")
@click.option("-f", "--force", is_flag=True, help="Overwrite existing skills.")
@click.option("--refresh", is_flag=True, help="Fetch registry content even when the cache is current.")
@click.pass_obj
def skill_install(
    obj: AppContext,
    source: str,
    global_scope: bool,
    local_scope: bool,
    client: str,
    all_clients: bool,
    force: bool,
    refresh: bool,
) -> None:
    with _reported_errors():
        scope = _resolve_scope(global_scope, local_scope)
        clients = _resolve_clients(client, all_clients, mcp_only=False, required=True)
        obj.progress.start(f"Installing {source}")
        try:
            installed = with_overwrite_confirmation(
                lambda overwrite: obj.skills.install(
                    source, clients, scope, force=overwrite, refresh=refresh
                ),
                obj.ask,
                force=force,
            )
        finally:
            obj.progress.stop()

    if installed is None:
        obj.ui.render_note("skill", "Canceled.", UIStyle.YELLOW.value)
        return
    obj.ui.render_installed("skill", installed)


@skill.command("list", help="List installed skills, or registry skills with --available.")
@click.argument("name", required=False, default="")
@click.option("-a", "--available", is_flag=True, help="List skills available in the registry.")
@_scope_options("Show")
@_client_options()
@click.pass_obj
def skill_list(
    obj: AppContext,
    name: str,
    available: bool,
    global_scope: bool,
    local_scope: bool,
    client: str,
) -> None:
    with _reported_errors():
        if available:
            obj.ui.render_available_skills(obj.skills.available(name))
            return
        clients = _resolve_clients(client, False, mcp_only=False, required=False)
        items = obj.skills.list(clients, _resolve_scopes(global_scope, local_scope))
    obj.ui.render_skills(filter_by_name(items, name))


@skill.command("uninstall", help="Remove installed skills.")
@click.argument("name", required=False)
@_scope_options("Remove from")
@_client_options(all_help="Remove for all clients (asks for confirmation).")
@click.option("-f", "--force", is_flag=True, help="Ignore missing skills.")
@click.pass_obj
def skill_uninstall(
    obj: AppContext,
    name: Optional[str],
    global_scope: bool,
    local_scope: bool,
    client: str,
    all_clients: bool,
    force: bool,
) -> None:
    with _reported_errors():
        _removal(
            obj,
            "skill",
            name,
            _resolve_clients(client, all_clients, mcp_only=False, required=True),
            _resolve_scope(global_scope, local_scope),
            force,
            obj.skills.uninstall_targets,
            obj.skills.uninstall,
            obj.skills.uninstall_all,
            all_clients,
        )


@skill.command("update", help="Update installed skills from the registry.")
@click.argument("name", required=False)
@_scope_options("Update")
@_client_options()
@click.pass_obj
def skill_update(
    obj: AppContext,
    name: Optional[str],
    global_scope: bool,
    local_scope: bool,
    client: str,
) -> None:
    with _reported_errors():
        clients = _resolve_clients(client, False, mcp_only=False, required=False)
        obj.progress.start("Updating skills")
        try:
            results = obj.skills.update(clients, _resolve_scopes(global_scope, local_scope), name)
        finally:
            obj.progress.stop()

    obj.ui.render_update(results)
    if any(result.failed for result in results):
        raise click.exceptions.Exit(1)


@skill.command("view", help="Show a registry skill and its cached provenance.")
@click.argument("name")
@click.pass_obj
def skill_view(obj: AppContext, name: str) -> None:
    with _reported_errors():
        entry, record, metadata = obj.skills.view(name)
    obj.ui.render_skill_view(entry, record, metadata)


@cli.group(help="Install and manage MCP servers.")
def mcp() -> None:
    pass


@mcp.command("install", help="Install an MCP server from the registry, the local store, a file or inline options.")
@click.argument("source", required=False)
@click.option("--name", "inline_name", default="", help="Inline definition: server name.")
@click.option("--transport", default="", help="Inline definition: http or stdio.")
@click.option("--url", default="", help="Inline definition: server url (http).")
@click.option("--command", "command_line", default="", help="Inline definition: command (stdio).")
@click.option("--args", "args_csv", default="", help="Inline definition: comma-separated arguments.")
@click.option("--env", "env_pairs", multiple=True, metavar="KEY=VALUE", help="Inline definition: environment variable.")
@click.option("--header", "header_pairs", multiple=True, metavar="KEY=VALUE", help="Inline definition: http header.")
@_scope_options("Install to")
@_client_options(all_help="Install for all MCP clients.")
@click.option("-f", "--force", is_flag=True, help="Overwrite existing servers.")
@click.option("--refresh", is_flag=True, help="Fetch server sources even when the cache is current.")
@click.pass_obj
def mcp_install(
    obj: AppContext,
    source: Optional[str],
    inline_name: str,
    transport: str,
    url: str,
    command_line: str,
    args_csv: str,
    env_pairs: tuple[str, ...],
    header_pairs: tuple[str, ...],
    global_scope: bool,
    local_scope: bool,
    client: str,
    all_clients: bool,
    force: bool,
    refresh: bool,
) -> None:
    inline = any([inline_name, transport, url, command_line, args_csv, env_pairs, header_pairs])
    if inline and source:
        raise click.UsageError("pass either a source or inline definition options, not both")
    if not inline and not source:
        raise click.UsageError("install requires a name, path or repository")

    with _reported_errors():
        scope = _resolve_scope(global_scope, local_scope)
        clients = _resolve_clients(client, all_clients, mcp_only=True, required=True)
        if inline:
            definition = Definition.create(
                inline_name,
                transport,
                url=url,
                command=command_line,
                args=_split_csv(args_csv),
                env=_parse_pairs(env_pairs, "--env"),
                headers=_parse_pairs(header_pairs, "--header"),
            )
            installed = with_overwrite_confirmation(
                lambda overwrite: obj.mcp.install_inline(definition, clients, scope, force=overwrite),
                obj.ask,
                force=force,
            )
        else:
            installed = with_overwrite_confirmation(
                lambda overwrite: obj.mcp.install(
                    source, clients, scope, force=overwrite, refresh=refresh
                ),
                obj.ask,
                force=force,
            )

    if installed is None:
        obj.ui.render_note("mcp", "Canceled.", UIStyle.YELLOW.value)
        return
    obj.ui.render_installed("mcp", installed)


@mcp.command("list", help="List installed MCP servers, or registry servers with --available.")
@click.argument("name", required=False, default="")
@click.option("-a", "--available", is_flag=True, help="List servers available in the registry.")
@_scope_options("Show")
@_client_options()
@click.pass_obj
def mcp_list(
    obj: AppContext,
    name: str,
    available: bool,
    global_scope: bool,
    local_scope: bool,
    client: str,
) -> None:
    with _reported_errors():
        if available:
            obj.ui.render_available_servers(obj.mcp.available(name))
            return
        clients = _resolve_clients(client, False, mcp_only=True, required=False)
        items = obj.mcp.list(clients, _resolve_scopes(global_scope, local_scope))
    obj.ui.render_servers(filter_by_name(items, name))


@mcp.command("uninstall", help="Remove installed MCP servers.")
@click.argument("name", required=False)
@_scope_options("Remove from")
@_client_options(all_help="Remove for all MCP clients (asks for confirmation).")
@click.option("-f", "--force", is_flag=True, help="Ignore missing servers.")
@click.pass_obj
def mcp_uninstall(
    obj: AppContext,
    name: Optional[str],
    global_scope: bool,
    local_scope: bool,
    client: str,
    all_clients: bool,
    force: bool,
) -> None:
    with _reported_errors():
        _removal(
            obj,
            "mcp",
            name,
            _resolve_clients(client, all_clients, mcp_only=True, required=True),
            _resolve_scope(global_scope, local_scope),
            force,
            obj.mcp.uninstall_targets,
            obj.mcp.uninstall,
            obj.mcp.uninstall_all,
            all_clients,
        )


@mcp.command("update", help="Update installed MCP servers from the registry.")
@click.argument("name", required=False)
@_scope_options("Update")
@_client_options()
@click.pass_obj
def mcp_update(
    obj: AppContext,
    name: Optional[str],
    global_scope: bool,
    local_scope: bool,
    client: str,
) -> None:
    with _reported_errors():
        clients = _resolve_clients(client, False, mcp_only=True, required=False)
        results = obj.mcp.update(clients, _resolve_scopes(global_scope, local_scope), name)

    obj.ui.render_update(results)
    if any(result.failed for result in results):
        raise click.exceptions.Exit(1)


@mcp.command("view", help="Show a registry MCP server and its cached provenance.")
@click.argument("name")
@click.pass_obj
def mcp_view(obj: AppContext, name: str) -> None:
    with _reported_errors():
        entry, record = obj.mcp.view(name)
    obj.ui.render_server_view(entry, record)


def main() -> int:
    try:
        result = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
