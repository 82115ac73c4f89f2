"""Tests for MCP server install, update and uninstall across clients."""

import io
import json
from pathlib import Path

import pytest

from mcp_skill.apps.app_id import ClientId
from mcp_skill.errors import (
    AlreadyExistsError,
    InputAbortedError,
    InvalidDefinitionError,
    NotInstalledError,
    UnsupportedScopeError,
)
from mcp_skill.mcp_service import MCPService, build_definition, repo_name
from mcp_skill.models import ArtifactKind, Definition, Scope, UpdateStatus
from mcp_skill.registry.models import MCPEntry

GITHUB = {
    "name": "github",
    "type": "http",
    "description": "GitHub tools",
    "url": "https://x/${TOKEN}",
    "headers": {"Authorization": "Bearer ${TOKEN}"},
    "inputs": [{"name": "TOKEN", "label": "GitHub token", "required": True}],
    "head": "a1",
}
DOCS = {"name": "docs", "type": "http", "url": "https://docs.example.com/mcp", "head": "d1"}


def _servers(path: Path, key: str = "mcpServers") -> dict:
    return json.loads(path.read_text(encoding="utf-8"))[key]


@pytest.fixture
def which_everything(monkeypatch) -> None:
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def server_repo(tmp_path: Path, fake_git) -> Path:
    repo = tmp_path / "server-repo"
    repo.mkdir()
    (repo / "index.js").write_text("// server", encoding="utf-8")
    fake_git.add("acme/server", repo)
    return repo


def test_registry_install_prompts_until_required_input_given(
    make_mcp_service, publish_registry, project_dir: Path, store
) -> None:
    publish_registry(mcp=[GITHUB])
    out = io.StringIO()
    service = make_mcp_service(stdin_text="\nabc\n", out=out)

    results = service.install("github", [ClientId.CLAUDE], Scope.PROJECT)

    assert out.getvalue().count("GitHub token: ") == 2
    assert [item.path for item in results] == [project_dir / ".mcp.json"]
    server = _servers(project_dir / ".mcp.json")["github"]
    assert server["url"] == "https://x/abc"
    assert server["headers"] == {"Authorization": "Bearer abc"}

    template = store.load_definition("github")
    assert template.url == "https://x/${TOKEN}"
    assert store.load_record(ArtifactKind.MCP, "github").head == "a1"


def test_aborted_input_writes_nothing(
    make_mcp_service, publish_registry, project_dir: Path
) -> None:
    publish_registry(mcp=[GITHUB])
    with pytest.raises(InputAbortedError):
        make_mcp_service(stdin_text="").install("github", [ClientId.CLAUDE], Scope.PROJECT)
    assert not (project_dir / ".mcp.json").exists()


def test_second_install_conflicts_until_forced(
    mcp_service: MCPService, publish_registry, project_dir: Path
) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CLAUDE, ClientId.CURSOR], Scope.PROJECT)

    with pytest.raises(AlreadyExistsError) as exc_info:
        mcp_service.install("docs", [ClientId.CURSOR], Scope.PROJECT)
    assert exc_info.value.path == project_dir / ".cursor" / "mcp.json"
    assert str(project_dir / ".cursor" / "mcp.json") in str(exc_info.value)

    results = mcp_service.install("docs", [ClientId.CURSOR], Scope.PROJECT, force=True)
    assert [item.client for item in results] == ["cursor"]


def test_conflict_in_one_client_leaves_others_untouched(
    mcp_service: MCPService, publish_registry, project_dir: Path
) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CURSOR], Scope.PROJECT)

    with pytest.raises(AlreadyExistsError):
        mcp_service.install("docs", [ClientId.CLAUDE, ClientId.CURSOR], Scope.PROJECT)
    assert not (project_dir / ".mcp.json").exists()


def test_codex_rejects_project_scope_before_any_write(
    mcp_service: MCPService, publish_registry, project_dir: Path
) -> None:
    publish_registry(mcp=[DOCS])
    with pytest.raises(UnsupportedScopeError, match="codex"):
        mcp_service.install("docs", [ClientId.CLAUDE, ClientId.CODEX], Scope.PROJECT)
    assert not (project_dir / ".mcp.json").exists()


def test_codex_user_scope_writes_toml(
    mcp_service: MCPService, publish_registry, isolated_home: Path
) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CODEX], Scope.USER)

    text = (isolated_home / ".codex" / "config.toml").read_text(encoding="utf-8")
    assert "[mcp_servers.docs]" in text
    assert 'url = "https://docs.example.com/mcp"' in text


def test_stdio_entry_expands_root(
    mcp_service: MCPService,
    publish_registry,
    server_repo: Path,
    store,
    isolated_home: Path,
    which_everything,
) -> None:
    publish_registry(
        mcp=[
            {
                "name": "files",
                "type": "stdio",
                "repo": "acme/server",
                "head": "f1",
                "run": {"command": "node", "args": ["${ROOT}/index.js"], "env": {"HOME_DIR": "${ROOT}"}},
            }
        ]
    )

    mcp_service.install("files", [ClientId.GEMINI], Scope.USER)

    root = str(store.mcp_source_path("files"))
    server = _servers(isolated_home / ".gemini" / "mcp.json")["files"]
    assert server["command"] == "node"
    assert server["args"] == [f"{root}/index.js"]
    assert server["env"] == {"HOME_DIR": root}
    assert (store.mcp_source_path("files") / "index.js").is_file()


def test_install_from_directory(
    mcp_service: MCPService, tmp_path: Path, project_dir: Path, store
) -> None:
    source = tmp_path / "my-server"
    source.mkdir()
    (source / "mcp.json").write_text(
        json.dumps({"type": "local", "command": "${ROOT}/bin/run", "args": ["--stdio"]}),
        encoding="utf-8",
    )

    results = mcp_service.install(str(source), [ClientId.CLAUDE], Scope.PROJECT)

    assert results[0].name == "my-server"
    server = _servers(project_dir / ".mcp.json")["my-server"]
    assert server["command"] == f"{source.resolve()}/bin/run"
    assert store.load_definition("my-server").command == f"{source.resolve()}/bin/run"


def test_directory_without_definition(mcp_service: MCPService, tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    with pytest.raises(InvalidDefinitionError, match="mcp.json"):
        mcp_service.install(str(tmp_path / "empty"), [ClientId.CLAUDE], Scope.PROJECT)


def test_install_inline_keeps_template(
    mcp_service: MCPService, project_dir: Path, store
) -> None:
    definition = Definition.create("local", "stdio", command="run", args=["a"], env={"K": "v"})
    mcp_service.install_inline(definition, [ClientId.OPENCODE], Scope.PROJECT)

    assert store.load_definition("local") == definition
    opencode = json.loads((project_dir / ".opencode" / "opencode.json").read_text(encoding="utf-8"))
    assert opencode["mcp"]["local"]["command"] == ["run", "a"]


def test_list_skips_unsupported_scopes(
    mcp_service: MCPService, publish_registry
) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CLAUDE], Scope.PROJECT)
    mcp_service.install("docs", [ClientId.CODEX], Scope.USER)

    items = mcp_service.list([ClientId.CLAUDE, ClientId.CODEX], [Scope.USER, Scope.PROJECT])
    assert sorted((item.client, item.scope) for item in items) == [
        ("claude", Scope.PROJECT),
        ("codex", Scope.USER),
    ]
    assert all(item.transport == "http" for item in items)


def test_uninstall(mcp_service: MCPService, publish_registry, project_dir: Path) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CLAUDE], Scope.PROJECT)

    with pytest.raises(NotInstalledError):
        mcp_service.uninstall("docs", [ClientId.CLAUDE, ClientId.CURSOR], Scope.PROJECT)
    assert "docs" in _servers(project_dir / ".mcp.json")

    removed = mcp_service.uninstall(
        "docs", [ClientId.CLAUDE, ClientId.CURSOR], Scope.PROJECT, force=True
    )
    assert [item.client for item in removed] == ["claude"]
    assert _servers(project_dir / ".mcp.json") == {}


def test_uninstall_all(mcp_service: MCPService, publish_registry) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CLAUDE, ClientId.GEMINI], Scope.PROJECT)

    targets = mcp_service.uninstall_targets(list(ClientId)[:5], [Scope.PROJECT])
    assert len(targets) == 2
    mcp_service.uninstall_all(targets)
    assert mcp_service.list([ClientId.CLAUDE, ClientId.GEMINI], [Scope.PROJECT]) == []


class TestUpdate:
    def test_statuses(
        self,
        mcp_service: MCPService,
        publish_registry,
        sync_service,
        project_dir: Path,
    ) -> None:
        publish_registry(mcp=[DOCS])
        mcp_service.install("docs", [ClientId.CLAUDE, ClientId.CURSOR], Scope.PROJECT)
        mcp_service.install_inline(
            Definition.create("private", "http", url="https://p"), [ClientId.CLAUDE], Scope.PROJECT
        )

        results = mcp_service.update([ClientId.CLAUDE, ClientId.CURSOR], [Scope.PROJECT])
        statuses = {(r.item.name, r.item.client): r.status for r in results}
        assert statuses == {
            ("docs", "claude"): UpdateStatus.LATEST,
            ("docs", "cursor"): UpdateStatus.LATEST,
            ("private", "claude"): UpdateStatus.NOT_IN_REGISTRY,
        }

        publish_registry(mcp=[{**DOCS, "url": "https://docs.example.com/v2", "head": "d2"}])
        sync_service.sync()
        results = mcp_service.update([ClientId.CLAUDE, ClientId.CURSOR], [Scope.PROJECT], "docs")

        assert [r.status for r in results] == [UpdateStatus.UPDATED, UpdateStatus.UPDATED]
        assert results[0].detail == "d2"
        assert _servers(project_dir / ".mcp.json")["docs"]["url"] == "https://docs.example.com/v2"
        assert _servers(project_dir / ".cursor" / "mcp.json")["docs"]["url"] == (
            "https://docs.example.com/v2"
        )

    def test_nothing_installed(self, mcp_service: MCPService, fake_http) -> None:
        assert mcp_service.update([ClientId.CLAUDE], [Scope.PROJECT]) == []
        assert fake_http.calls == []

    def test_failure_is_reported_per_target(
        self,
        mcp_service: MCPService,
        publish_registry,
        sync_service,
        server_repo: Path,
        which_everything,
    ) -> None:
        entry = {"name": "files", "repo": "acme/server", "head": "f1", "run": {"command": "node"}}
        publish_registry(mcp=[entry])
        mcp_service.install("files", [ClientId.CLAUDE], Scope.PROJECT)

        publish_registry(mcp=[{**entry, "head": "f2", "install": ["exit 1"]}])
        sync_service.sync()
        results = mcp_service.update([ClientId.CLAUDE], [Scope.PROJECT])

        assert len(results) == 1
        assert results[0].failed
        assert "install step failed" in results[0].detail


def test_view(mcp_service: MCPService, publish_registry) -> None:
    publish_registry(mcp=[GITHUB, DOCS])
    entry, record = mcp_service.view("GITHUB")
    assert entry.description == "GitHub tools"
    assert record is None
    assert [item.name for item in mcp_service.available("git")] == ["github"]


def test_build_definition_requires_known_type() -> None:
    with pytest.raises(InvalidDefinitionError, match="missing type"):
        build_definition(MCPEntry(name="broken"), {})


@pytest.mark.parametrize(
    ("repo", "expected"),
    [
        ("acme/server", "server"),
        ("https://github.com/acme/server.git", "server"),
        ("git@github.com:acme/tools.git", "tools"),
    ],
)
def test_repo_name(repo: str, expected: str) -> None:
    assert repo_name(repo) == expected


FILES = {
    "name": "files",
    "type": "stdio",
    "repo": "acme/server",
    "head": "f1",
    "run": {"command": "node", "args": ["${ROOT}/index.js"]},
}


@pytest.fixture
def fork_repo(tmp_path: Path, fake_git) -> Path:
    repo = tmp_path / "files-fork"
    repo.mkdir()
    (repo / "mcp.json").write_text(
        json.dumps({"type": "stdio", "command": "${ROOT}/run"}), encoding="utf-8"
    )
    (repo / "fork.txt").write_text("fork", encoding="utf-8")
    fake_git.add("acme/files", repo)
    return repo


class TestRepositoryInstall:
    def test_replacing_registry_source_drops_provenance(
        self,
        mcp_service: MCPService,
        publish_registry,
        server_repo: Path,
        fork_repo: Path,
        store,
        isolated_home: Path,
        which_everything,
    ) -> None:
        publish_registry(mcp=[FILES])
        mcp_service.install("files", [ClientId.GEMINI], Scope.USER)
        assert store.load_record(ArtifactKind.MCP, "files").head == "f1"

        mcp_service.install("acme/files", [ClientId.GEMINI], Scope.USER, force=True)
        source = store.mcp_source_path("files")
        assert (source / "fork.txt").is_file()
        assert store.load_record(ArtifactKind.MCP, "files") is None
        server = _servers(isolated_home / ".gemini" / "mcp.json")["files"]
        assert server["command"] == f"{source}/run"

        mcp_service.install("files", [ClientId.CURSOR], Scope.USER)
        assert (source / "index.js").is_file()
        assert not (source / "fork.txt").exists()
        assert store.load_record(ArtifactKind.MCP, "files").head == "f1"

    def test_conflict_leaves_cached_source_untouched(
        self,
        mcp_service: MCPService,
        publish_registry,
        server_repo: Path,
        fork_repo: Path,
        store,
        which_everything,
    ) -> None:
        publish_registry(mcp=[FILES])
        mcp_service.install("files", [ClientId.GEMINI], Scope.USER)

        with pytest.raises(AlreadyExistsError):
            mcp_service.install("acme/files", [ClientId.GEMINI], Scope.USER)

        source = store.mcp_source_path("files")
        assert (source / "index.js").is_file()
        assert not (source / "fork.txt").exists()
        assert store.load_record(ArtifactKind.MCP, "files").head == "f1"

    def test_missing_definition(
        self, mcp_service: MCPService, tmp_path: Path, fake_git, store
    ) -> None:
        repo = tmp_path / "bare"
        repo.mkdir()
        fake_git.add("acme/bare", repo)

        with pytest.raises(InvalidDefinitionError, match="root of acme/bare"):
            mcp_service.install("acme/bare", [ClientId.CLAUDE], Scope.PROJECT)
        assert not store.mcp_source_path("bare").exists()


def test_inline_install_drops_registry_provenance(
    mcp_service: MCPService, publish_registry, store
) -> None:
    publish_registry(mcp=[DOCS])
    mcp_service.install("docs", [ClientId.CLAUDE], Scope.PROJECT)
    assert store.load_record(ArtifactKind.MCP, "docs") is not None

    mcp_service.install_inline(
        Definition.create("docs", "http", url="https://mirror"), [ClientId.CLAUDE], Scope.PROJECT, force=True
    )

    assert store.load_record(ArtifactKind.MCP, "docs") is None
    assert mcp_service.update([ClientId.CLAUDE], [Scope.PROJECT])[0].status == UpdateStatus.UPDATED


@pytest.mark.parametrize("answer", [False, True])
def test_stale_cached_source_asks_before_refetch(
    make_mcp_service,
    publish_registry,
    sync_service,
    server_repo: Path,
    store,
    fake_git,
    which_everything,
    answer: bool,
) -> None:
    prompts: list[str] = []

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return answer

    service = make_mcp_service(confirm=confirm)
    publish_registry(mcp=[FILES])
    service.install("files", [ClientId.GEMINI], Scope.USER)
    assert prompts == []

    publish_registry(mcp=[{**FILES, "head": "f2"}])
    sync_service.sync()
    service.install("files", [ClientId.CURSOR], Scope.USER)

    assert len(prompts) == 1
    assert len(fake_git.clones) == (2 if answer else 1)
    assert store.load_record(ArtifactKind.MCP, "files").head == ("f2" if answer else "f1")
