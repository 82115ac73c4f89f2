import io
import json
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest
from click.testing import CliRunner


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from mcp_skill.config import Settings  # noqa: E402
from mcp_skill.core.repository import LocalStore  # noqa: E402
from mcp_skill.errors import RegistryFetchError  # noqa: E402
from mcp_skill.fetcher import ContentFetcher  # noqa: E402
from mcp_skill.inputs import InputCollector  # noqa: E402
from mcp_skill.mcp_service import MCPService  # noqa: E402
from mcp_skill.registry.index import RegistryIndex  # noqa: E402
from mcp_skill.registry.sync import IndexSyncService  # noqa: E402
from mcp_skill.resolver import ArtifactResolver  # noqa: E402
from mcp_skill.skills_service import SkillService  # noqa: E402
from mcp_skill.sources.git import GitClient, normalize_repo_url  # noqa: E402

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeGit(GitClient):
    """Serves clones from local directories registered per repository."""

    def __init__(self) -> None:
        super().__init__()
        self.repos: dict[str, Path] = {}
        self.clones: list[str] = []
        self.checkouts: list[str] = []

    def add(self, repo: str, source: Path) -> None:
        self.repos[normalize_repo_url(repo)] = source

    def clone(self, repo: str, dest: Path) -> None:
        url = normalize_repo_url(repo)
        self.clones.append(url)
        shutil.copytree(self.repos[url], dest, symlinks=True)

    def checkout(self, repo_path: Path, head: str) -> None:
        self.checkouts.append(head)


class FakeHttp:
    def __init__(self) -> None:
        self.responses: dict[str, bytes] = {}
        self.calls: list[str] = []
        self.fail = False

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        if self.fail or url not in self.responses:
            raise RegistryFetchError(url, "HTTP 404")
        return self.responses[url]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", lambda: home)
    for name in (
        "MCP_SKILL_HOME",
        "MCP_REGISTRY_REPO",
        "MCP_REGISTRY_BRANCH",
        "MCP_REGISTRY_TTL",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def settings(isolated_home: Path) -> Settings:
    return Settings(store_root=isolated_home / ".mcp-skill")


@pytest.fixture
def store(settings: Settings) -> LocalStore:
    return LocalStore(settings.store_root)


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def publish_registry(settings: Settings, fake_http: FakeHttp) -> Callable[..., None]:
    """Serve registry indexes through the fake HTTP getter."""

    def _publish(skills: list[dict[str, Any]] | None = None, mcp: list[dict[str, Any]] | None = None) -> None:
        base = settings.raw_base_url()
        fake_http.responses[base + "index.skill.json"] = json.dumps(
            {"skills": skills or []}
        ).encode("utf-8")
        fake_http.responses[base + "index.mcp.json"] = json.dumps(
            {"mcp": mcp or []}
        ).encode("utf-8")

    return _publish


@pytest.fixture
def sync_service(store: LocalStore, settings: Settings, fake_http: FakeHttp) -> IndexSyncService:
    return IndexSyncService(store, settings, fetch=fake_http, clock=lambda: FIXED_NOW)


@pytest.fixture
def fetcher(store: LocalStore, fake_git: FakeGit, settings: Settings) -> ContentFetcher:
    return ContentFetcher(store, git=fake_git, default_repo=settings.registry_repo)


@pytest.fixture
def resolver(store: LocalStore, sync_service: IndexSyncService) -> ArtifactResolver:
    return ArtifactResolver(store, sync_service, RegistryIndex(store))


@pytest.fixture
def skill_service(
    store: LocalStore,
    sync_service: IndexSyncService,
    resolver: ArtifactResolver,
    fetcher: ContentFetcher,
    isolated_home: Path,
    project_dir: Path,
) -> SkillService:
    return SkillService(
        store,
        sync_service,
        RegistryIndex(store),
        resolver,
        fetcher,
        home=isolated_home,
        cwd=project_dir,
    )


@pytest.fixture
def make_mcp_service(
    store: LocalStore,
    sync_service: IndexSyncService,
    resolver: ArtifactResolver,
    fetcher: ContentFetcher,
    isolated_home: Path,
    project_dir: Path,
) -> Callable[..., MCPService]:
    def _make(stdin_text: str = "", out=None, confirm=None) -> MCPService:
        collector = InputCollector(stdin=io.StringIO(stdin_text), out=out or io.StringIO())
        return MCPService(
            store,
            sync_service,
            RegistryIndex(store),
            resolver,
            fetcher,
            collector,
            home=isolated_home,
            cwd=project_dir,
            confirm=confirm,
        )

    return _make


@pytest.fixture
def mcp_service(make_mcp_service) -> MCPService:
    return make_mcp_service()


@pytest.fixture
def write_json():
    def _write(path: Path, payload: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def make_skill(tmp_path: Path) -> Callable[..., Path]:
    def _make(root: Path, name: str, version: str = "1.0.0", body: str = "Do the thing.") -> Path:
        skill_dir = root / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(
            "---\n"
            f"name: {name}\n"
            f"description: {name} helper\n"
            f"version: {version}\n"
            "---\n"
            "\n"
            f"{body}\n",
            encoding="utf-8",
        )
        return skill_dir

    return _make


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def registry_repo(tmp_path: Path, fake_git: FakeGit, settings: Settings, make_skill) -> Path:
    """A registry checkout holding ``skill/pdf`` served for the default repo."""
    repo = tmp_path / "registry-repo"
    make_skill(repo / "skill", "pdf", version="2.0.0")
    fake_git.add(settings.registry_repo, repo)
    return repo
