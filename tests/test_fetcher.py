"""Tests for pinned registry fetches and their cache policy."""

import os
from pathlib import Path

import pytest

from mcp_skill.errors import (
    ExternalCommandError,
    MissingRequirementsError,
    SkillManagerError,
    SymlinkNotAllowedError,
)
from mcp_skill.fetcher import ContentFetcher, check_requirements, normalize_requirements
from mcp_skill.models import ArtifactKind, Transport
from mcp_skill.registry.models import LocalRecord, MCPEntry, SkillEntry


def _record(store, kind: ArtifactKind, **fields) -> None:
    store.save_record(kind, LocalRecord(**fields))


def test_fetch_skill_uses_default_repo_and_pins_head(
    fetcher: ContentFetcher, fake_git, store, registry_repo: Path
) -> None:
    entry = SkillEntry(name="pdf", head="abc123")

    cached = fetcher.fetch_skill(entry)

    assert cached == store.skill_path("pdf")
    assert "version: 2.0.0" in (cached / "SKILL.md").read_text(encoding="utf-8")
    assert fake_git.checkouts == ["abc123"]
    assert store.load_record(ArtifactKind.SKILL, "pdf").head == "abc123"


def test_fetch_skill_cache_hit_skips_clone(
    fetcher: ContentFetcher, fake_git, registry_repo: Path
) -> None:
    entry = SkillEntry(name="pdf", head="abc123")
    fetcher.fetch_skill(entry)
    fetcher.fetch_skill(entry)
    assert len(fake_git.clones) == 1

    fetcher.fetch_skill(entry, force=True)
    assert len(fake_git.clones) == 2


def test_fetch_skill_missing_subpath(fetcher: ContentFetcher, registry_repo: Path) -> None:
    with pytest.raises(SkillManagerError, match="skill path not found"):
        fetcher.fetch_skill(SkillEntry(name="pdf", path="elsewhere/pdf"))


def test_fetch_skill_rejects_symlinks(
    fetcher: ContentFetcher, store, registry_repo: Path
) -> None:
    target = registry_repo / "skill" / "pdf" / "SKILL.md"
    os.symlink(target, registry_repo / "skill" / "pdf" / "alias.md")

    with pytest.raises(SymlinkNotAllowedError):
        fetcher.fetch_skill(SkillEntry(name="pdf"))
    assert store.load_record(ArtifactKind.SKILL, "pdf") is None


class TestNeedsUpdate:
    def test_missing_record(self, fetcher: ContentFetcher) -> None:
        assert fetcher.needs_update(ArtifactKind.SKILL, SkillEntry(name="pdf", head="a"))

    def test_missing_cache(self, fetcher: ContentFetcher, store) -> None:
        _record(store, ArtifactKind.SKILL, name="pdf", head="a")
        assert fetcher.needs_update(ArtifactKind.SKILL, SkillEntry(name="pdf", head="a"))

    def test_head_decides(self, fetcher: ContentFetcher, store) -> None:
        store.skill_path("pdf").mkdir(parents=True)
        _record(store, ArtifactKind.SKILL, name="pdf", head="a", updated_at="2025-01-01T00:00:00Z")
        same = SkillEntry(name="pdf", head="a", updated_at="2025-05-05T00:00:00Z")
        moved = SkillEntry(name="pdf", head="b", updated_at="2025-01-01T00:00:00Z")
        assert not fetcher.needs_update(ArtifactKind.SKILL, same)
        assert fetcher.needs_update(ArtifactKind.SKILL, moved)

    def test_timestamps_without_heads(self, fetcher: ContentFetcher, store) -> None:
        store.skill_path("pdf").mkdir(parents=True)
        _record(store, ArtifactKind.SKILL, name="pdf", updated_at="2025-01-01T00:00:00Z")
        assert not fetcher.needs_update(
            ArtifactKind.SKILL, SkillEntry(name="pdf", updated_at="2025-01-01T00:00:00+00:00")
        )
        assert fetcher.needs_update(
            ArtifactKind.SKILL, SkillEntry(name="pdf", updated_at="2025-02-01T00:00:00Z")
        )
        assert fetcher.needs_update(
            ArtifactKind.SKILL, SkillEntry(name="pdf", updated_at="yesterday")
        )

    def test_no_version_information(self, fetcher: ContentFetcher, store) -> None:
        store.skill_path("pdf").mkdir(parents=True)
        _record(store, ArtifactKind.SKILL, name="pdf")
        assert fetcher.needs_update(ArtifactKind.SKILL, SkillEntry(name="pdf"))

    def test_http_server_checks_definition(self, fetcher: ContentFetcher, store) -> None:
        entry = MCPEntry(name="remote", type="http", url="https://x", head="a")
        _record(store, ArtifactKind.MCP, name="remote", head="a")
        assert fetcher.needs_update(ArtifactKind.MCP, entry)
        store.definition_path("remote").parent.mkdir(parents=True)
        store.definition_path("remote").write_text("{}", encoding="utf-8")
        assert not fetcher.needs_update(ArtifactKind.MCP, entry)


def test_fetch_mcp_source_runs_install_steps(
    tmp_path: Path, fetcher: ContentFetcher, fake_git, store
) -> None:
    repo = tmp_path / "server-repo"
    (repo / "server").mkdir(parents=True)
    (repo / "server" / "main.py").write_text("print()", encoding="utf-8")
    fake_git.add("acme/server", repo)
    entry = MCPEntry(
        name="files",
        repo="acme/server",
        path="server",
        head="abc",
        install=["echo built > built.txt", "  "],
    )

    dest, fresh = fetcher.fetch_mcp_source(entry)

    assert fresh
    assert dest == store.mcp_source_path("files")
    assert (dest / "main.py").is_file()
    assert (dest / "built.txt").read_text(encoding="utf-8").strip() == "built"
    assert fetcher.fetch_mcp_source(entry) == (dest, False)


def test_failed_install_step_removes_source(
    tmp_path: Path, fetcher: ContentFetcher, fake_git, store
) -> None:
    repo = tmp_path / "server-repo"
    repo.mkdir()
    (repo / "main.py").write_text("print()", encoding="utf-8")
    fake_git.add("acme/server", repo)
    entry = MCPEntry(name="files", repo="acme/server", install=["echo nope >&2; exit 4"])

    with pytest.raises(ExternalCommandError) as exc_info:
        fetcher.fetch_mcp_source(entry)

    assert "nope" in str(exc_info.value)
    assert not store.mcp_source_path("files").exists()
    assert store.load_record(ArtifactKind.MCP, "files") is None


def test_fetch_mcp_source_requires_repo(fetcher: ContentFetcher) -> None:
    with pytest.raises(SkillManagerError, match="missing repo"):
        fetcher.fetch_mcp_source(MCPEntry(name="files", type="stdio"))


def test_requirements() -> None:
    assert normalize_requirements([" Node ", "node", ""], Transport.STDIO) == ["node", "git"]
    assert normalize_requirements(["uv"], Transport.HTTP) == ["uv"]

    with pytest.raises(MissingRequirementsError) as exc_info:
        check_requirements(["sh", "no-such-tool-for-mcp-skill"])
    assert exc_info.value.missing == ["no-such-tool-for-mcp-skill"]


@pytest.mark.parametrize("answer", [False, True])
def test_stale_mcp_source_asks_before_refetch(
    tmp_path: Path, fetcher: ContentFetcher, fake_git, store, answer: bool
) -> None:
    repo = tmp_path / "server-repo"
    repo.mkdir()
    (repo / "main.py").write_text("print()", encoding="utf-8")
    fake_git.add("acme/server", repo)
    fetcher.fetch_mcp_source(MCPEntry(name="files", repo="acme/server", head="v1"))
    prompts: list[str] = []

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return answer

    dest, fresh = fetcher.fetch_mcp_source(
        MCPEntry(name="files", repo="acme/server", head="v2"), confirm=confirm
    )

    assert prompts == ["Cached MCP 'files' exists. Update cache? Type 'yes' to continue: "]
    assert fresh is answer
    assert dest == store.mcp_source_path("files")
    assert len(fake_git.clones) == (2 if answer else 1)
    assert store.load_record(ArtifactKind.MCP, "files").head == ("v2" if answer else "v1")


def test_forced_or_uncached_mcp_fetch_does_not_ask(
    tmp_path: Path, fetcher: ContentFetcher, fake_git
) -> None:
    repo = tmp_path / "server-repo"
    repo.mkdir()
    fake_git.add("acme/server", repo)

    def refuse(prompt: str) -> bool:
        raise AssertionError(prompt)

    fetcher.fetch_mcp_source(MCPEntry(name="files", repo="acme/server", head="v1"), confirm=refuse)
    fetcher.fetch_mcp_source(
        MCPEntry(name="files", repo="acme/server", head="v2"), force=True, confirm=refuse
    )
    assert len(fake_git.clones) == 2
