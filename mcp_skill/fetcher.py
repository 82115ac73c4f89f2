import logging
import shutil
import tempfile
from pathlib import Path

from mcp_skill.core.filesystem import remove_path, replace_tree
from mcp_skill.core.repository import LocalStore
from mcp_skill.errors import MissingRequirementsError, SkillManagerError
from mcp_skill.models import ArtifactKind, Transport
from mcp_skill.reconcile import Confirm
from mcp_skill.registry.models import LocalRecord, MCPEntry, SkillEntry
from mcp_skill.sources.git import GitClient, run_command
from mcp_skill.utils import parse_timestamp

logger = logging.getLogger(__name__)

UPDATE_CACHE_PROMPT = "Cached MCP '{name}' exists. Update cache? Type 'yes' to continue: "


def normalize_requirements(requires: list[str], transport: Transport | None) -> list[str]:
    result: list[str] = []
    for item in requires:
        name = item.strip().lower()
        if name and name not in result:
            result.append(name)
    if transport == Transport.STDIO and "git" not in result:
        result.append("git")
    return result


def check_requirements(requires: list[str], transport: Transport | None = None) -> None:
    missing = [
        name
        for name in normalize_requirements(requires, transport)
        if shutil.which(name) is None
    ]
    if missing:
        raise MissingRequirementsError(missing)


def run_install_steps(steps: list[str], cwd: Path) -> None:
    for step in steps:
        command = step.strip()
        if not command:
            continue
        run_command(["sh", "-c", command], cwd=cwd, label=command, message="install step failed")


class ContentFetcher:
    """Pulls registry-backed content into the local store, pinned to ``head``."""

    def __init__(
        self,
        store: LocalStore,
        git: GitClient | None = None,
        default_repo: str = "",
    ) -> None:
        self._store = store
        self._git = git or GitClient()
        self._default_repo = default_repo

    @property
    def store(self) -> LocalStore:
        return self._store

    def cached_path(self, kind: ArtifactKind, entry: SkillEntry | MCPEntry) -> Path:
        if kind == ArtifactKind.SKILL:
            return self._store.skill_path(entry.name)
        if isinstance(entry, MCPEntry) and entry.transport == Transport.STDIO:
            return self._store.mcp_source_path(entry.name)
        return self._store.definition_path(entry.name)

    def needs_update(self, kind: ArtifactKind, entry: SkillEntry | MCPEntry) -> bool:
        """Return whether the cached copy of ``entry`` must be fetched again.

        The commit pin decides when both sides carry one; otherwise the
        ``updatedAt`` timestamps must parse and be equal. A missing record or
        missing cached content always forces a fetch.
        """
        record = self._store.load_record(kind, entry.name)
        if record is None:
            return True
        if not self.cached_path(kind, entry).exists():
            return True

        if entry.head and record.head:
            return entry.head != record.head

        if entry.updated_at and record.updated_at:
            entry_time = parse_timestamp(entry.updated_at)
            record_time = parse_timestamp(record.updated_at)
            if entry_time is None or record_time is None:
                return True
            return entry_time != record_time

        return True

    def fetch_skill(self, entry: SkillEntry, force: bool = False) -> Path:
        dest = self._store.skill_path(entry.name)
        if not force and not self.needs_update(ArtifactKind.SKILL, entry):
            logger.debug("Skill cache hit: %s", entry.name)
            return dest

        repo = entry.repo or self._default_repo
        subpath = entry.path or f"skill/{entry.name}"
        with tempfile.TemporaryDirectory(prefix="mcp-skill-") as tmp:
            checkout = Path(tmp) / "repo"
            self._git.clone_pinned(repo, checkout, entry.head)
            source = checkout / subpath
            if not source.is_dir():
                raise SkillManagerError(f"skill path not found in {repo}: {subpath}")
            replace_tree(source, dest)

        self._store.save_record(ArtifactKind.SKILL, LocalRecord.for_entry(entry))
        logger.info("Fetched skill %s", entry.name)
        return dest

    def fetch_mcp_source(
        self, entry: MCPEntry, force: bool = False, confirm: Confirm | None = None
    ) -> tuple[Path, bool]:
        """Fetch a stdio server's repository and run its install steps.

        Returns the cached directory and whether it was freshly fetched. When
        an out-of-date copy is cached and ``confirm`` declines the refresh,
        the cached copy is kept.
        """
        if not entry.repo.strip():
            raise SkillManagerError(f"invalid mcp entry: missing repo: {entry.name}")

        dest = self._store.mcp_source_path(entry.name)
        if not force and dest.exists():
            if not self.needs_update(ArtifactKind.MCP, entry):
                logger.debug("MCP source cache hit: %s", entry.name)
                return dest, False
            if confirm is not None and not confirm(UPDATE_CACHE_PROMPT.format(name=entry.name)):
                logger.info("Keeping cached MCP server source %s", entry.name)
                return dest, False

        with tempfile.TemporaryDirectory(prefix="mcp-skill-") as tmp:
            checkout = Path(tmp) / "repo"
            self._git.clone_pinned(entry.repo, checkout, entry.head)
            source = checkout
            if entry.path and (checkout / entry.path).is_dir():
                source = checkout / entry.path
            replace_tree(source, dest)

        try:
            run_install_steps(entry.install, dest)
        except SkillManagerError:
            remove_path(dest)
            raise

        self._store.save_record(ArtifactKind.MCP, LocalRecord.for_entry(entry))
        logger.info("Fetched MCP server source %s", entry.name)
        return dest, True

    def clone_repository(self, repo: str, dest: Path) -> Path:
        self._git.clone(repo, dest)
        return dest
