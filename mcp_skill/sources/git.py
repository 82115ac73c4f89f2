import logging
import subprocess
from pathlib import Path

from mcp_skill.errors import ExternalCommandError, SkillManagerError

logger = logging.getLogger(__name__)


def normalize_repo_url(repo: str) -> str:
    """Expand ``owner/repo`` to a GitHub clone URL; full URLs pass through."""
    value = (repo or "").strip()
    if not value:
        raise SkillManagerError("repository is required")
    if value.startswith(("http://", "https://", "git@")):
        return value
    if value.count("/") == 1 and all(part.strip() for part in value.split("/")):
        return f"https://github.com/{value}.git"
    raise SkillManagerError(f"unsupported repository format: {value}")


def is_repo_reference(value: str) -> bool:
    try:
        normalize_repo_url(value)
    except SkillManagerError:
        return False
    return True


def run_command(
    args: list[str],
    cwd: Path | None = None,
    label: str | None = None,
    message: str = "command failed",
) -> str:
    """Run a command and return its combined output; failures carry that output."""
    display = label or " ".join(args)
    logger.debug("Running: %s", display)
    try:
        completed = subprocess.run(
            args,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ExternalCommandError(display, str(exc), message) from exc
    if completed.returncode != 0:
        raise ExternalCommandError(
            display, completed.stdout or f"exit status {completed.returncode}", message
        )
    return completed.stdout


class GitClient:
    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def clone(self, repo: str, dest: Path) -> None:
        url = normalize_repo_url(repo)
        run_command(
            [self._executable, "clone", "--quiet", "--depth", "1", url, str(dest)],
            label=f"git clone {url}",
            message="git clone failed",
        )

    def checkout(self, repo_path: Path, head: str) -> None:
        run_command(
            [self._executable, "fetch", "--quiet", "--depth", "1", "origin", head],
            cwd=repo_path,
            label=f"git fetch {head}",
            message="git fetch failed",
        )
        run_command(
            [self._executable, "checkout", "--quiet", head],
            cwd=repo_path,
            label=f"git checkout {head}",
            message="git checkout failed",
        )

    def clone_pinned(self, repo: str, dest: Path, head: str = "") -> None:
        self.clone(repo, dest)
        if head.strip():
            self.checkout(dest, head.strip())
