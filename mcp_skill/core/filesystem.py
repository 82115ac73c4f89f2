import os
import shutil
from pathlib import Path

from mcp_skill.constants import SKILL_FILENAME, VCS_DIRNAMES
from mcp_skill.errors import SymlinkNotAllowedError


def tree_contains_symlink(path: Path) -> bool:
    if path.is_symlink():
        return True
    if path.is_file():
        return False
    for child in path.rglob("*"):
        if child.is_symlink():
            return True
    return False


def copy_tree(source: Path, target: Path) -> None:
    """Copy ``source`` into ``target`` skipping VCS metadata; symlinks abort the copy."""
    if source.is_symlink():
        raise SymlinkNotAllowedError(source)
    target.mkdir(parents=True, exist_ok=True)
    for dirpath, dirnames, filenames in os.walk(source):
        current = Path(dirpath)
        relative = current.relative_to(source)

        kept_dirs: list[str] = []
        for name in sorted(dirnames):
            if name in VCS_DIRNAMES:
                continue
            child = current / name
            if child.is_symlink():
                raise SymlinkNotAllowedError(child)
            (target / relative / name).mkdir(parents=True, exist_ok=True)
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for name in sorted(filenames):
            child = current / name
            if child.is_symlink():
                raise SymlinkNotAllowedError(child)
            shutil.copy2(child, target / relative / name)


def replace_tree(source: Path, target: Path) -> None:
    remove_path(target)
    copy_tree(source, target)


def remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    if path.is_dir():
        shutil.rmtree(path)


def clear_dir(root: Path) -> None:
    if not root.is_dir():
        return
    for child in root.iterdir():
        remove_path(child)


def count_entries(path: Path) -> int:
    if not path.is_dir():
        return 0
    return sum(1 for _ in path.iterdir())


def find_skill_dirs(root: Path) -> list[Path]:
    if root.is_file() and root.name == SKILL_FILENAME:
        return [root.parent]

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in VCS_DIRNAMES)
        if SKILL_FILENAME in filenames:
            found.append(Path(dirpath))
    return found
