"""Read the YAML front matter of ``SKILL.md`` files."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml

from mcp_skill.constants import SKILL_FILENAME
from mcp_skill.skills.models import SkillMetadata

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)


def parse_frontmatter(text: str) -> dict:
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}
    raw = yaml.safe_load(match.group(1)) or {}
    return raw if isinstance(raw, dict) else {}


def read_skill_metadata(skill_dir: Path) -> SkillMetadata:
    path = skill_dir / SKILL_FILENAME
    if not path.is_file():
        return SkillMetadata(name=skill_dir.name)

    try:
        raw = parse_frontmatter(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed front matter in %s: %s", path, exc)
        raw = {}

    metadata = raw.get("metadata")
    version = raw.get("version")
    if version is None and isinstance(metadata, dict):
        version = metadata.get("version")
    return SkillMetadata(
        name=str(raw.get("name") or skill_dir.name),
        description=str(raw.get("description") or "").strip(),
        version=str(version or "").strip(),
    )
