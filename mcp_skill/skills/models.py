"""Skill data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SkillMetadata:
    name: str = ""
    description: str = ""
    version: str = ""
