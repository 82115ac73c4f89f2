"""Tests for reading the mirrored registry indexes."""

import json

import pytest

from mcp_skill.errors import InvalidConfigSchemaError, RegistryUnavailableError
from mcp_skill.models import Transport
from mcp_skill.registry.index import RegistryIndex


@pytest.fixture
def index(store) -> RegistryIndex:
    store.root.mkdir(parents=True, exist_ok=True)
    store.skill_index_path.write_text(
        json.dumps(
            {
                "skills": [
                    {"name": "pdf", "description": "Read PDF files", "head": "abc"},
                    {"name": "Docx", "description": "Word documents"},
                ]
            }
        ),
        encoding="utf-8",
    )
    store.mcp_index_path.write_text(
        json.dumps(
            {
                "servers": [
                    {"name": "github", "url": "https://api.example/mcp", "description": "GitHub"},
                    {
                        "name": "files",
                        "repo": "acme/files",
                        "run": {"command": "node", "args": ["${ROOT}/index.js"]},
                        "inputs": [{"name": "TOKEN", "required": True}],
                    },
                ]
            }
        ),
        encoding="utf-8",
    )
    return RegistryIndex(store)


def test_find_is_case_insensitive(index: RegistryIndex) -> None:
    assert index.find_skill("PDF").head == "abc"
    assert index.find_skill("docx").name == "Docx"
    assert index.find_skill("missing") is None


def test_legacy_servers_key_and_type_inference(index: RegistryIndex) -> None:
    github = index.find_mcp("github")
    files = index.find_mcp("files")
    assert github.transport == Transport.HTTP
    assert files.transport == Transport.STDIO
    assert files.run.args == ["${ROOT}/index.js"]
    assert files.inputs[0].required is True


def test_search_matches_name_or_description(index: RegistryIndex) -> None:
    assert [entry.name for entry in index.search_skills("")] == ["Docx", "pdf"]
    assert [entry.name for entry in index.search_skills("word")] == ["Docx"]
    assert [entry.name for entry in index.search_mcp("GIT")] == ["github"]


def test_schema_violation_names_the_file(store, index: RegistryIndex) -> None:
    store.skill_index_path.write_text(json.dumps({"skills": [{"path": "x"}]}), encoding="utf-8")
    with pytest.raises(InvalidConfigSchemaError) as exc_info:
        index.skills()
    assert exc_info.value.path == store.skill_index_path


def test_missing_index_is_unavailable(store) -> None:
    with pytest.raises(RegistryUnavailableError):
        RegistryIndex(store).mcp_servers()
