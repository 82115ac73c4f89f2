"""Tests for codex config.toml block editing."""

from mcp_skill.apps.codex.mapper import CodexMCPMapper
from mcp_skill.apps.codex.toml_blocks import (
    BlockKind,
    dump_toml_string,
    find_server,
    parse_blocks,
    parse_table_header,
    remove_server,
    render_blocks,
    server_table,
    upsert_server,
)
from mcp_skill.models import Definition

CONFIG = (
    'model = "o3"\n'
    "\n"
    "[profiles.fast]\n"
    'model = "o4-mini"\n'
    "\n"
    "[mcp_servers.github]\n"
    'url = "https://example.com/mcp"\n'
    "\n"
    "[mcp_servers.github.http_headers]\n"
    'Authorization = "Bearer x"\n'
    "\n"
    "[mcp_servers.files]\n"
    'command = "npx"\n'
    'args = ["-y", "files"]\n'
)


def test_parse_table_header_variants() -> None:
    assert parse_table_header("[mcp_servers.github]") == ["mcp_servers", "github"]
    assert parse_table_header('  [mcp_servers."my.server"]  # note') == [
        "mcp_servers",
        "my.server",
    ]
    assert parse_table_header("[mcp_servers.'odd name'.env]") == [
        "mcp_servers",
        "odd name",
        "env",
    ]
    assert parse_table_header("[[array.table]]") == ["array", "table"]
    assert parse_table_header('args = ["a", "b"]') is None
    assert parse_table_header('["a", "b"]') is None
    assert parse_table_header("[unterminated") is None


def test_subtables_are_absorbed_into_server_block() -> None:
    blocks = parse_blocks(CONFIG)
    assert [(block.kind, block.name) for block in blocks] == [
        (BlockKind.OTHER, ""),
        (BlockKind.OTHER, ""),
        (BlockKind.SERVER, "github"),
        (BlockKind.SERVER, "files"),
    ]
    github = blocks[find_server(blocks, "github")]
    assert "[mcp_servers.github.http_headers]" in github.lines
    assert 'Authorization = "Bearer x"' in github.lines


def test_round_trip_is_byte_identical() -> None:
    assert render_blocks(parse_blocks(CONFIG)) == CONFIG


def test_upsert_replaces_in_place_and_keeps_neighbours() -> None:
    blocks = parse_blocks(CONFIG)
    lines = [server_table("github"), 'url = "https://new.example/mcp"']
    rendered = render_blocks(upsert_server(blocks, "github", lines))

    assert rendered.startswith('model = "o3"\n\n[profiles.fast]\nmodel = "o4-mini"\n\n')
    assert '[mcp_servers.github]\nurl = "https://new.example/mcp"\n\n[mcp_servers.files]' in rendered
    assert "Bearer x" not in rendered
    assert rendered.endswith('[mcp_servers.files]\ncommand = "npx"\nargs = ["-y", "files"]\n')


def test_upsert_appends_with_blank_separator() -> None:
    blocks = parse_blocks('model = "o3"\n')
    rendered = render_blocks(upsert_server(blocks, "new", [server_table("new"), 'command = "x"']))
    assert rendered == 'model = "o3"\n\n[mcp_servers.new]\ncommand = "x"\n'


def test_upsert_into_empty_file() -> None:
    rendered = render_blocks(upsert_server([], "new", [server_table("new"), 'command = "x"']))
    assert rendered == '[mcp_servers.new]\ncommand = "x"\n'


def test_remove_splices_block_and_keeps_others_identical() -> None:
    rendered = render_blocks(remove_server(parse_blocks(CONFIG), "github"))
    assert "github" not in rendered
    assert rendered.startswith('model = "o3"\n\n[profiles.fast]\nmodel = "o4-mini"\n\n')
    assert rendered.endswith('[mcp_servers.files]\ncommand = "npx"\nargs = ["-y", "files"]\n')


def test_names_that_are_not_bare_keys_are_quoted() -> None:
    assert server_table("my.server") == '[mcp_servers."my.server"]'
    assert server_table("plain-name_1", "env") == "[mcp_servers.plain-name_1.env]"
    assert dump_toml_string('a "b" \\ c') == '"a \\"b\\" \\\\ c"'


def test_quoted_server_round_trips_through_parser() -> None:
    mapper = CodexMCPMapper()
    lines = mapper.to_client(Definition.create("my.server", "stdio", command="run"))
    blocks = parse_blocks(render_blocks(upsert_server([], "my.server", lines)))
    assert find_server(blocks, "my.server") == 0


def test_mapper_emits_http_headers_table() -> None:
    mapper = CodexMCPMapper()
    definition = Definition.create(
        "github", "http", url="https://example.com/mcp", headers={"X-Token": "t"}
    )
    assert mapper.to_client(definition) == [
        "[mcp_servers.github]",
        'url = "https://example.com/mcp"',
        "",
        "[mcp_servers.github.http_headers]",
        'X-Token = "t"',
    ]


def test_mapper_emits_sorted_env_table() -> None:
    mapper = CodexMCPMapper()
    definition = Definition.create(
        "files", "stdio", command="npx", args=["-y", "files"], env={"B": "2", "A": "1"}
    )
    assert mapper.to_client(definition) == [
        "[mcp_servers.files]",
        'command = "npx"',
        'args = ["-y", "files"]',
        "",
        "[mcp_servers.files.env]",
        'A = "1"',
        'B = "2"',
    ]


def test_mapper_detects_transport_from_lines() -> None:
    mapper = CodexMCPMapper()
    assert mapper.detect_transport(["[mcp_servers.a]", 'url = "x"']) == "http"
    assert mapper.detect_transport(["[mcp_servers.a]", 'command = "x"']) == "stdio"
    assert mapper.detect_transport(["[mcp_servers.a]", "[mcp_servers.a.env]", 'url = "x"']) == ""
