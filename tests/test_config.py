from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from asm_formatter.config import (
    ConfigError,
    FormatConfig,
    apply_overrides,
    build_config,
    load_config,
    normalize_config,
    parse_line_break,
    validate_config,
)
from asm_formatter.models import LineBreak


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".asmformat.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 8
        spaces = true
        compact = true
        line_breaks = "crlf"
        encoding = "ansi"
        max_file_size = 2048
        """,
    )

    config = load_config(tmp_path)

    assert config == FormatConfig(
        tab_width=8,
        use_spaces=True,
        compact_blanks=True,
        line_break=LineBreak.CRLF,
        encoding="ansi",
        max_file_size=2048,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [asmformat]
        tab_width = 2
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.tab_width == 2
    assert config.use_spaces is False


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [tool.asmformat]
        spaces = true
        """,
    )

    assert load_config(tmp_path).use_spaces is True


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        line_breaks = "lf"
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.line_break is LineBreak.LF


def test_pyproject_without_table_is_skipped(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 3
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [project]
        name = "unrelated"
        """,
    )

    assert load_config(child).tab_width == 3


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 3
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.asmformat]
        """,
    )

    assert load_config(child) == FormatConfig()


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    assert load_config(tmp_path) == FormatConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        compact = true
        """,
    )

    assert load_config(invalid_dir).compact_blanks is True


def test_load_config_errors_on_unknown_key(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 4
        indent = "tabs"
        """,
    )

    with pytest.raises(ConfigError, match="indent"):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        asmformat = 4
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_unknown_line_break(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        line_breaks = "nel"
        """,
    )

    with pytest.raises(ConfigError, match="line_breaks"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("lf", LineBreak.LF),
        ("CRLF", LineBreak.CRLF),
        ("preserve", LineBreak.PRESERVE),
        (LineBreak.CR, LineBreak.CR),
    ],
)
def test_parse_line_break(value, expected):
    assert parse_line_break(value) is expected


def test_parse_line_break_rejects_non_strings():
    with pytest.raises(ConfigError):
        parse_line_break(1)


@pytest.mark.parametrize(
    ("encoding", "expected"),
    [("UTF8", "utf8"), ("utf-8", "utf8"), ("UTF-16LE", "utf16le"), ("ansi", "ansi")],
)
def test_normalize_config_canonicalizes_encoding(encoding: str, expected: str):
    assert normalize_config(FormatConfig(encoding=encoding)).encoding == expected


def test_normalize_config_returns_same_instance_when_canonical():
    config = FormatConfig()

    assert normalize_config(config) is config


@pytest.mark.parametrize(
    "config",
    [
        FormatConfig(tab_width=0),
        FormatConfig(tab_width=-4),
        FormatConfig(tab_width=True),
        FormatConfig(tab_width="4"),
        FormatConfig(max_file_size=0),
        FormatConfig(use_spaces="yes"),
        FormatConfig(compact_blanks=1),
        FormatConfig(encoding="utf32"),
    ],
)
def test_validate_config_rejects_invalid_values(config: FormatConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_validate_config_accepts_defaults():
    validate_config(FormatConfig())


def test_apply_overrides_ignores_none():
    config = FormatConfig()

    assert apply_overrides(config, tab_width=None, encoding=None) is config
    assert apply_overrides(config, tab_width=8).tab_width == 8


def test_apply_overrides_rejects_unknown_field():
    with pytest.raises(TypeError):
        apply_overrides(FormatConfig(), indent="tabs")


def test_build_config_prefers_overrides(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 2
        line_breaks = "crlf"
        """,
    )

    config = build_config(tmp_path, tab_width=8, line_break="lf", encoding=None)

    assert config.tab_width == 8
    assert config.line_break is LineBreak.LF


def test_build_config_validates_file_values(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.asmformat]
        tab_width = 0
        """,
    )

    with pytest.raises(ConfigError, match="tab_width"):
        build_config(tmp_path)
