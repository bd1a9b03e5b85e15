"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

from .constants import (
    DEFAULT_ENCODING,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TAB_WIDTH,
    ENCODING_ALIASES,
    SUPPORTED_ENCODINGS,
)
from .models import LineBreak


@dataclass(frozen=True)
class FormatConfig:
    """Configuration for one formatting run.

    Attributes:
        tab_width: Width of one indentation level and of a tab stop.
        use_spaces: Indent and pad with spaces instead of tab characters.
        compact_blanks: Collapse every run of blank lines, not only the
            leading one.
        line_break: Line-break style to write; `LineBreak.PRESERVE` keeps
            the style detected in the input.
        encoding: Encoding used to read and write files when no byte order
            mark says otherwise (``"ansi"``, ``"utf8"`` or ``"utf16le"``).
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        FormatConfig(tab_width=8, use_spaces=True, line_break=LineBreak.LF)
    """

    # Layout
    tab_width: int = DEFAULT_TAB_WIDTH
    use_spaces: bool = False
    compact_blanks: bool = False
    line_break: LineBreak = LineBreak.PRESERVE

    # Input/output
    encoding: str = DEFAULT_ENCODING
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`tab_width` must be a positive integer")
    """


# Keys accepted in configuration files, mapped to `FormatConfig` fields.
CONFIG_KEYS = {
    "tab_width": "tab_width",
    "spaces": "use_spaces",
    "compact": "compact_blanks",
    "line_breaks": "line_break",
    "encoding": "encoding",
    "max_file_size": "max_file_size",
}


# Config files checked in each directory, with the tables they may hold.
CONFIG_SOURCES = (
    ("pyproject.toml", (("tool", "asmformat"),)),
    (".asmformat.toml", (("asmformat",), ("tool", "asmformat"))),
)


def load_config(search_path: Path) -> FormatConfig:
    """Load configuration from the nearest config file.

    Starting at `search_path` and moving towards the filesystem root, each
    directory is checked for a ``[tool.asmformat]`` table in
    `pyproject.toml`, then for an ``[asmformat]`` or ``[tool.asmformat]``
    table in `.asmformat.toml`. The first table found wins, even when it is
    empty. Files that cannot be read or are not valid TOML are ignored.

    Args:
        search_path: Directory where the lookup starts.

    Returns:
        FormatConfig: Loaded configuration, or the defaults when no table
            was found.

    Raises:
        ConfigError: If the table is not a mapping, holds unknown keys, or
            names an unknown line-break style.

    Examples:
        load_config(Path("src/asm"))
    """
    start = search_path.resolve()

    for directory in (start, *start.parents):
        for filename, table_paths in CONFIG_SOURCES:
            config_file = directory / filename
            table = _find_table(config_file, table_paths)
            if table is not None:
                table_path, raw_config = table
                return normalize_config(_config_from_table(raw_config, config_file, table_path))

    return FormatConfig()


_ABSENT = object()


def _read_toml(config_file: Path) -> dict | None:
    if not config_file.is_file():
        return None
    try:
        return tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return None


def _find_table(
    config_file: Path, table_paths: tuple[tuple[str, ...], ...]
) -> tuple[tuple[str, ...], object] | None:
    document = _read_toml(config_file)
    if document is None:
        return None

    for table_path in table_paths:
        node: object = document
        for key in table_path:
            node = node.get(key, _ABSENT) if isinstance(node, dict) else _ABSENT
        if node is not _ABSENT:
            return table_path, node
    return None


def _config_from_table(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> FormatConfig:
    where = f"[{'.'.join(table_path)}] in {config_file}"

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Expected a table for {where}")

    unknown = sorted(set(raw_config) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"Unknown key(s) {', '.join(unknown)} in {where}")

    return FormatConfig(**{CONFIG_KEYS[key]: value for key, value in raw_config.items()})


def parse_line_break(value: object) -> LineBreak:
    """Convert a configuration value into a `LineBreak`.

    Args:
        value: A `LineBreak` or one of ``"lf"``, ``"crlf"``, ``"cr"``,
            ``"preserve"`` (case-insensitive).

    Returns:
        LineBreak: The matching style.

    Raises:
        ConfigError: If the value names no known style.
    """
    if isinstance(value, LineBreak):
        return value
    if isinstance(value, str):
        try:
            return LineBreak(value.lower())
        except ValueError:
            pass
    choices = ", ".join(style.value for style in LineBreak)
    raise ConfigError(f"`line_breaks` must be one of: {choices}")


def normalize_config(config: FormatConfig) -> FormatConfig:
    line_break = parse_line_break(config.line_break)

    encoding = config.encoding
    if isinstance(encoding, str):
        encoding = encoding.lower()
        encoding = ENCODING_ALIASES.get(encoding, encoding)

    if line_break is config.line_break and encoding == config.encoding:
        return config
    return replace(config, line_break=line_break, encoding=encoding)


def validate_config(config: FormatConfig) -> None:
    """Check that every setting of `config` is usable.

    Raises:
        ConfigError: If the tab width or size limit is not a positive
            integer, a flag is not a boolean, or the encoding or line-break
            style is unknown.

    Examples:
        validate_config(FormatConfig(tab_width=2))
    """
    config = normalize_config(config)

    for key, value in (("tab_width", config.tab_width), ("max_file_size", config.max_file_size)):
        _check_positive_integer(key, value)
    for key, value in (("spaces", config.use_spaces), ("compact", config.compact_blanks)):
        if not isinstance(value, bool):
            raise ConfigError(f"`{key}` must be true or false")

    if config.encoding not in SUPPORTED_ENCODINGS:
        raise ConfigError(f"`encoding` must be one of: {', '.join(SUPPORTED_ENCODINGS)}")


def _check_positive_integer(key: str, value: object) -> None:
    # bool is an int subclass but never a valid width or size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"`{key}` must be an integer")
    if value <= 0:
        raise ConfigError(f"`{key}` must be a positive integer")


def apply_overrides(config: FormatConfig, **overrides: object) -> FormatConfig:
    """Return `config` with the given fields replaced.

    Overrides whose value is None are dropped, so unset command-line
    options leave file settings alone. `config` itself is returned when
    nothing is left to change.

    Raises:
        TypeError: If an override names no `FormatConfig` field.

    Examples:
        apply_overrides(config, tab_width=8, use_spaces=None)
    """
    changes = {name: value for name, value in overrides.items() if value is not None}
    return replace(config, **changes) if changes else config


def build_config(search_path: Path, **overrides: object) -> FormatConfig:
    """Load the nearest configuration, apply `overrides` and validate.

    Args:
        search_path: Directory where the configuration lookup starts.
        overrides: `FormatConfig` field values; None means "not given".

    Returns:
        FormatConfig: Normalized, validated configuration.

    Raises:
        ConfigError: If a configuration file or override is invalid.

    Examples:
        build_config(Path.cwd(), tab_width=8, line_break="lf")
    """
    config = normalize_config(apply_overrides(load_config(search_path), **overrides))
    validate_config(config)
    return config
