"""
Formats MASM-style assembly source files in place.
Indents code, aligns inline comments to one column and normalizes blank lines.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from . import __version__
from .config import ConfigError, FormatConfig, apply_overrides, build_config
from .constants import SUPPORTED_ENCODINGS
from .exceptions import FormatError
from .filesystem import (
    collect_file_stat,
    collect_source_files,
    decode_source,
    encode_source,
    enforce_file_size,
    ensure_file_unchanged,
    get_max_file_size,
    normalize_filepath,
    read_bytes,
    write_source,
)
from .formatter import format_source

__all__ = ["cli", "format_file"]


def format_file(
    filepath: Path, config: FormatConfig, warn: Callable[[str], None] | None = None
) -> bool:
    """Format one file in place.

    The file is left untouched when formatting fails or produces identical
    bytes.

    Args:
        filepath: Path to the assembly source file.
        config: Validated configuration.
        warn: Optional callback for non-fatal diagnostics.

    Returns:
        bool: True when the file was rewritten.

    Raises:
        FormatError: If the content is malformed or uses an unsupported
            encoding or line-break style.
        IOError: If filesystem safety checks fail.

    Examples:
        format_file(Path("main.asm"), build_config(Path.cwd()))
    """
    initial_stat = collect_file_stat(filepath)
    enforce_file_size(initial_stat, config.max_file_size, filepath)

    data = read_bytes(filepath)
    ensure_file_unchanged(initial_stat, collect_file_stat(filepath), filepath)

    source = decode_source(data, config.encoding, filepath, warn)
    result = format_source(source.text, config)
    formatted = encode_source(source, result.text)

    if formatted == data:
        return False

    write_source(filepath, formatted, initial_stat, warn)
    return True


def _resolve_targets(files: tuple[str, ...], directory: str | None, recurse: bool) -> list[Path]:
    targets: list[Path] = []
    for raw_path in files:
        try:
            targets.append(normalize_filepath(raw_path))
        except ValueError as error:
            raise click.BadParameter(str(error), param_hint="FILES") from error

    if directory is not None:
        try:
            targets.extend(collect_source_files(Path(directory), recurse=recurse))
        except (ValueError, OSError) as error:
            raise click.BadParameter(str(error), param_hint="--directory") from error

    # Keep the first occurrence of files named twice
    return list(dict.fromkeys(targets))


@click.command()
@click.version_option(version=__version__, prog_name="asmformat")
@click.option(
    "--directory",
    type=click.Path(exists=True, file_okay=False),
    help="Format every .asm file in this directory",
)
@click.option("--recurse", is_flag=True, help="Include subdirectories of --directory")
@click.option(
    "--encoding",
    type=click.Choice(SUPPORTED_ENCODINGS),
    help="Encoding of source files without a byte order mark (default: utf8)",
)
@click.option("--tabwidth", "tab_width", type=click.IntRange(min=1), help="Tab width (default: 4)")
@click.option("--spaces", is_flag=True, help="Indent with spaces instead of tabs")
@click.option(
    "--linebreaks",
    "line_breaks",
    type=click.Choice(["crlf", "lf"]),
    help="Line breaks to write (default: keep the file's own)",
)
@click.option("--compact", is_flag=True, help="Collapse every run of blank lines to one")
@click.option("--nologo", is_flag=True, help="Do not print the program banner")
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
def cli(
    files: tuple[str, ...],
    directory: str | None = None,
    recurse: bool = False,
    encoding: str | None = None,
    tab_width: int | None = None,
    spaces: bool = False,
    line_breaks: str | None = None,
    compact: bool = False,
    nologo: bool = False,
):
    """
    Entry point for formatting assembly source files.

    Args:
        files: Paths to the files to format.
        directory: Directory to search for ``*.asm`` files.
        recurse: Search subdirectories of `directory` too.
        encoding: Encoding for files without a byte order mark.
        tab_width: Width of one indentation level.
        spaces: Indent and align with spaces instead of tabs.
        line_breaks: Line-break style to write (`crlf` or `lf`).
        compact: Collapse interior blank-line runs.
        nologo: Suppress the banner.

    Returns:
        None.

    Raises:
        click.UsageError: If no files are given, or `--recurse` is used
            without `--directory`.
        click.BadParameter: If a path or configuration value is invalid.
        click.ClickException: If the size limit is misconfigured or any file
            could not be formatted.

    Examples:
        asmformat --directory src --recurse --tabwidth 8 --linebreaks crlf
    """
    if recurse and directory is None:
        raise click.UsageError("--recurse requires --directory")
    if not files and directory is None:
        raise click.UsageError("No source files given; pass file paths or --directory")

    if not nologo:
        click.echo(f"asmformat {__version__}")

    targets = _resolve_targets(files, directory, recurse)
    if not targets:
        click.echo(f"No .asm files found in {directory}", err=True)
        return

    overrides = {
        "tab_width": tab_width,
        "use_spaces": True if spaces else None,
        "compact_blanks": True if compact else None,
        "line_break": line_breaks,
        "encoding": encoding,
    }
    configs: dict[Path, FormatConfig] = {}

    def warn(message: str) -> None:
        click.echo(message, err=True)

    failures = 0
    for filepath in targets:
        config = configs.get(filepath.parent)
        if config is None:
            try:
                config = build_config(filepath.parent, **overrides)
                config = apply_overrides(
                    config, max_file_size=get_max_file_size(default=config.max_file_size)
                )
            except ConfigError as error:
                raise click.BadParameter(str(error)) from error
            except ValueError as error:
                raise click.ClickException(str(error)) from error
            configs[filepath.parent] = config

        click.echo(f"Formatting file {filepath.name}")
        try:
            format_file(filepath, config, warn=warn)
        except (FormatError, IOError) as error:
            failures += 1
            click.echo(f"Error: {error}", err=True)

    if failures:
        raise click.ClickException(f"{failures} file(s) could not be formatted")


if __name__ == "__main__":
    cli()
