"""Assembly source reformatting passes.

Formatting runs three strictly sequential passes over one in-memory buffer:

1. `compute_comment_column` trims every line and measures the widest code
   part that carries an inline comment.
2. `rewrite_lines` indents lines, aligns inline comments and inserts or
   drops blank lines around procedure and segment boundaries.
3. `normalize_blank_lines` cleans up blank-line runs over the whole text
   and applies the requested line-break style.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from .classifier import (
    classify_line,
    normalize_comment,
    should_indent,
    split_comment,
    trim_line,
)
from .config import FormatConfig, normalize_config, validate_config
from .constants import COMMENT_DELIMITER
from .cursor import LineCursor
from .exceptions import MalformedInputError, UnsupportedOperationError
from .models import (
    SECTION_START_KINDS,
    ColumnScan,
    FormatResult,
    FormatterState,
    LineBreak,
    LineKind,
)

SURPLUS_BLANKS_PATTERN = re.compile(r"\n{3,}")
LEADING_BLANKS_PATTERN = re.compile(r"\A\n+")
TRAILING_BLANKS_PATTERN = re.compile(r"\n+\Z")


def split_source_lines(text: str) -> list[str]:
    """Split a buffer on ``\\n`` without losing carriage returns.

    A final terminator does not produce an extra empty line.

    Examples:
        split_source_lines("a\\r\\nb\\r\\n")  # ["a\\r", "b\\r"]
        split_source_lines("")  # []
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


def detect_line_break(lines: Sequence[str]) -> LineBreak:
    """Infer the line-break style from the first line of a split buffer.

    Args:
        lines: Output of `split_source_lines`.

    Returns:
        LineBreak: `CRLF` when the first line kept a trailing carriage
            return, `CR` when it contains a carriage return anywhere else,
            `LF` otherwise.

    Examples:
        detect_line_break(["mov\\r", "ret\\r"])  # LineBreak.CRLF
        detect_line_break(["mov", "ret"])  # LineBreak.LF
    """
    if not lines:
        return LineBreak.LF

    first = lines[0]
    carriage = first.find("\r")
    if carriage == -1:
        return LineBreak.LF
    if carriage == len(first) - 1:
        return LineBreak.CRLF
    return LineBreak.CR


def resolve_line_break(requested: LineBreak, detected: LineBreak) -> LineBreak:
    """Pick the line-break style to write.

    Raises:
        UnsupportedOperationError: If either style is `LineBreak.CR`.
    """
    if requested is LineBreak.CR:
        raise UnsupportedOperationError("Writing CR line breaks is not supported")
    if detected is LineBreak.CR:
        raise UnsupportedOperationError("Source files with CR line breaks are not supported")
    return detected if requested is LineBreak.PRESERVE else requested


def compute_comment_column(lines: Sequence[str]) -> ColumnScan:
    """Trim lines and measure the widest code part with an inline comment.

    Args:
        lines: Raw source lines as returned by `split_source_lines`.

    Returns:
        ColumnScan: Trimmed lines (carriage returns dropped), the maximum
            code width, and the detected line-break style.

    Raises:
        MalformedInputError: If a line is not text or contains a NUL
            character, which usually means the wrong encoding was used.

    Examples:
        scan = compute_comment_column(["  mov eax, 1 ; one", "ret"])
        scan.max_code_width  # 10
    """
    line_break = detect_line_break(lines)
    trimmed: list[str] = []
    max_code_width = 0

    for line_number, line in enumerate(lines, start=1):
        if not isinstance(line, str):
            raise MalformedInputError("Source line is not text", line_number)
        if "\x00" in line:
            raise MalformedInputError(
                "Source contains NUL characters; check the file encoding", line_number
            )

        if line.endswith("\r"):
            line = line[:-1]
        line = trim_line(line)
        trimmed.append(line)

        if not line or line.startswith(COMMENT_DELIMITER):
            continue

        code, comment = split_comment(line)
        if comment is not None:
            max_code_width = max(max_code_width, len(code))

    return ColumnScan(lines=trimmed, max_code_width=max_code_width, line_break=line_break)


def _indent_unit(config: FormatConfig) -> str:
    return " " * config.tab_width if config.use_spaces else "\t"


def _align_comment(
    code: str, comment: str, indented: bool, max_code_width: int, config: FormatConfig
) -> str:
    """Pad `code` so that `comment` starts on the shared comment column.

    The column is one indentation level plus `max_code_width` rounded up
    to the next tab stop (always leaving at least one gap). Lines without
    indentation get one extra level of padding to make up for it.
    """
    tab_width = config.tab_width
    comment_column = max_code_width + (tab_width - max_code_width % tab_width)
    shortfall = max(comment_column - len(code), 1)

    if config.use_spaces:
        if not indented:
            shortfall += tab_width
        padding = " " * shortfall
    else:
        tab_count = shortfall // tab_width
        if shortfall % tab_width != 0:
            tab_count += 1
        if not indented:
            tab_count += 1
        padding = "\t" * tab_count

    prefix = _indent_unit(config) if indented else ""
    return f"{prefix}{code}{padding}{normalize_comment(comment)}"


def _rewrite_comment(
    line: str,
    cursor: LineCursor,
    state: FormatterState,
    config: FormatConfig,
    output: list[str],
) -> str:
    next_line, stopped = cursor.peek_next_code_line(skip_blanks=False)
    next_kind = None if stopped or next_line is None else classify_line(next_line)

    # Comments follow the indentation of the code they introduce
    comment = normalize_comment(line)
    if should_indent(next_kind):
        comment = _indent_unit(config) + comment

    if (
        not state.previous_line_was_blank
        and not state.previous_line_was_comment
        and next_kind in SECTION_START_KINDS
    ):
        output.append("")

    state.previous_line_was_comment = True
    return comment


def _rewrite_code(
    line: str,
    cursor: LineCursor,
    state: FormatterState,
    max_code_width: int,
    config: FormatConfig,
    output: list[str],
) -> str:
    next_line, at_end = cursor.peek_next_code_line(skip_blanks=True)
    kind = classify_line(line)
    next_kind = None if next_line is None else classify_line(next_line)
    indented = should_indent(kind)

    if kind in SECTION_START_KINDS:
        if not state.previous_line_was_blank and not state.previous_line_was_comment:
            output.append("")
        state.lines_to_skip = cursor.count_following_blanks()
    elif kind is LineKind.PROC_END:
        if not at_end:
            following_blanks = cursor.count_following_blanks()
            if next_kind is LineKind.END:
                state.lines_to_skip = following_blanks
            elif following_blanks == 0:
                state.pending_blank_line_insert = True
    elif kind is LineKind.CALL:
        if cursor.count_following_blanks() == 0:
            state.pending_blank_line_insert = True
    elif kind is LineKind.PLAIN:
        if not at_end and next_kind is LineKind.LABEL and cursor.count_following_blanks() == 0:
            state.pending_blank_line_insert = True

    code, comment = split_comment(line)
    if comment is not None:
        line = _align_comment(code, comment, indented, max_code_width, config)
    elif indented:
        line = _indent_unit(config) + line

    state.previous_line_was_comment = False
    return line


def rewrite_lines(
    lines: Sequence[str], max_code_width: int, config: FormatConfig | None = None
) -> list[str]:
    """Rewrite trimmed source lines according to the layout rules.

    Code lines are indented one level unless they are labels or block
    directives; full-line comments take the indentation of the code line
    that follows them. Blank lines are inserted before procedures and
    segments, after ``endp``, after ``call`` and before labels, and blank
    lines directly after a block directive are dropped. Inline comments
    are aligned to a common column derived from `max_code_width`.

    A fresh `FormatterState` is used for every call.

    Args:
        lines: Lines produced by `compute_comment_column`.
        max_code_width: Widest code part with an inline comment.
        config: Layout settings. Defaults to a new `FormatConfig`.

    Returns:
        list[str]: Rewritten lines without terminators, blank lines as ``""``.

    Raises:
        ConfigError: If the configuration fails validation.
        MalformedInputError: If the line buffer was not fully consumed.

    Examples:
        rewrite_lines(["mov eax, 1;one"], 10)  # ["\\tmov eax, 1\\t; one"]
    """
    config = normalize_config(config or FormatConfig())
    validate_config(config)

    state = FormatterState()
    cursor = LineCursor(lines)
    output: list[str] = []

    while (line := cursor.advance()) is not None:
        if state.lines_to_skip > 0:
            state.lines_to_skip -= 1
            continue

        line = trim_line(line)
        kind = classify_line(line)

        if kind is LineKind.BLANK:
            state.previous_line_was_blank = True
            output.append("")
            continue

        if kind is LineKind.COMMENT:
            line = _rewrite_comment(line, cursor, state, config, output)
        else:
            line = _rewrite_code(line, cursor, state, max_code_width, config, output)

        state.previous_line_was_blank = False
        output.append(line)

        if state.pending_blank_line_insert:
            output.append("")
            state.pending_blank_line_insert = False
            state.previous_line_was_blank = True

    if not cursor.at_end():
        raise MalformedInputError("Source lines were not fully consumed", cursor.position + 1)

    return output


def _tidy_blanks_around_blocks(lines: list[str]) -> list[str]:
    kept: list[str] = []
    for line in lines:
        kind = classify_line(line)
        if kind is LineKind.PROC_END:
            while kept and not trim_line(kept[-1]):
                kept.pop()
        elif kind in SECTION_START_KINDS:
            while len(kept) > 1 and not trim_line(kept[-1]) and not trim_line(kept[-2]):
                kept.pop()
        kept.append(line)
    return kept


def normalize_blank_lines(
    text: str,
    compact: bool,
    requested_line_break: LineBreak,
    detected_line_break: LineBreak,
) -> str:
    """Clean up blank-line runs and apply the output line-break style.

    Blank lines directly above an ``endp`` line are removed and a run of
    blank lines above a procedure or segment start shrinks to one. The text then
    starts with exactly one blank line and ends right after its last
    non-blank line. With `compact`, every run of blank lines is reduced to
    one; otherwise interior runs are kept as they are.

    Args:
        text: Rewritten text, every line terminated by ``\\n``.
        compact: Collapse interior blank-line runs too.
        requested_line_break: Style to write, or `LineBreak.PRESERVE`.
        detected_line_break: Style found in the input.

    Returns:
        str: Normalized text terminated by the output line break.

    Raises:
        UnsupportedOperationError: If CR line breaks are requested or detected.

    Examples:
        normalize_blank_lines("mov\\n\\n\\n", False, LineBreak.LF, LineBreak.LF)  # "\\nmov\\n"
    """
    output_line_break = resolve_line_break(requested_line_break, detected_line_break)

    lines = _tidy_blanks_around_blocks(split_source_lines(text))
    text = "".join(f"{line}\n" for line in lines)

    if not text.startswith("\n"):
        text = "\n" + text
    if compact:
        text = SURPLUS_BLANKS_PATTERN.sub("\n\n", text)
    text = LEADING_BLANKS_PATTERN.sub("\n", text)
    text = TRAILING_BLANKS_PATTERN.sub("\n", text)

    if output_line_break is not LineBreak.LF:
        text = text.replace("\n", output_line_break.marker)
    return text


def format_source(text: str, config: FormatConfig | None = None) -> FormatResult:
    """Format one decoded assembly source buffer.

    Pure function: the caller's text is never modified, and no state is
    shared between calls.

    Args:
        text: Complete file content, without byte order mark.
        config: Formatting settings. Defaults to a new `FormatConfig`.

    Returns:
        FormatResult: Formatted text with the line-break styles involved and
            the comment alignment width.

    Raises:
        ConfigError: If the configuration fails validation.
        MalformedInputError: If the text cannot be traversed.
        UnsupportedOperationError: If CR line breaks are requested or detected.

    Examples:
        format_source("  mov eax, 1;comment\\n").text  # "\\n\\tmov eax, 1\\t; comment\\n"
    """
    config = normalize_config(config or FormatConfig())
    validate_config(config)

    scan = compute_comment_column(split_source_lines(text))
    detected_line_break = scan.line_break
    if "\r" in text and "\n" not in text:
        # A lone carriage return never reaches the line split
        detected_line_break = LineBreak.CR
    output_line_break = resolve_line_break(config.line_break, detected_line_break)

    rewritten = rewrite_lines(scan.lines, scan.max_code_width, config)
    body = "".join(f"{line}\n" for line in rewritten)
    formatted = normalize_blank_lines(
        body, config.compact_blanks, config.line_break, detected_line_break
    )

    return FormatResult(
        text=formatted,
        detected_line_break=detected_line_break,
        output_line_break=output_line_break,
        max_code_width=scan.max_code_width,
    )
