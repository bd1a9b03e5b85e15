"""Data models for asm-formatter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class LineBreak(Enum):
    """Line-break styles understood by the formatter.

    The value doubles as the name accepted on the command line and in
    configuration files.

    Attributes:
        LF: Unix style ``\\n``.
        CRLF: Windows style ``\\r\\n``.
        CR: Classic Mac style ``\\r``; detected but never produced.
        PRESERVE: Keep whatever style the input uses.
    """

    LF = "lf"
    CRLF = "crlf"
    CR = "cr"
    PRESERVE = "preserve"

    @property
    def marker(self) -> str:
        """Return the literal terminator for this style.

        Raises:
            ValueError: For `PRESERVE`, which has no marker of its own.
        """
        if self is LineBreak.LF:
            return "\n"
        if self is LineBreak.CRLF:
            return "\r\n"
        if self is LineBreak.CR:
            return "\r"
        raise ValueError("`preserve` has no line-break marker")


class LineKind(Enum):
    """Lexical category of a single source line.

    Attributes:
        BLANK: Empty after trimming horizontal whitespace.
        COMMENT: Starts with the comment delimiter.
        LABEL: Identifier immediately followed by ``:``.
        PROC_START: ``name proc`` directive.
        PROC_END: ``name endp`` directive.
        DATA_SECTION: ``.data`` segment directive.
        CODE_SECTION: ``.code`` segment directive.
        CONST_SECTION: ``.const`` segment directive.
        END: ``end`` directive closing the listing.
        CALL: ``call`` instruction.
        PLAIN: Anything else.
    """

    BLANK = auto()
    COMMENT = auto()
    LABEL = auto()
    PROC_START = auto()
    PROC_END = auto()
    DATA_SECTION = auto()
    CODE_SECTION = auto()
    CONST_SECTION = auto()
    END = auto()
    CALL = auto()
    PLAIN = auto()


# Directives that open a new block and therefore want a blank line above them.
SECTION_START_KINDS = frozenset(
    {
        LineKind.PROC_START,
        LineKind.DATA_SECTION,
        LineKind.CODE_SECTION,
        LineKind.CONST_SECTION,
    }
)

# Lines that stay flush with the left margin.
UNINDENTED_KINDS = SECTION_START_KINDS | {LineKind.PROC_END, LineKind.LABEL}


@dataclass
class FormatterState:
    """Mutable state threaded through one rewrite pass over one file.

    A fresh instance is created for every call to the rewriter so that
    nothing carries over between files.

    Attributes:
        previous_line_was_blank: Whether the last emitted line was blank.
        previous_line_was_comment: Whether the last processed line was a
            full-line comment.
        pending_blank_line_insert: Emit a blank line after the current line.
        lines_to_skip: Number of upcoming source lines to drop.
    """

    previous_line_was_blank: bool = False
    previous_line_was_comment: bool = False
    pending_blank_line_insert: bool = False
    lines_to_skip: int = 0


@dataclass
class ColumnScan:
    """Result of the first (measuring) pass.

    Attributes:
        lines: Source lines with leading and trailing spaces/tabs removed.
        max_code_width: Longest code part among lines with an inline comment.
        line_break: Line-break style detected in the input.
    """

    lines: list[str]
    max_code_width: int
    line_break: LineBreak


@dataclass
class SourceText:
    """A decoded source file and what is needed to encode it again.

    Attributes:
        text: Decoded content without byte order mark.
        encoding: Encoding name (``"ansi"``, ``"utf8"`` or ``"utf16le"``).
        bom: Byte order mark found at the start of the file, or ``b""``.
    """

    text: str
    encoding: str
    bom: bytes = b""


@dataclass
class FormatResult:
    """Structured result of formatting one source buffer.

    Attributes:
        text: Formatted text, terminated with the output line break.
        detected_line_break: Line-break style found in the input.
        output_line_break: Line-break style used in `text`.
        max_code_width: Width that inline comments were aligned against.
    """

    text: str
    detected_line_break: LineBreak
    output_line_break: LineBreak
    max_code_width: int

    @property
    def lines(self) -> list[str]:
        """Formatted lines without terminators."""
        return self.text.split(self.output_line_break.marker)[:-1]
