"""Lexical classification of assembly source lines."""

from __future__ import annotations

from .constants import (
    CALL_MNEMONIC,
    CODE_SECTION_KEYWORD,
    COMMENT_DELIMITER,
    CONST_SECTION_KEYWORD,
    DATA_SECTION_KEYWORD,
    END_KEYWORD,
    HORIZONTAL_WHITESPACE,
    IDENTIFIER_EXTRA_CHARS,
    PROC_END_KEYWORD,
    PROC_START_KEYWORD,
    QUOTE_CHARS,
)
from .models import UNINDENTED_KINDS, LineKind

_SECTION_KINDS = {
    DATA_SECTION_KEYWORD: LineKind.DATA_SECTION,
    DATA_SECTION_KEYWORD + "?": LineKind.DATA_SECTION,
    CODE_SECTION_KEYWORD: LineKind.CODE_SECTION,
    CONST_SECTION_KEYWORD: LineKind.CONST_SECTION,
}

_PROC_KINDS = {
    PROC_START_KEYWORD: LineKind.PROC_START,
    PROC_END_KEYWORD: LineKind.PROC_END,
}


def trim_line(line: str) -> str:
    """Remove leading and trailing spaces and tabs.

    Other whitespace (form feeds, carriage returns) is left alone so that
    only horizontal layout is ever changed.

    Examples:
        trim_line("\\t mov eax, 1  ")  # "mov eax, 1"
    """
    return line.strip(HORIZONTAL_WHITESPACE)


def is_identifier_char(character: str) -> bool:
    return character.isalnum() or character in IDENTIFIER_EXTRA_CHARS


def is_identifier(token: str) -> bool:
    """Determine whether `token` is a label-like identifier.

    Args:
        token: Candidate token with no surrounding whitespace.

    Returns:
        bool: True when the token is non-empty and made of identifier
            characters only.

    Examples:
        is_identifier("AVXPackedInt_16")  # True
        is_identifier("eax,")  # False
    """
    return bool(token) and all(is_identifier_char(character) for character in token)


def find_comment_start(line: str) -> int | None:
    """Locate the inline comment delimiter in a line.

    Delimiters inside single- or double-quoted literals are skipped. When
    a quote is left unterminated the quote tracking is abandoned and the
    first delimiter in the line is used instead.

    Args:
        line: Line to scan.

    Returns:
        int | None: Zero-based index of the delimiter, or None when the line
            has no comment.

    Examples:
        find_comment_start("mov eax, 1 ; one")  # 11
        find_comment_start("db 'a;b', 0")  # None
    """
    quote: str | None = None
    for index, character in enumerate(line):
        if quote is not None:
            if character == quote:
                quote = None
            continue
        if character in QUOTE_CHARS:
            quote = character
        elif character == COMMENT_DELIMITER:
            return index

    if quote is not None:
        fallback = line.find(COMMENT_DELIMITER)
        return fallback if fallback >= 0 else None

    return None


def split_comment(line: str) -> tuple[str, str | None]:
    """Split a line into its code part and its inline comment.

    Args:
        line: Line to split.

    Returns:
        tuple[str, str | None]: Code with trailing spaces/tabs removed, and
            the comment starting at its delimiter (None when absent).

    Examples:
        split_comment("mov eax, 1\\t;one")  # ("mov eax, 1", ";one")
        split_comment("ret")  # ("ret", None)
    """
    index = find_comment_start(line)
    if index is None:
        return line.rstrip(HORIZONTAL_WHITESPACE), None
    return line[:index].rstrip(HORIZONTAL_WHITESPACE), line[index:]


def normalize_comment(comment: str) -> str:
    """Leave exactly one space between the delimiter run and the comment text.

    Args:
        comment: Comment text starting with the delimiter.

    Returns:
        str: Normalized comment. A comment with no text stays a bare
            delimiter run.

    Examples:
        normalize_comment(";   eax = *a")  # "; eax = *a"
        normalize_comment(";;;banner")  # ";;; banner"
        normalize_comment(";")  # ";"
    """
    delimiter_length = len(comment) - len(comment.lstrip(COMMENT_DELIMITER))
    delimiter = comment[:delimiter_length]
    text = comment[delimiter_length:].strip(HORIZONTAL_WHITESPACE)
    if not text:
        return delimiter
    return f"{delimiter} {text}"


def _is_label(code: str) -> bool:
    index = 0
    while index < len(code) and is_identifier_char(code[index]):
        index += 1
    return 0 < index < len(code) and code[index] == ":"


def classify_line(line: str) -> LineKind:
    """Determine the lexical category of a source line.

    Keyword matching is case-insensitive and independent of indentation.
    Tests run in a fixed priority order and the first match wins:
    procedure directives (``name proc`` / ``name endp``), segment
    directives (``.data``, ``.data?``, ``.code``, ``.const``), ``end``,
    labels (``name:``), and the ``call`` mnemonic. Anything else is
    `LineKind.PLAIN`.

    Args:
        line: Source line, with or without surrounding whitespace.

    Returns:
        LineKind: Category of the line.

    Examples:
        classify_line("main PROC")  # LineKind.PROC_START
        classify_line("  @@: dec ecx")  # LineKind.LABEL
        classify_line("; note")  # LineKind.COMMENT
    """
    text = trim_line(line)
    if not text:
        return LineKind.BLANK
    if text.startswith(COMMENT_DELIMITER):
        return LineKind.COMMENT

    code, _ = split_comment(text)
    tokens = code.split()
    if not tokens:
        return LineKind.PLAIN

    first = tokens[0].casefold()

    if len(tokens) > 1 and is_identifier(tokens[0]):
        proc_kind = _PROC_KINDS.get(tokens[1].casefold())
        if proc_kind is not None:
            return proc_kind

    section_kind = _SECTION_KINDS.get(first)
    if section_kind is not None:
        return section_kind

    if first == END_KEYWORD:
        return LineKind.END

    if _is_label(code):
        return LineKind.LABEL

    if first == CALL_MNEMONIC:
        return LineKind.CALL

    return LineKind.PLAIN


def should_indent(kind: LineKind | None) -> bool:
    """Decide whether a line of the given kind is indented.

    Labels and block directives stay at the left margin. Blank lines and
    end of input (None) are never indented.

    Examples:
        should_indent(LineKind.PLAIN)  # True
        should_indent(LineKind.PROC_START)  # False
    """
    if kind is None or kind is LineKind.BLANK:
        return False
    return kind not in UNINDENTED_KINDS
