"""Constants used across the asm-formatter package."""

from __future__ import annotations

# Lexical vocabulary
COMMENT_DELIMITER = ";"
HORIZONTAL_WHITESPACE = " \t"
QUOTE_CHARS = "'\""
IDENTIFIER_EXTRA_CHARS = "_@$?"

PROC_START_KEYWORD = "proc"
PROC_END_KEYWORD = "endp"
END_KEYWORD = "end"
CALL_MNEMONIC = "call"
DATA_SECTION_KEYWORD = ".data"
CODE_SECTION_KEYWORD = ".code"
CONST_SECTION_KEYWORD = ".const"

# Formatting defaults
DEFAULT_TAB_WIDTH = 4
DEFAULT_ENCODING = "utf8"
SUPPORTED_ENCODINGS = ("ansi", "utf8", "utf16le")
ENCODING_ALIASES = {"utf-8": "utf8", "utf-16le": "utf16le", "utf-16-le": "utf16le"}

# Filesystem
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
ASM_EXTENSIONS = (".asm",)
