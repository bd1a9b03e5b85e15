"""
asm-formatter: source code formatter for MASM-style assembly files.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    asmformat main.asm --tabwidth 4 --linebreaks crlf

Library Usage:
    from pathlib import Path
    from asm_formatter import FormatConfig, format_source

    content = Path("main.asm").read_text()
    result = format_source(content, FormatConfig(use_spaces=True))
    formatted_text = result.text
"""

__version__ = "0.1.0"

from .classifier import classify_line, should_indent, split_comment
from .config import ConfigError, FormatConfig
from .cursor import LineCursor
from .exceptions import FormatError, MalformedInputError, UnsupportedOperationError
from .formatter import (
    compute_comment_column,
    detect_line_break,
    format_source,
    normalize_blank_lines,
    rewrite_lines,
)
from .models import FormatResult, LineBreak, LineKind

__all__ = [
    # Core functionality
    "format_source",
    "compute_comment_column",
    "rewrite_lines",
    "normalize_blank_lines",
    "detect_line_break",
    # Line analysis
    "classify_line",
    "should_indent",
    "split_comment",
    "LineCursor",
    # Data models
    "FormatConfig",
    "FormatResult",
    "LineBreak",
    "LineKind",
    # Exceptions
    "ConfigError",
    "FormatError",
    "MalformedInputError",
    "UnsupportedOperationError",
    # Version
    "__version__",
]
