import pytest

from asm_formatter.models import (
    SECTION_START_KINDS,
    UNINDENTED_KINDS,
    FormatResult,
    FormatterState,
    LineBreak,
    LineKind,
    SourceText,
)


@pytest.mark.parametrize(
    ("style", "marker"),
    [(LineBreak.LF, "\n"), (LineBreak.CRLF, "\r\n"), (LineBreak.CR, "\r")],
)
def test_line_break_markers(style: LineBreak, marker: str):
    assert style.marker == marker


def test_preserve_has_no_marker():
    with pytest.raises(ValueError):
        LineBreak.PRESERVE.marker


def test_line_break_values_match_option_names():
    assert LineBreak("crlf") is LineBreak.CRLF
    assert LineBreak("lf") is LineBreak.LF


def test_line_kind_members():
    assert [kind.name for kind in LineKind] == [
        "BLANK",
        "COMMENT",
        "LABEL",
        "PROC_START",
        "PROC_END",
        "DATA_SECTION",
        "CODE_SECTION",
        "CONST_SECTION",
        "END",
        "CALL",
        "PLAIN",
    ]


def test_unindented_kinds():
    assert SECTION_START_KINDS < UNINDENTED_KINDS
    assert LineKind.PROC_END in UNINDENTED_KINDS
    assert LineKind.LABEL in UNINDENTED_KINDS
    assert LineKind.END not in UNINDENTED_KINDS
    assert LineKind.CALL not in UNINDENTED_KINDS


def test_formatter_state_defaults():
    state = FormatterState()

    assert state.previous_line_was_blank is False
    assert state.previous_line_was_comment is False
    assert state.pending_blank_line_insert is False
    assert state.lines_to_skip == 0


def test_source_text_defaults_to_no_bom():
    assert SourceText(text="ret\n", encoding="utf8").bom == b""


def test_format_result_lines_split_on_output_marker():
    result = FormatResult(
        text="\r\n\tret\r\n",
        detected_line_break=LineBreak.LF,
        output_line_break=LineBreak.CRLF,
        max_code_width=0,
    )

    assert result.lines == ["", "\tret"]
