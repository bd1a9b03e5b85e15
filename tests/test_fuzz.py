from __future__ import annotations

import os

import pytest
from asm_formatter.exceptions import FormatError
from asm_formatter.filesystem import decode_source
from asm_formatter.formatter import format_source

atheris = pytest.importorskip("atheris")


def test_format_source_with_fuzzed_text():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    formatted = 0

    for _ in range(64):
        if provider.remaining_bytes() == 0:
            break
        text = provider.ConsumeUnicodeNoSurrogates(128)
        try:
            result = format_source(text)
        except FormatError:
            continue
        assert result.text.startswith(result.output_line_break.marker)
        formatted += 1

    assert formatted  # ensure we exercised the loop


def test_decode_source_with_fuzzed_bytes():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)

    while provider.remaining_bytes() > 0:
        raw = provider.ConsumeBytes(64)
        encoding = provider.PickValueInList(["ansi", "utf8", "utf16le"])
        try:
            source = decode_source(raw, encoding)
        except FormatError:
            continue
        assert source.encoding in {"ansi", "utf8", "utf16le"}
