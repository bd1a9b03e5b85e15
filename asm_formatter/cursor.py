"""Non-consuming lookahead over a buffered sequence of lines."""

from __future__ import annotations

from collections.abc import Sequence

from .classifier import classify_line
from .models import LineKind


class LineCursor:
    """Forward cursor over an index-addressable list of lines.

    The cursor's committed position only moves through `advance`. Every
    ``peek_*`` method works on a local index, so looking ahead never
    disturbs the main iteration.

    Args:
        lines: Lines to walk, without line terminators.

    Examples:
        cursor = LineCursor(["mov eax, 1", "", "ret"])
        while (line := cursor.advance()) is not None:
            following = cursor.count_following_blanks()
    """

    def __init__(self, lines: Sequence[str]):
        self._lines = lines
        self._position = 0

    @property
    def position(self) -> int:
        """Index of the next line `advance` will return."""
        return self._position

    def at_end(self) -> bool:
        return self._position >= len(self._lines)

    def advance(self) -> str | None:
        """Return the next line and commit the move, or None at end of input."""
        if self.at_end():
            return None
        line = self._lines[self._position]
        self._position += 1
        return line

    def peek_next_line(self) -> str | None:
        """Return the next line without moving, or None at end of input."""
        if self.at_end():
            return None
        return self._lines[self._position]

    def peek_next_code_line(self, skip_blanks: bool) -> tuple[str | None, bool]:
        """Look past comment lines for the next line that is not a comment.

        Args:
            skip_blanks: When False, a blank line stops the search and is
                returned. When True, blank lines are skipped too.

        Returns:
            tuple[str | None, bool]: The line found (None at end of input),
                and whether the search stopped at a blank line or at end
                of input.

        Examples:
            LineCursor(["; c", "", "ret"]).peek_next_code_line(False)  # ("", True)
            LineCursor(["; c", "", "ret"]).peek_next_code_line(True)  # ("ret", False)
        """
        index = self._position
        while index < len(self._lines):
            line = self._lines[index]
            kind = classify_line(line)
            if kind is LineKind.COMMENT:
                index += 1
                continue
            if kind is LineKind.BLANK:
                if not skip_blanks:
                    return line, True
                index += 1
                continue
            return line, False
        return None, True

    def count_following_blanks(self) -> int:
        """Count consecutive blank lines starting at the current position."""
        count = 0
        index = self._position
        while index < len(self._lines) and classify_line(self._lines[index]) is LineKind.BLANK:
            count += 1
            index += 1
        return count
