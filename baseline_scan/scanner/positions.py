"""Offset to line/column conversion.

Both detector paths report 1-based lines and 1-based columns counted in
characters (code points), with only "\\n" starting a new line. The
structural path works in UTF-8 byte offsets, so it converts through the
encoded source; the regex path works on the str directly.
"""


def position_from_index(text: str, index: int) -> tuple[int, int]:
    """Return (line, column) for a character offset into text."""
    line = text.count("\n", 0, index) + 1
    line_start = text.rfind("\n", 0, index) + 1
    return line, index - line_start + 1


def position_from_byte(source: bytes, byte_offset: int) -> tuple[int, int]:
    """Return (line, column) for a UTF-8 byte offset into source."""
    line = source.count(b"\n", 0, byte_offset) + 1
    line_start = source.rfind(b"\n", 0, byte_offset) + 1
    prefix = source[line_start:byte_offset].decode("utf-8", errors="replace")
    return line, len(prefix) + 1
