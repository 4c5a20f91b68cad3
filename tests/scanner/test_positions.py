"""Tests for offset to line/column conversion."""

from baseline_scan.scanner.positions import position_from_byte, position_from_index


class TestPositionFromIndex:
    def test_start_of_text(self):
        assert position_from_index("abc", 0) == (1, 1)

    def test_second_line(self):
        assert position_from_index("ab\ncd", 4) == (2, 2)

    def test_offset_at_newline(self):
        assert position_from_index("ab\ncd", 2) == (1, 3)

    def test_carriage_return_is_a_column(self):
        assert position_from_index("ab\r\ncd", 4) == (2, 1)
        assert position_from_index("ab\rcd", 3) == (1, 4)


class TestPositionFromByte:
    def test_matches_index_for_ascii(self):
        text = "const a = 1;\n  navigator.share(x);"
        index = text.index("navigator")
        assert position_from_byte(text.encode(), index) == position_from_index(text, index)

    def test_multibyte_characters_count_once(self):
        text = "const s = 'é';\nconst t = '日本'; structuredClone(x);"
        index = text.index("structuredClone")
        byte_offset = len(text[:index].encode("utf-8"))
        assert position_from_byte(text.encode("utf-8"), byte_offset) == (2, 17)
        assert position_from_index(text, index) == (2, 17)
