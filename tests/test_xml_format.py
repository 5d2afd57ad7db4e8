"""Tests for the line-based XML pretty printer."""

from __future__ import annotations

import pytest

from cocoon_sdk.xml_format import format_xml, line_type


class TestLineType:
    """Tests for line classification."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ('<preference name="a" value="b"/>', "single"),
            ("</widget>", "closing"),
            ("Space Game</name>", "closing"),
            ('<widget id="com.example">', "opening"),
            ("<!-- comment -->", "other"),
            ('<?xml version="1.0"?>', "other"),
            ("plain text", "other"),
            ("", "other"),
        ],
    )
    def test_line_type(self, line, expected):
        """Test each line kind."""
        assert line_type(line) == expected


class TestFormatXml:
    """Tests for format_xml."""

    def test_nested_elements(self):
        """Test one tab per nesting level."""
        assert format_xml("<a><b>text</b><c/></a>") == "<a>\n\t<b>text</b>\n\t<c/>\n</a>\n"

    def test_empty_element_pair(self):
        """Test that an opening tag directly followed by its closing tag is joined."""
        assert format_xml("<a></a>") == "<a></a>\n"

    def test_deep_nesting(self):
        """Test indentation across several levels."""
        result = format_xml("<a><b><c/></b><d/></a>")

        assert result == "<a>\n\t<b>\n\t\t<c/>\n\t</b>\n\t<d/>\n</a>\n"

    def test_whitespace_between_tags_is_replaced(self):
        """Test that existing indentation is discarded."""
        result = format_xml("<a>\n      <b/>\n  <c/>\n</a>")

        assert result == "<a>\n\t<b/>\n\t<c/>\n</a>\n"

    def test_comment_is_indented(self):
        """Test that comments are indented like their siblings."""
        result = format_xml("<a><!-- note --><b/></a>")

        assert result == "<a>\n\t<!-- note -->\n\t<b/>\n</a>\n"

    def test_trailing_spaces_are_trimmed(self):
        """Test that a trailing space before a newline is removed."""
        assert format_xml("<a>text \n</a>") == "<a>\n\ttext\n</a>\n"

    def test_declaration(self):
        """Test that the declaration stays at the top level."""
        result = format_xml('<?xml version="1.0"?>\n<a><b/></a>')

        assert result == '<?xml version="1.0"?>\n<a>\n\t<b/>\n</a>\n'

    def test_idempotent(self):
        """Test that formatting formatted output changes nothing."""
        once = format_xml("<a><b>text</b><c><d/></c></a>")

        assert format_xml(once.rstrip("\n")) == once
