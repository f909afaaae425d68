"""
Unit tests for folder label parsing in memberlink.matching.name_parser.

Tests cover:
- Prefix/suffix stripping
- Embedded ClientID extraction
- Each name format on its own
- Format priority and malformed input
"""

import pytest

from memberlink.matching import (
    CommaFormat,
    DashFormat,
    NameParser,
    PlainFormat,
    parse_folder_name,
)
from memberlink.models import ParsedName


# =============================================================================
# Name Formats
# =============================================================================

@pytest.mark.unit
class TestCommaFormat:
    """Tests for the "Last, First" format."""

    def test_applies_only_with_comma(self):
        assert CommaFormat().applies("Smith, John")
        assert not CommaFormat().applies("John Smith")

    def test_split_last_first(self):
        assert CommaFormat().split("Smith, John") == ("John", "Smith")

    def test_extra_segments_ignored(self):
        assert CommaFormat().split("Smith, John, Jr") == ("John", "Smith")

    def test_trailing_comma_gives_empty_first(self):
        assert CommaFormat().split("Smith,") == ("", "Smith")


@pytest.mark.unit
class TestDashFormat:
    """Tests for the "First Last - Additional Info" format."""

    def test_applies_only_with_spaced_dash(self):
        assert DashFormat().applies("John Smith - Intake")
        assert not DashFormat().applies("Mary-Jane Smith")

    def test_split_uses_text_before_first_dash(self):
        assert DashFormat().split("John Smith - Intake - 2023") == ("John", "Smith")

    def test_multi_word_last_name(self):
        assert DashFormat().split("Mary Ann Jones - misc") == ("Mary", "Ann Jones")

    def test_single_token_before_dash(self):
        assert DashFormat().split("Madonna - files") == ("Madonna", "")


@pytest.mark.unit
class TestPlainFormat:
    """Tests for the fallback whitespace format."""

    def test_always_applies(self):
        assert PlainFormat().applies("")
        assert PlainFormat().applies("anything at all")

    def test_first_token_is_first_name(self):
        assert PlainFormat().split("Mary Ann Jones") == ("Mary", "Ann Jones")

    def test_single_token(self):
        assert PlainFormat().split("Madonna") == ("Madonna", "")

    def test_collapses_extra_whitespace(self):
        assert PlainFormat().split("  John    Smith ") == ("John", "Smith")


# =============================================================================
# NameParser
# =============================================================================

@pytest.mark.unit
class TestNameParserCleaning:
    """Tests for prefix and suffix stripping."""

    @pytest.mark.parametrize("label,expected", [
        ("Member John Smith", "John Smith"),
        ("client Jane Doe", "Jane Doe"),
        ("CASE Jane Doe", "Jane Doe"),
        ("Folder Jane Doe", "Jane Doe"),
        ("Jane Doe Files", "Jane Doe"),
        ("Jane Doe file", "Jane Doe"),
        ("Jane Doe docs", "Jane Doe"),
        ("Jane Doe Documents", "Jane Doe"),
        ("Jane Doe folder", "Jane Doe"),
        ("Client Jane Doe Files", "Jane Doe"),
    ])
    def test_prefix_and_suffix_removed(self, label: str, expected: str):
        assert NameParser().clean(label) == expected

    def test_prefix_must_be_whole_word(self):
        """Names that merely start with a prefix word are kept intact."""
        parser = NameParser()
        assert parser.clean("Casey Jones") == "Casey Jones"
        assert parser.clean("Clientele Smith") == "Clientele Smith"

    def test_suffix_must_be_whole_word(self):
        assert NameParser().clean("Jane Doefile") == "Jane Doefile"

    def test_clientid_label_keeps_its_prefix(self):
        assert NameParser().clean("ClientID: 4521 - Random Label") == "ClientID: 4521 - Random Label"


@pytest.mark.unit
class TestClientIdExtraction:
    """Tests for embedded ClientID detection."""

    def test_extracts_and_removes_id(self):
        remaining, client_id = NameParser().extract_client_id("Jane Doe ClientID: 77")
        assert client_id == "77"
        assert remaining == "Jane Doe"

    def test_case_insensitive_without_space(self):
        remaining, client_id = NameParser().extract_client_id("clientid:123 Jane Doe")
        assert client_id == "123"
        assert remaining == "Jane Doe"

    def test_no_id(self):
        assert NameParser().extract_client_id("Jane Doe") == ("Jane Doe", None)


@pytest.mark.unit
class TestParseFolderName:
    """Tests for the full parse pipeline."""

    def test_comma_label(self):
        parsed = parse_folder_name("Smith, John")
        assert parsed == ParsedName(first="John", last="Smith", full="John Smith")

    def test_dash_label_with_suffix(self):
        parsed = parse_folder_name("J. Smyth - misc docs")
        assert parsed.first == "J."
        assert parsed.last == "Smyth"
        assert parsed.full == "J. Smyth"
        assert not parsed.has_id

    def test_plain_label(self):
        parsed = parse_folder_name("Jane Doe")
        assert (parsed.first, parsed.last, parsed.full) == ("Jane", "Doe", "Jane Doe")

    def test_single_token_is_first_and_full(self):
        parsed = parse_folder_name("Madonna")
        assert parsed.first == "Madonna"
        assert parsed.last == ""
        assert parsed.full == "Madonna"

    def test_embedded_id_label(self):
        parsed = parse_folder_name("ClientID: 4521 - Random Label")
        assert parsed.has_id
        assert parsed.id == "4521"
        assert parsed.last == "Random Label"

    def test_id_with_comma_name(self):
        parsed = parse_folder_name("Smith, John ClientID: 1001")
        assert parsed.id == "1001"
        assert parsed.full == "John Smith"

    def test_id_only_label(self):
        parsed = parse_folder_name("ClientID: 12")
        assert parsed == ParsedName(has_id=True, id="12")

    @pytest.mark.parametrize("label", ["", "   ", "Folder", "Member Files"])
    def test_empty_after_cleaning(self, label: str):
        parsed = parse_folder_name(label)
        assert parsed == ParsedName()

    def test_none_label_does_not_raise(self):
        assert parse_folder_name(None) == ParsedName()

    def test_comma_wins_over_dash(self):
        parsed = parse_folder_name("Smith, John - Intake")
        assert parsed.first == "John - Intake"
        assert parsed.last == "Smith"

    def test_custom_format_order(self):
        parser = NameParser(formats=[PlainFormat()])
        parsed = parser.parse("Smith, John")
        assert parsed.first == "Smith,"
        assert parsed.last == "John"

    def test_select_format_falls_back_to_plain(self):
        parser = NameParser(formats=[CommaFormat()])
        assert isinstance(parser.select_format("John Smith"), PlainFormat)
