"""Tests for contact value formatting utilities."""

from icloud_contacts_sync.utils.normalization import (
    decode_html_entities,
    format_phone_number,
)


class TestFormatPhoneNumber:
    """Test North American phone number formatting."""

    def test_eleven_digits_with_country_code(self):
        """Leading 1 should become a +1 prefix."""
        assert format_phone_number("14155552671") == "+1 (415) 555-2671"

    def test_ten_digits(self):
        """Ten-digit numbers should be formatted without a prefix."""
        assert format_phone_number("4155552671") == "(415) 555-2671"

    def test_punctuation_is_stripped_before_matching(self):
        """Existing formatting should not prevent a match."""
        assert format_phone_number("+1 415-555-2671") == "+1 (415) 555-2671"
        assert format_phone_number("(415) 555.2671") == "(415) 555-2671"

    def test_short_number_unchanged(self):
        """Numbers of other lengths should be returned unchanged."""
        assert format_phone_number("5551234") == "5551234"

    def test_international_number_unchanged(self):
        """Non-NANP numbers should keep their original formatting."""
        assert format_phone_number("+44 20 7946 0958") == "+44 20 7946 0958"

    def test_eleven_digits_without_leading_one_unchanged(self):
        """Eleven digits not starting with 1 are not North American."""
        assert format_phone_number("24155552671") == "24155552671"


class TestDecodeHtmlEntities:
    """Test HTML entity decoding."""

    def test_named_entities(self):
        """Named entities should be decoded."""
        assert decode_html_entities("Smith &amp; Sons") == "Smith & Sons"

    def test_numeric_entities(self):
        """Numeric entities should be decoded."""
        assert decode_html_entities("O&#39;Brien") == "O'Brien"

    def test_plain_text_unchanged(self):
        """Text without entities should be unchanged."""
        assert decode_html_entities("Jane Doe") == "Jane Doe"

    def test_none_stays_none(self):
        """Missing values should stay missing."""
        assert decode_html_entities(None) is None
