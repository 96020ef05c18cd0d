"""
Value formatting utilities for contact fields.

Provides consistent display formatting for values pulled out of vCards
before they are written into note front matter.
"""

from __future__ import annotations

import html
import re

# North American numbers, optionally with the leading country code 1
NANP_PATTERN = re.compile(r"^(1|)?(\d{3})(\d{3})(\d{4})$")


def format_phone_number(value: str) -> str:
    """
    Format a phone number for display.

    Strips every non-digit character; ten-digit numbers, and eleven-digit
    numbers starting with 1, are rendered as ``(AAA) BBB-CCCC``, with a
    ``+1 `` prefix when the country code was present. Anything else is
    returned exactly as given.

    Args:
        value: Raw phone number from the vCard

    Returns:
        Formatted phone number, or the original value if it is not a
        North American number

    Example:
        >>> format_phone_number("14155552671")
        '+1 (415) 555-2671'
        >>> format_phone_number("5551234")
        '5551234'
    """
    cleaned = re.sub(r"\D", "", str(value))
    match = NANP_PATTERN.match(cleaned)
    if not match:
        return value

    country_code = "+1 " if match.group(1) else ""
    return f"{country_code}({match.group(2)}) {match.group(3)}-{match.group(4)}"


def decode_html_entities(value: str | None) -> str | None:
    """
    Decode HTML entities (``&amp;``, ``&#39;`` ...) in a display value.

    Returns None for None input so missing fields stay missing.
    """
    if value is None:
        return None
    return html.unescape(value)
