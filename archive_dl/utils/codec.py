"""
Percent-encoding helpers for building download URLs and turning remote names
back into local file names.
"""

from urllib.parse import quote, unquote_plus


def encode(text: str) -> str:
    """
    Percent-encodes a string for use as a single URL path segment.

    Only the RFC 3986 unreserved characters (letters, digits, '-', '.', '_', '~')
    are left as they are. Everything else, including '/', space, ',' and
    parentheses, is escaped as UTF-8 bytes.
    """
    return quote(text, safe="")


def decode(text: str) -> str:
    """
    Reverses percent-encoding. A literal '+' is read as a space first, following
    the form-encoding convention. Malformed escapes are left in place and invalid
    UTF-8 sequences are replaced rather than raising.
    """
    return unquote_plus(text, errors="replace")
