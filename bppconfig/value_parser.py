#!/usr/bin/env python
"""
Value Parser Module - Tokenizes control file lines and validates field values

This module splits 'key = value' lines and provides typed validators that
consume a prefix of a value string. Every validator returns a tuple
(consumed, value) where a consumed length of 0 signals that nothing matched.
"""

import re

WHITESPACE = " \t\r\n"
COMMENT_MARKERS = "*#"
TOKEN_DELIMITERS = WHITESPACE + COMMENT_MARKERS

# Status values returned by get_e()
FLAG_ABSENT = 0
FLAG_PRESENT = 1
FLAG_INVALID = 2

INTEGER_PATTERN = re.compile(r"[+-]?\d+")
FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE
)

# C-style hexadecimal floats such as 0x1p-3
HEX_FLOAT_PATTERN = re.compile(
    r"[+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?\d+)?",
    re.IGNORECASE
)


class MissingAssignmentError(ValueError):
    """Raised when a non-blank line does not contain a '=' character."""


def skip_whitespace(text, pos=0):
    """Return the index of the first non-whitespace character at or after pos."""
    while pos < len(text) and text[pos] in WHITESPACE:
        pos += 1
    return pos


def is_emptyline(text):
    """
    Check whether a line (or the remainder of one) is blank or a comment.

    Args:
        text (str): Text to check.

    Returns:
        bool: True if only whitespace remains, or the first non-whitespace
              character is a comment marker.
    """
    pos = skip_whitespace(text)
    return pos == len(text) or text[pos] in COMMENT_MARKERS


def get_token(line):
    """
    Split a control file line of the form 'key = value'.

    Args:
        line (str): One line of the control file.

    Returns:
        tuple: (key, value) with trailing whitespace removed from the key,
               or None if the line is blank or a comment.

    Raises:
        MissingAssignmentError: If the line holds text but no '='.
    """
    start = skip_whitespace(line)
    if start == len(line) or line[start] in COMMENT_MARKERS:
        return None

    eq = line.find('=', start)
    if eq < 0:
        raise MissingAssignmentError("Line does not contain a '=' character")

    key = line[start:eq].rstrip(WHITESPACE)
    return key, line[eq + 1:]


def _bounded_token(text):
    """Locate the token at the start of text; returns (start, end) or None if blank."""
    start = skip_whitespace(text)
    if start == len(text) or text[start] in COMMENT_MARKERS:
        return None

    end = start
    while end < len(text) and text[end] not in TOKEN_DELIMITERS:
        end += 1

    return start, end


def get_long(text):
    """
    Read an integer token.

    Returns:
        tuple: (consumed, value); (0, None) if absent or not an integer.
    """
    bounds = _bounded_token(text)
    if bounds is None:
        return 0, None

    start, end = bounds
    token = text[start:end]
    if not INTEGER_PATTERN.fullmatch(token):
        return 0, None

    return end, int(token)


def get_double(text):
    """
    Read a floating point token.

    Decimal, inf/nan and hexadecimal (0x1p-3) spellings are accepted.

    Returns:
        tuple: (consumed, value); (0, None) if absent or not a number.
    """
    bounds = _bounded_token(text)
    if bounds is None:
        return 0, None

    start, end = bounds
    token = text[start:end]
    if HEX_FLOAT_PATTERN.fullmatch(token):
        return end, float.fromhex(token)
    if not FLOAT_PATTERN.fullmatch(token):
        return 0, None

    return end, float(token)


def get_string(text):
    """
    Read a free-form string up to the first comment marker.

    Leading and trailing whitespace is dropped, inner whitespace is kept.

    Returns:
        tuple: (consumed, value); (0, None) if the text is blank.
    """
    start = skip_whitespace(text)
    if start == len(text) or text[start] in COMMENT_MARKERS:
        return 0, None

    end = start
    while end < len(text) and text[end] not in COMMENT_MARKERS:
        end += 1

    value = text[start:end].rstrip(WHITESPACE)
    return start + len(value), value


def get_e(text):
    """
    Read the single-letter 'E' flag used by prior specifications.

    Returns:
        tuple: (consumed, status) where status is FLAG_ABSENT if nothing is
               left, FLAG_PRESENT for a lone 'E' or 'e' and FLAG_INVALID for
               any other token.
    """
    bounds = _bounded_token(text)
    if bounds is None:
        return 0, FLAG_ABSENT

    start, end = bounds
    if text[start:end] not in ('E', 'e'):
        return 0, FLAG_INVALID

    return end, FLAG_PRESENT


class ValueCursor:
    """Walks through the value part of one line, field by field."""

    def __init__(self, text):
        self.text = text
        self.pos = 0

    @property
    def remainder(self):
        return self.text[self.pos:]

    def _advance(self, result):
        consumed, value = result
        if not consumed:
            return None
        self.pos += consumed
        return value

    def read_long(self):
        """Read an integer, returning None (without moving) on failure."""
        return self._advance(get_long(self.remainder))

    def read_double(self):
        """Read a float, returning None (without moving) on failure."""
        return self._advance(get_double(self.remainder))

    def read_string(self):
        """Read the rest of the value up to a comment marker."""
        return self._advance(get_string(self.remainder))

    def read_flag(self):
        """Read an optional 'E' flag; always returns one of the FLAG_* values."""
        consumed, status = get_e(self.remainder)
        self.pos += consumed
        return status

    def read_char(self, allowed):
        """
        Skip whitespace and consume one character if it is in allowed.

        Returns:
            str: The consumed character, or None if the next character is not allowed.
        """
        pos = skip_whitespace(self.text, self.pos)
        if pos == len(self.text) or self.text[pos] not in allowed:
            return None
        self.pos = pos + 1
        return self.text[pos]

    def at_end(self):
        """True if only whitespace or a comment remains."""
        return is_emptyline(self.remainder)
