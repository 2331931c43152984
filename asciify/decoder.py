"""
Byte-level decoders for asciify.

Two decoders share a cursor over one immutable buffer:

- The narrow decoder reads one printable unit: a low-bit ASCII byte, or
  (when enabled) one RFC 3629 UTF-8 character of 2 to 4 bytes.
- The wide run detector reads a whole big-endian double-byte run
  (printable byte followed by 0x00) ending in a 0x00 0x00 sentinel.

UTF-8 lead byte layout:
    110xxxxx 10xxxxxx
    1110xxxx 10xxxxxx 10xxxxxx
    11110xxx 10xxxxxx 10xxxxxx 10xxxxxx
"""

import unicodedata
from dataclasses import dataclass
from typing import Optional


CONTINUATION_MASK = 0b11000000
CONTINUATION_BITS = 0b10000000


@dataclass(frozen=True)
class DecodedUnit:
    """Outcome of one decode attempt at a cursor position."""
    text: Optional[str]
    cursor: int

    @property
    def accepted(self) -> bool:
        """Return True if a printable fragment was decoded."""
        return self.text is not None


def _accept(text: str, cursor: int) -> DecodedUnit:
    return DecodedUnit(text=text, cursor=cursor)


def _reject(cursor: int) -> DecodedUnit:
    return DecodedUnit(text=None, cursor=cursor)


def is_narrow(b: int) -> bool:
    """Return True for the accepted low-bit set: 0x20-0x7E, tab and line feed."""
    return 0x20 <= b <= 0x7E or b == 0x09 or b == 0x0A


def is_continuation(b: int) -> bool:
    """Return True for a UTF-8 continuation byte (10xxxxxx)."""
    return (b & CONTINUATION_MASK) == CONTINUATION_BITS


def continuation_count(lead: int) -> int:
    """
    Count the continuation bytes announced by a UTF-8 lead byte.

    Counts the 1 bits below the high bit, from bit 6 down to bit 3, stopping
    at the first 0. Returns 0 for a continuation byte and 4 for 0xF8 and up;
    callers treat anything outside 1..3 as invalid.
    """
    count = 0
    for bit in range(6, 2, -1):
        if (lead >> bit) & 1:
            count += 1
        else:
            break
    return count


def is_excluded_category(ch: str) -> bool:
    """Return True for control, format, private-use, unassigned and surrogate code points."""
    return unicodedata.category(ch).startswith("C")


def decode_narrow(buffer: bytes, cursor: int, allow_wide_unicode: bool) -> DecodedUnit:
    """
    Decode the next printable unit starting at *cursor*.

    Args:
        buffer: Bytes being scanned.
        cursor: Current position, 0 <= cursor <= len(buffer).
        allow_wide_unicode: Also accept multi-byte UTF-8 characters.

    Returns:
        Accepted unit holding one character, or a rejection. A rejected
        byte is always consumed; a rejected multi-byte sequence resumes one
        byte past its lead byte.
    """
    if cursor == len(buffer):
        return _reject(cursor)

    b = buffer[cursor]
    if is_narrow(b):
        return _accept(chr(b), cursor + 1)

    resume = cursor + 1
    if not allow_wide_unicode or b < 0x80:
        return _reject(resume)

    if is_continuation(b):
        return _reject(resume)

    following = continuation_count(b)
    if following < 1 or following > 3:
        return _reject(resume)

    end = resume + following
    if end > len(buffer):
        return _reject(resume)
    for index in range(resume, end):
        if not is_continuation(buffer[index]):
            return _reject(resume)

    try:
        ch = buffer[cursor:end].decode("utf-8")
    except UnicodeDecodeError:
        # Overlong forms, surrogates and values past U+10FFFF
        return _reject(resume)

    if is_excluded_category(ch):
        return _reject(resume)

    return _accept(ch, end)


def decode_wide_run(buffer: bytes, cursor: int, min_length: int) -> DecodedUnit:
    """
    Try to read a whole double-byte run starting at *cursor*.

    The run is a sequence of (printable byte, 0x00) pairs closed by a
    0x00 0x00 pair once at least two characters were collected. Trailing
    whitespace is trimmed before the length check.

    Args:
        buffer: Bytes being scanned.
        cursor: Position of the first candidate pair.
        min_length: Minimum trimmed length for the run to count.

    Returns:
        Accepted unit with the decoded run and a cursor positioned at the
        terminator pair (not past it), or a rejection at *cursor* that
        consumes nothing.
    """
    chars = []
    index = cursor
    size = len(buffer)

    while True:
        if index + 2 > size:
            return _reject(cursor)
        first, second = buffer[index], buffer[index + 1]
        if second == 0 and is_narrow(first):
            chars.append(chr(first))
            index += 2
            continue
        if len(chars) > 1 and first == 0 and second == 0:
            break
        return _reject(cursor)

    text = "".join(chars).rstrip()
    if len(text) < min_length:
        return _reject(cursor)
    return _accept(text, index)
