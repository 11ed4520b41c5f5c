# biblelink/services/references/reference_parser.py
"""
Scripture reference parser.

Turns a typed reference into a ScriptureRange:
- Whole chapter: "Psalms 23"
- Single verse: "John 3:16"
- Verse range: "John 3:16-18"
- Cross-chapter range: "1 Corinthians 1:2-1 Corinthians 3:4" or "John 5:2-6:10"

Book names are kept exactly as typed (after trimming). Checking them against
a canon is left to the verse store.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# The book must end in a character that is neither a digit nor whitespace,
# so "John 3 16" is rejected instead of becoming book "John 3".
_BOOK = r"(?P<book>.*?[^\d\s])"
_DASH = r"\s*[-–—]\s*"

# "<Book> <C>", "<Book> <C>:<V>", "<Book> <C>:<V>-<V>"
SIMPLE_PATTERN = re.compile(
    rf"^{_BOOK}\s+(?P<chapter>\d+)"
    rf"(?::(?P<verse>\d+)(?:{_DASH}(?P<end_verse>\d+))?)?$"
)

# "<Book> <C>:<V>-<Book> <C>:<V>" and "<Book> <C>:<V>-<C>:<V>"
CROSS_PATTERN = re.compile(
    rf"^{_BOOK}\s+(?P<chapter>\d+):(?P<verse>\d+){_DASH}"
    r"(?:(?P<end_book>.*?[^\d\s])\s+)?"
    r"(?P<end_chapter>\d+):(?P<end_verse>\d+)$"
)


class ReferenceParseError(ValueError):
    """Raised when a reference cannot be parsed."""

    code = "invalid_reference"


class InvalidFormatError(ReferenceParseError):
    """The reference does not match any supported shape."""

    code = "invalid_format"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Invalid reference format: {reference!r}")


class CrossBookUnsupportedError(ReferenceParseError):
    """A cross-chapter range names two different books."""

    code = "cross_book_unsupported"

    def __init__(self, start_book: str, end_book: str):
        self.start_book = start_book
        self.end_book = end_book
        super().__init__(
            f"Cross-book references are not supported: "
            f"{start_book!r} to {end_book!r}"
        )


class InvalidRangeError(ReferenceParseError):
    """The end of a range comes before its start."""

    code = "invalid_range"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Range end {end} precedes start {start}")


@dataclass(frozen=True)
class ScriptureRange:
    """
    A parsed scripture reference.

    Attributes:
        book: Book name as typed (e.g., "1 Corinthians")
        start_chapter: First chapter
        start_verse: First verse, None for a whole chapter
        end_chapter: Last chapter, None when the range stays in start_chapter
        end_verse: Last verse, None for a whole chapter
    """
    book: str
    start_chapter: int
    start_verse: Optional[int] = None
    end_chapter: Optional[int] = None
    end_verse: Optional[int] = None

    @property
    def is_chapter(self) -> bool:
        return self.start_verse is None

    @property
    def is_cross_chapter(self) -> bool:
        return self.end_chapter is not None

    @property
    def last_chapter(self) -> int:
        return self.end_chapter if self.end_chapter is not None else self.start_chapter

    @property
    def normalized(self) -> str:
        """Return normalized reference string."""
        if self.is_chapter:
            return f"{self.book} {self.start_chapter}"
        start = f"{self.book} {self.start_chapter}:{self.start_verse}"
        if self.is_cross_chapter:
            return f"{start}-{self.end_chapter}:{self.end_verse}"
        if self.end_verse is not None and self.end_verse != self.start_verse:
            return f"{start}-{self.end_verse}"
        return start

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "book": self.book,
            "start_chapter": self.start_chapter,
            "start_verse": self.start_verse,
            "end_chapter": self.end_chapter,
            "end_verse": self.end_verse,
            "normalized": self.normalized,
        }


def _parse_cross(match: re.Match) -> ScriptureRange:
    book = match.group("book").strip()
    end_book = match.group("end_book")
    if end_book is not None and end_book.strip() != book:
        raise CrossBookUnsupportedError(book, end_book.strip())

    chapter = int(match.group("chapter"))
    verse = int(match.group("verse"))
    end_chapter = int(match.group("end_chapter"))
    end_verse = int(match.group("end_verse"))

    if end_chapter < chapter:
        raise InvalidRangeError(f"{chapter}:{verse}", f"{end_chapter}:{end_verse}")
    if end_chapter == chapter:
        if end_verse < verse:
            raise InvalidRangeError(f"{chapter}:{verse}", f"{end_chapter}:{end_verse}")
        # Same chapter on both sides is an ordinary verse range
        return ScriptureRange(book, chapter, verse, None, end_verse)

    return ScriptureRange(book, chapter, verse, end_chapter, end_verse)


def _parse_simple(match: re.Match) -> ScriptureRange:
    book = match.group("book").strip()
    chapter = int(match.group("chapter"))

    if match.group("verse") is None:
        return ScriptureRange(book, chapter)

    verse = int(match.group("verse"))
    end_verse = match.group("end_verse")
    end_verse = int(end_verse) if end_verse is not None else verse
    if end_verse < verse:
        raise InvalidRangeError(str(verse), str(end_verse))

    return ScriptureRange(book, chapter, verse, None, end_verse)


def parse_reference(ref_string: str) -> ScriptureRange:
    """
    Parse a scripture reference string.

    Args:
        ref_string: The reference string to parse

    Returns:
        ScriptureRange for the reference

    Raises:
        InvalidFormatError: No supported shape matches
        CrossBookUnsupportedError: A cross-chapter range spans two books
        InvalidRangeError: An end bound precedes its start bound
    """
    if ref_string is None:
        raise InvalidFormatError("")

    ref = ref_string.strip()

    match = CROSS_PATTERN.match(ref)
    if match:
        return _parse_cross(match)

    match = SIMPLE_PATTERN.match(ref)
    if match:
        return _parse_simple(match)

    raise InvalidFormatError(ref)


def try_parse_reference(ref_string: str) -> Optional[ScriptureRange]:
    """Parse a reference, returning None instead of raising."""
    try:
        return parse_reference(ref_string)
    except ReferenceParseError as e:
        logger.debug(f"Rejected reference {ref_string!r}: {e}")
        return None


def is_valid_reference(ref_string: str) -> bool:
    """
    Check if a string is a valid scripture reference.

    Args:
        ref_string: String to check

    Returns:
        True if valid reference, False otherwise
    """
    return try_parse_reference(ref_string) is not None
