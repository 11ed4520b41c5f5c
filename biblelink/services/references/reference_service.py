# biblelink/services/references/reference_service.py
"""
Reference lookup and output assembly.

Parses a reference, walks the resulting range against the verse store,
runs each verse through its translation's processing rules and assembles
the text that gets inserted into a note: plain text, a Bible Gateway link,
or a fenced code block.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import quote

from biblelink.core import config

from .reference_parser import ScriptureRange, parse_reference
from .storage import BibleDatabase
from .verse_formatter import InvalidPatternWarning, format_verse

logger = logging.getLogger(__name__)


# Translation abbreviations whose Bible Gateway code differs
BIBLE_GATEWAY_VERSIONS = {
    "KJV": "KJV",
    "ASV": "ASV",
    "WEB": "WEB",
    "YLT": "YLT",
    "BBE": "BBE",
    "BSB": "BSB",
    "CPDV": "CPDV",
    "SpaRV": "RVR1909",
    "Vulgate": "VULGATE",
    "Byz": "BYZ",
    "WLC": "WLC",
}

# Characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


class VerseNotFoundError(LookupError):
    """None of the verses in a range are stored for the translation."""

    def __init__(self, reference: str, translation: str):
        self.reference = reference
        self.translation = translation
        super().__init__(f"Invalid reference: {reference} in {translation}")


@dataclass
class PassageVerse:
    chapter: int
    verse: int
    text: str


@dataclass
class Passage:
    """
    Formatted verses for one reference in one translation.

    Attributes:
        range: Parsed reference
        translation: Translation abbreviation
        verses: Verses in order, text already processed
        warnings: Rules skipped while formatting
    """
    range: ScriptureRange
    translation: str
    verses: List[PassageVerse] = field(default_factory=list)
    warnings: List[InvalidPatternWarning] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return self.range.normalized

    @property
    def text(self) -> str:
        return " ".join(v.text for v in self.verses)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ref": self.reference,
            "range": self.range.to_dict(),
            "translation": self.translation,
            "verses": [
                {"chapter": v.chapter, "verse": v.verse, "text": v.text}
                for v in self.verses
            ],
            "warnings": [
                {"pattern": w.pattern, "reason": w.reason} for w in self.warnings
            ],
        }


def bible_gateway_url(reference: str, translation: str) -> str:
    """Build a Bible Gateway passage URL for a reference."""
    version = BIBLE_GATEWAY_VERSIONS.get(translation, translation)
    return (
        f"{config.BIBLE_GATEWAY_URL}?search={quote(reference, safe=_URI_SAFE)}"
        f"&version={version}"
    )


class ReferenceService:
    """
    Scripture lookup over a BibleDatabase.

    Usage:
        service = ReferenceService(BibleDatabase())

        passage = service.lookup("John 3:16-18", "KJV")
        print(service.render(passage, "text"))

        # Lookup and render with configured defaults
        text = service.insert("Psalms 23")
    """

    def __init__(
        self,
        db: BibleDatabase,
        default_translation: Optional[str] = None,
        output_type: Optional[str] = None,
        code_block_language: Optional[str] = None,
    ):
        self.db = db
        self.default_translation = default_translation or config.DEFAULT_TRANSLATION
        self.output_type = output_type or config.OUTPUT_TYPE
        self.code_block_language = code_block_language or config.CODE_BLOCK_LANGUAGE

    def _chapter_verses(self, book: str, chapter: int, translation: str,
                        start: int = 1, end: Optional[int] = None) -> List[int]:
        return [
            v for v in self.db.get_verses_for_chapter(book, chapter, translation)
            if v >= start and (end is None or v <= end)
        ]

    def collect_verses(self, rng: ScriptureRange, translation: str) -> List[PassageVerse]:
        """
        Fetch raw verse text for every stored verse in a range.

        Verses missing from the store are skipped.
        """
        if rng.is_chapter:
            numbers = [
                (rng.start_chapter, v)
                for v in self.db.get_verses_for_chapter(rng.book, rng.start_chapter, translation)
            ]
        elif not rng.is_cross_chapter:
            numbers = [
                (rng.start_chapter, v)
                for v in self._chapter_verses(
                    rng.book, rng.start_chapter, translation, rng.start_verse, rng.end_verse
                )
            ]
        else:
            # Only stored chapters, so a huge typed end chapter costs nothing
            chapters = [
                c for c in self.db.get_chapters_for_book(rng.book, translation)
                if rng.start_chapter <= c <= rng.end_chapter
            ]
            numbers = []
            for chapter in chapters:
                start = rng.start_verse if chapter == rng.start_chapter else 1
                end = rng.end_verse if chapter == rng.end_chapter else None
                numbers.extend(
                    (chapter, v)
                    for v in self._chapter_verses(rng.book, chapter, translation, start, end)
                )

        verses = []
        for chapter, number in numbers:
            found = self.db.get_verse(rng.book, chapter, number, translation)
            if found:
                verses.append(PassageVerse(chapter, number, found.text))
        return verses

    def lookup(self, ref: str, translation: Optional[str] = None) -> Passage:
        """
        Look up and format a passage.

        Args:
            ref: Scripture reference (e.g., "John 3:16", "Psalms 23")
            translation: Translation abbreviation, defaults to the configured one

        Returns:
            Passage with processed verse text

        Raises:
            ReferenceParseError: If the reference cannot be parsed
            VerseNotFoundError: If no verse in the range is stored
        """
        translation = translation or self.default_translation
        rng = parse_reference(ref)

        raw = self.collect_verses(rng, translation)
        if not raw:
            raise VerseNotFoundError(rng.normalized, translation)

        rules = self.db.get_processing_rules(translation)
        passage = Passage(range=rng, translation=translation)
        for verse in raw:
            formatted = format_verse(verse.text, rules, translation)
            passage.verses.append(PassageVerse(verse.chapter, verse.verse, formatted.text))
            passage.warnings.extend(formatted.warnings)

        if passage.warnings:
            logger.debug(f"{len(passage.warnings)} rule warnings for {ref} ({translation})")
        return passage

    def render(
        self,
        passage: Passage,
        output_type: Optional[str] = None,
        options: Iterable[str] = (),
    ) -> str:
        """
        Assemble insertable text for a passage.

        Args:
            passage: Passage from lookup()
            output_type: "text", "link" or "codeblock"
            options: Code block options (e.g., "verse", "red-text")

        Returns:
            Text ready to insert into a note
        """
        output_type = output_type or self.output_type
        reference = passage.reference
        translation = passage.translation

        if output_type == "text":
            if len(passage.verses) > 1:
                body = " ".join(f"{v.verse} {v.text}" for v in passage.verses)
            else:
                body = passage.text
            return f"{reference} ({translation}): {body}"

        if output_type == "link":
            url = bible_gateway_url(reference, translation)
            return f"[{reference} ({translation})]({url})"

        if output_type == "codeblock":
            options = list(options)
            options_str = f" [{'|'.join(options)}]" if options else ""
            return (
                f"```{self.code_block_language}\n"
                f"{translation} {reference}{options_str}\n"
                f"{passage.text}\n"
                f"```"
            )

        raise ValueError(f"Unknown output type: {output_type}")

    def insert(
        self,
        ref: str,
        translation: Optional[str] = None,
        output_type: Optional[str] = None,
        options: Iterable[str] = (),
    ) -> str:
        """Look up a reference and render it in one step."""
        passage = self.lookup(ref, translation)
        return self.render(passage, output_type, options)
