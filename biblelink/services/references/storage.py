# biblelink/services/references/storage.py
"""
JSON flat-file storage for translations and verses.

The whole database lives in one file:

    {BIBLELINK_DATA_PATH}/
    └── bible_data.json
        {
          "translations": [{id, name, abbreviation, language, category,
                            processingRules: [{regex, formatting, escape}]}],
          "verses": [{id, translation_id, book, chapter, verse, text}],
          "nextTranslationId": 1,
          "nextVerseId": 1
        }

BibleDatabase is both the verse store and the translation metadata provider
used by ReferenceService.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from biblelink.core import config

from .verse_formatter import ProcessingRule

logger = logging.getLogger(__name__)


# Canonical Protestant order, used to sort books for display
BOOK_ORDER = [
    "Genesis", "Exodus", "Leviticus", "Numbers", "Deuteronomy",
    "Joshua", "Judges", "Ruth", "1 Samuel", "2 Samuel",
    "1 Kings", "2 Kings", "1 Chronicles", "2 Chronicles",
    "Ezra", "Nehemiah", "Esther", "Job", "Psalms",
    "Proverbs", "Ecclesiastes", "Song of Solomon", "Isaiah",
    "Jeremiah", "Lamentations", "Ezekiel", "Daniel",
    "Hosea", "Joel", "Amos", "Obadiah", "Jonah",
    "Micah", "Nahum", "Habakkuk", "Zephaniah", "Haggai",
    "Zechariah", "Malachi", "Matthew", "Mark", "Luke",
    "John", "Acts", "Romans", "1 Corinthians", "2 Corinthians",
    "Galatians", "Ephesians", "Philippians", "Colossians",
    "1 Thessalonians", "2 Thessalonians", "1 Timothy", "2 Timothy",
    "Titus", "Philemon", "Hebrews", "James", "1 Peter",
    "2 Peter", "1 John", "2 John", "3 John", "Jude",
    "Revelation",
]
_BOOK_INDEX = {name: i for i, name in enumerate(BOOK_ORDER)}


class StorageError(Exception):
    """Base exception for verse storage errors."""
    pass


class TranslationExistsError(StorageError):
    """A translation with this abbreviation already exists."""
    pass


class TranslationNotFoundError(StorageError):
    """No translation with this id or abbreviation."""
    pass


@dataclass
class Translation:
    """A Bible translation and its processing rules."""
    id: int
    name: str
    abbreviation: str
    language: str = "English"
    category: str = "Standard"
    processing_rules: List[ProcessingRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Translation":
        return cls(
            id=data["id"],
            name=data["name"],
            abbreviation=data["abbreviation"],
            language=data.get("language", "English"),
            category=data.get("category", "Standard"),
            processing_rules=[
                ProcessingRule.from_dict(r) for r in data.get("processingRules") or []
            ],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "language": self.language,
            "category": self.category,
            "processingRules": [r.to_dict() for r in self.processing_rules],
        }


@dataclass
class Verse:
    """One stored verse."""
    id: int
    translation_id: int
    book: str
    chapter: int
    verse: int
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> "Verse":
        return cls(
            id=data["id"],
            translation_id=data["translation_id"],
            book=data["book"],
            chapter=int(data["chapter"]),
            verse=int(data["verse"]),
            text=data["text"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "translation_id": self.translation_id,
            "book": self.book,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text,
        }


class BibleDatabase:
    """
    Verse store backed by a single JSON file.

    Usage:
        db = BibleDatabase("/path/to/data")
        tid = db.add_translation("King James Version", "KJV")
        db.add_verse(tid, "John", 3, 16, "For God so loved the world...")
        verse = db.get_verse("John", 3, 16, "KJV")
    """

    def __init__(self, data_path: Optional[str] = None):
        self.base_path = Path(data_path or config.DATA_PATH)
        self.translations: List[Translation] = []
        self.verses: List[Verse] = []
        self.next_translation_id = 1
        self.next_verse_id = 1
        self._index = {}
        self._load()

    @property
    def data_file(self) -> Path:
        """Path to the JSON data file."""
        return self.base_path / config.DATA_FILE_NAME

    def data_file_exists(self) -> bool:
        return self.data_file.exists()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self):
        """Load the data file, or start empty if it does not exist."""
        if not self.data_file.exists():
            logger.info(f"No Bible data file at {self.data_file}, starting fresh")
            return

        try:
            with open(self.data_file, encoding="utf-8") as f:
                data = json.load(f)
            self.translations = [Translation.from_dict(t) for t in data.get("translations", [])]
            self.verses = [Verse.from_dict(v) for v in data.get("verses", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StorageError(f"Failed to load Bible data from {self.data_file}: {e}") from e

        self.next_translation_id = data.get(
            "nextTranslationId",
            max((t.id for t in self.translations), default=0) + 1,
        )
        self.next_verse_id = data.get(
            "nextVerseId",
            max((v.id for v in self.verses), default=0) + 1,
        )
        self._rebuild_index()
        logger.info(
            f"Loaded {len(self.translations)} translations, "
            f"{len(self.verses)} verses from {self.data_file}"
        )

    def save(self):
        """Write the database to disk atomically."""
        self.base_path.mkdir(parents=True, exist_ok=True)
        data = {
            "translations": [t.to_dict() for t in self.translations],
            "verses": [v.to_dict() for v in self.verses],
            "nextTranslationId": self.next_translation_id,
            "nextVerseId": self.next_verse_id,
        }

        fd, tmp_path = tempfile.mkstemp(dir=self.base_path, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.data_file)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to save Bible data to {self.data_file}: {e}") from e

        logger.debug(
            f"Saved {len(self.translations)} translations, "
            f"{len(self.verses)} verses to {self.data_file}"
        )

    def close(self):
        """Save on shutdown, logging instead of raising."""
        try:
            self.save()
        except StorageError as e:
            logger.error(f"Error saving Bible data during close: {e}")

    def _rebuild_index(self):
        self._index = {
            (v.translation_id, v.book, v.chapter, v.verse): v for v in self.verses
        }

    # -------------------------------------------------------------------------
    # Translations
    # -------------------------------------------------------------------------

    def get_translations(self) -> List[Translation]:
        """Return all translations sorted by abbreviation."""
        return sorted(self.translations, key=lambda t: t.abbreviation.lower())

    def get_translation(self, abbreviation: str) -> Optional[Translation]:
        for t in self.translations:
            if t.abbreviation == abbreviation:
                return t
        return None

    def verify_translation_exists(self, abbreviation: str) -> bool:
        return self.get_translation(abbreviation) is not None

    def get_processing_rules(self, abbreviation: str) -> List[ProcessingRule]:
        """Return a translation's rules, or [] if it is unknown."""
        translation = self.get_translation(abbreviation)
        if translation is None:
            return []
        return list(translation.processing_rules)

    def add_translation(
        self,
        name: str,
        abbreviation: str,
        language: str = "English",
        category: str = "Standard",
        processing_rules: Iterable[ProcessingRule] = (),
    ) -> int:
        """
        Add a translation.

        Returns:
            The new translation id

        Raises:
            TranslationExistsError: If the abbreviation is already used
        """
        if self.verify_translation_exists(abbreviation):
            raise TranslationExistsError(
                f"Translation with abbreviation '{abbreviation}' already exists"
            )

        translation_id = self.next_translation_id
        self.next_translation_id += 1
        self.translations.append(Translation(
            id=translation_id,
            name=name,
            abbreviation=abbreviation,
            language=language,
            category=category,
            processing_rules=list(processing_rules),
        ))

        logger.info(f"Added translation: {name} ({abbreviation}) with ID {translation_id}")
        self.save()
        return translation_id

    def update_translation(
        self,
        translation_id: int,
        name: str,
        abbreviation: str,
        language: str,
        category: str,
        processing_rules: Iterable[ProcessingRule],
    ):
        """
        Replace a translation's metadata.

        Raises:
            TranslationNotFoundError: No translation with this id
            TranslationExistsError: The new abbreviation belongs to another translation
        """
        translation = next((t for t in self.translations if t.id == translation_id), None)
        if translation is None:
            raise TranslationNotFoundError(f"Translation {translation_id} not found")

        if translation.abbreviation != abbreviation and self.verify_translation_exists(abbreviation):
            raise TranslationExistsError("Translation abbreviation already exists")

        translation.name = name
        translation.abbreviation = abbreviation
        translation.language = language
        translation.category = category
        translation.processing_rules = list(processing_rules)
        self.save()

    def remove_translation(self, abbreviation: str) -> bool:
        """Remove a translation and all of its verses."""
        translation = self.get_translation(abbreviation)
        if translation is None:
            return False

        self.verses = [v for v in self.verses if v.translation_id != translation.id]
        self.translations.remove(translation)
        self._rebuild_index()
        self.save()
        logger.info(f"Removed translation {abbreviation}")
        return True

    # -------------------------------------------------------------------------
    # Verses
    # -------------------------------------------------------------------------

    def add_verse(
        self,
        translation_id: int,
        book: str,
        chapter: int,
        verse: int,
        text: str,
        save: bool = True,
    ):
        """Add one verse, saving immediately unless save is False."""
        entry = Verse(self.next_verse_id, translation_id, book, chapter, verse, text)
        self.next_verse_id += 1
        self.verses.append(entry)
        self._index[(translation_id, book, chapter, verse)] = entry
        if save:
            self.save()

    def add_verses_batch(self, verses: Iterable[dict]):
        """
        Add many verses with a single save.

        Args:
            verses: Dicts with translation_id, book, chapter, verse, text
        """
        count = 0
        for v in verses:
            self.add_verse(
                v["translation_id"], v["book"], v["chapter"], v["verse"], v["text"],
                save=False,
            )
            count += 1

        if count == 0:
            logger.info("No verses to add")
            return

        logger.info(f"Added {count} verses (total {len(self.verses)})")
        self.save()

    def get_verse(
        self, book: str, chapter: int, verse: int, abbreviation: str
    ) -> Optional[Verse]:
        """Look up one verse, or None if it is not stored."""
        translation = self.get_translation(abbreviation)
        if translation is None:
            return None
        return self._index.get((translation.id, book, chapter, verse))

    def get_books(self) -> List[str]:
        """Return stored book names, canonical books first in canonical order."""
        books = {v.book for v in self.verses}
        return sorted(
            books,
            key=lambda b: (0, _BOOK_INDEX[b], "") if b in _BOOK_INDEX else (1, 0, b),
        )

    def get_chapters_for_book(self, book: str, abbreviation: str) -> List[int]:
        translation = self.get_translation(abbreviation)
        if translation is None:
            return []
        return sorted({
            v.chapter for v in self.verses
            if v.translation_id == translation.id and v.book == book
        })

    def get_verses_for_chapter(self, book: str, chapter: int, abbreviation: str) -> List[int]:
        translation = self.get_translation(abbreviation)
        if translation is None:
            return []
        return sorted({
            v.verse for v in self.verses
            if v.translation_id == translation.id and v.book == book and v.chapter == chapter
        })

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_database_stats(self) -> dict:
        return {
            "translations": len(self.translations),
            "verses": len(self.verses),
        }

    def get_translation_stats(self, abbreviation: str) -> Optional[dict]:
        """Return name, verse count and books for a translation."""
        translation = self.get_translation(abbreviation)
        if translation is None:
            return None

        own = [v for v in self.verses if v.translation_id == translation.id]
        return {
            "name": translation.name,
            "verse_count": len(own),
            "books": sorted({v.book for v in own}),
        }
