# biblelink/services/references/__init__.py
"""
Scripture reference services for BibleLink.

This package provides:
- ScriptureRange / parse_reference: Parse typed references into ranges
- ProcessingRule / format_verse: Apply a translation's regex rules to verse text
- BibleDatabase: JSON flat-file verse store and translation metadata
- ReferenceService: Lookup, formatting and output assembly
- get_preset_rules: Processing rule presets from YAML config
"""

from .reference_parser import (
    ScriptureRange,
    ReferenceParseError,
    InvalidFormatError,
    CrossBookUnsupportedError,
    InvalidRangeError,
    parse_reference,
    try_parse_reference,
    is_valid_reference,
)
from .verse_formatter import (
    ProcessingRule,
    FormattedVerse,
    InvalidPatternWarning,
    format_verse,
    apply_processing_rules,
    expand_template,
    escape_html,
)
from .storage import (
    BibleDatabase,
    Translation,
    Verse,
    StorageError,
    TranslationExistsError,
    TranslationNotFoundError,
    BOOK_ORDER,
)
from .reference_service import (
    ReferenceService,
    Passage,
    PassageVerse,
    VerseNotFoundError,
    bible_gateway_url,
)
from .rules_loader import get_preset_rules

__all__ = [
    # Parsing
    "ScriptureRange",
    "ReferenceParseError",
    "InvalidFormatError",
    "CrossBookUnsupportedError",
    "InvalidRangeError",
    "parse_reference",
    "try_parse_reference",
    "is_valid_reference",
    # Formatting
    "ProcessingRule",
    "FormattedVerse",
    "InvalidPatternWarning",
    "format_verse",
    "apply_processing_rules",
    "expand_template",
    "escape_html",
    # Storage
    "BibleDatabase",
    "Translation",
    "Verse",
    "StorageError",
    "TranslationExistsError",
    "TranslationNotFoundError",
    "BOOK_ORDER",
    # Service
    "ReferenceService",
    "Passage",
    "PassageVerse",
    "VerseNotFoundError",
    "bible_gateway_url",
    # Presets
    "get_preset_rules",
]
