#!/usr/bin/env python3
"""
Manage stored translations and look up references from the command line.

Usage:
    python -m biblelink.scripts.manage_translations --list
    python -m biblelink.scripts.manage_translations --status
    python -m biblelink.scripts.manage_translations --lookup "John 3:16-18" --translation KJV
    python -m biblelink.scripts.manage_translations --add KJV --name "King James Version"
    python -m biblelink.scripts.manage_translations --remove KJV

Examples:
    # Render a passage as a Bible Gateway link
    python -m biblelink.scripts.manage_translations --lookup "Psalms 23" --output link

    # Use a different data directory
    python -m biblelink.scripts.manage_translations --data-path ./data --list
"""

import argparse
import logging
import sys

from biblelink.core import config
from biblelink.services.references import (
    BibleDatabase,
    ReferenceParseError,
    ReferenceService,
    StorageError,
    VerseNotFoundError,
    get_preset_rules,
)


def print_translations(db: BibleDatabase):
    """Print stored translations with verse counts."""
    translations = db.get_translations()
    if not translations:
        print("No translations stored.")
        return

    print("Stored translations:")
    print("-" * 60)
    for t in translations:
        stats = db.get_translation_stats(t.abbreviation)
        print(f"  {t.abbreviation:10} {t.name}")
        print(f"      Language: {t.language}, Category: {t.category}, "
              f"Verses: {stats['verse_count']}, Rules: {len(t.processing_rules)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage BibleLink translations and look up references",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m biblelink.scripts.manage_translations --list
  python -m biblelink.scripts.manage_translations --lookup "John 3:16"
  python -m biblelink.scripts.manage_translations --add WEB --name "World English Bible"
        """
    )
    parser.add_argument(
        "--data-path",
        default=None,
        help=f"Directory holding {config.DATA_FILE_NAME} (default: {config.DATA_PATH})"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored translations and exit"
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show database statistics"
    )
    parser.add_argument(
        "--lookup",
        metavar="REF",
        help="Look up a reference (e.g., \"John 3:16-18\")"
    )
    parser.add_argument(
        "--translation",
        default=None,
        help=f"Translation for --lookup (default: {config.DEFAULT_TRANSLATION})"
    )
    parser.add_argument(
        "--output",
        choices=config.OUTPUT_TYPES,
        default=None,
        help=f"Output type for --lookup (default: {config.OUTPUT_TYPE})"
    )
    parser.add_argument(
        "--options",
        nargs="+",
        default=[],
        metavar="OPTION",
        help="Code block options (e.g., verse chapter red-text link)"
    )
    parser.add_argument(
        "--add",
        metavar="ABBR",
        help="Add an empty translation, seeded with preset processing rules"
    )
    parser.add_argument("--name", help="Name for --add")
    parser.add_argument("--language", default="English", help="Language for --add")
    parser.add_argument("--category", default="Standard", help="Category for --add")
    parser.add_argument(
        "--remove",
        nargs="+",
        metavar="ABBR",
        help="Remove translations and their verses"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        db = BibleDatabase(args.data_path)
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Handle --list
    if args.list:
        print_translations(db)
        return 0

    # Handle --status
    if args.status:
        stats = db.get_database_stats()
        print(f"Data file: {db.data_file}")
        print(f"Translations: {stats['translations']}")
        print(f"Verses: {stats['verses']}")
        print(f"Books: {', '.join(db.get_books()) or '-'}")
        return 0

    # Handle --lookup
    if args.lookup:
        service = ReferenceService(db)
        try:
            print(service.insert(args.lookup, args.translation, args.output, args.options))
        except (ReferenceParseError, VerseNotFoundError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    # Handle --add
    if args.add:
        if not args.name:
            print("Error: --add requires --name", file=sys.stderr)
            return 1
        rules = get_preset_rules(args.add)
        try:
            translation_id = db.add_translation(
                args.name, args.add, args.language, args.category, rules
            )
        except StorageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Added {args.add} (id {translation_id}) with {len(rules)} processing rules")
        return 0

    # Handle --remove
    if args.remove:
        failed = 0
        print("Removing translations:")
        for abbr in args.remove:
            print(f"  {abbr}: ", end="", flush=True)
            if db.remove_translation(abbr):
                print("removed")
            else:
                print("not found")
                failed += 1
        return 1 if failed else 0

    build_parser().print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
