# routes/references_api.py
"""
API endpoints for scripture reference parsing and lookup.

Provides access to:
- Reference parsing
- Passage lookup with processing rules applied
- Translation and book listings
"""

from flask import Blueprint, current_app, request, jsonify

from biblelink.core import config
from biblelink.services.references import (
    BibleDatabase,
    ReferenceParseError,
    ReferenceService,
    StorageError,
    VerseNotFoundError,
    parse_reference,
)
from biblelink.utils.errors import (
    invalid_field,
    missing_field,
    not_found,
    reference_error,
    server_error,
)

references_bp = Blueprint("references_api", __name__, url_prefix="/api/references")


@references_bp.errorhandler(StorageError)
def storage_failed(e):
    """Unreadable or unwritable data file."""
    return server_error("storage_error", str(e))


def get_service() -> ReferenceService:
    """Get or create the app's ReferenceService instance."""
    service = current_app.extensions.get("biblelink_service")
    if service is None:
        db = BibleDatabase(current_app.config.get("BIBLELINK_DATA_PATH"))
        service = ReferenceService(db)
        current_app.extensions["biblelink_service"] = service
    return service


# =============================================================================
# Parsing
# =============================================================================

@references_bp.get("/parse")
def parse():
    """
    Parse a reference without looking it up.

    Query params:
        ref: Reference string (required) e.g., "John 3:16-18"

    Returns:
        {"book": "John", "start_chapter": 3, "start_verse": 16, ...}
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    try:
        return jsonify(parse_reference(ref).to_dict())
    except ReferenceParseError as e:
        return reference_error(e)


# =============================================================================
# Lookup
# =============================================================================

@references_bp.get("/lookup")
def lookup():
    """
    Look up a passage and render it.

    Query params:
        ref: Reference string (required) e.g., "Psalms 23"
        translation: Translation abbreviation (optional)
        output: "text", "link" or "codeblock" (optional)
        options: Comma-separated code block options (optional)

    Returns:
        {"passage": {...}, "rendered": "..."}
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    output = request.args.get("output")
    if output and output not in config.OUTPUT_TYPES:
        return invalid_field("output", f"Must be one of: {', '.join(config.OUTPUT_TYPES)}")

    options = request.args.get("options")
    options = [o.strip() for o in options.split(",") if o.strip()] if options else []

    service = get_service()
    try:
        passage = service.lookup(ref, request.args.get("translation"))
    except ReferenceParseError as e:
        return reference_error(e)
    except VerseNotFoundError as e:
        return not_found("verse", str(e))

    return jsonify({
        "passage": passage.to_dict(),
        "rendered": service.render(passage, output, options),
    })


# =============================================================================
# Translations
# =============================================================================

@references_bp.get("/translations")
def list_translations():
    """List translations with verse counts."""
    db = get_service().db
    translations = []
    for t in db.get_translations():
        stats = db.get_translation_stats(t.abbreviation) or {}
        translations.append({
            "id": t.id,
            "name": t.name,
            "abbreviation": t.abbreviation,
            "language": t.language,
            "category": t.category,
            "verse_count": stats.get("verse_count", 0),
        })
    return jsonify({"translations": translations, "count": len(translations)})


@references_bp.get("/translations/<abbr>/rules")
def translation_rules(abbr):
    """Get a translation's processing rules."""
    db = get_service().db
    translation = db.get_translation(abbr)
    if translation is None:
        return not_found("translation")

    return jsonify({
        "translation": abbr,
        "rules": [r.to_dict() for r in translation.processing_rules],
    })


@references_bp.get("/books")
def list_books():
    """List stored books in canonical order."""
    return jsonify({"books": get_service().db.get_books()})
