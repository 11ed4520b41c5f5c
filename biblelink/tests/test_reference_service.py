"""
Tests for reference_service.py - range walking, formatting and output assembly.
"""

import tempfile
import time

from biblelink.services.references import (
    BibleDatabase,
    CrossBookUnsupportedError,
    InvalidFormatError,
    ProcessingRule,
    ReferenceService,
    VerseNotFoundError,
    bible_gateway_url,
    parse_reference,
)


def seed(db: BibleDatabase):
    """Two chapters of John in KJV (with a rule) and one verse in ASV."""
    kjv = db.add_translation(
        "King James Version", "KJV",
        processing_rules=[ProcessingRule(r"\[([^\]]+)\]", "<em>$1</em>", True)],
    )
    asv = db.add_translation("American Standard Version", "ASV")
    verses = []
    for verse in range(1, 6):
        verses.append({"translation_id": kjv, "book": "John", "chapter": 1,
                       "verse": verse, "text": f"J1.{verse}"})
    for verse in range(1, 4):
        verses.append({"translation_id": kjv, "book": "John", "chapter": 2,
                       "verse": verse, "text": f"J2.{verse}"})
    for verse in range(1, 3):
        verses.append({"translation_id": kjv, "book": "John", "chapter": 3,
                       "verse": verse, "text": f"J3.{verse}"})
    verses.append({"translation_id": kjv, "book": "John", "chapter": 3, "verse": 16,
                   "text": "For God so loved the [<world>]"})
    verses.append({"translation_id": asv, "book": "John", "chapter": 3, "verse": 16,
                   "text": "For God so loved the world"})
    db.add_verses_batch(verses)


def make_service(tmpdir) -> ReferenceService:
    db = BibleDatabase(tmpdir)
    seed(db)
    return ReferenceService(db, default_translation="KJV", output_type="text",
                            code_block_language="bible")


def test_collect_verses():
    """Test walking each range shape against the store."""
    print("\n=== Testing collect_verses ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        service = make_service(tmpdir)

        def numbers(ref):
            return [(v.chapter, v.verse) for v in service.collect_verses(parse_reference(ref), "KJV")]

        assert numbers("John 2") == [(2, 1), (2, 2), (2, 3)]
        print("✓ whole chapter")

        assert numbers("John 1:2-4") == [(1, 2), (1, 3), (1, 4)]
        assert numbers("John 1:4-9") == [(1, 4), (1, 5)]
        print("✓ verse range, missing verses skipped")

        assert numbers("John 1:4-John 3:1") == [(1, 4), (1, 5), (2, 1), (2, 2), (2, 3), (3, 1)]
        print("✓ cross-chapter range walks middle chapters whole")

        assert numbers("Acts 1") == []
        print("✓ unknown book yields nothing")


def test_collect_verses_huge_end():
    """Test that absurd end numbers only cost what the store holds."""
    print("\n=== Testing huge end verse and chapter ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        service = make_service(tmpdir)

        start = time.monotonic()
        verses = service.collect_verses(parse_reference("John 3:1-999999999"), "KJV")
        assert [(v.chapter, v.verse) for v in verses] == [(3, 1), (3, 2), (3, 16)]
        verses = service.collect_verses(parse_reference("John 2:3-999999999:1"), "KJV")
        assert [(v.chapter, v.verse) for v in verses] == [(2, 3), (3, 1), (3, 2), (3, 16)]
        assert time.monotonic() - start < 2
        print("✓ huge end verse and chapter return quickly")


def test_lookup_applies_rules():
    """Test that lookup formats with the translation's rules."""
    print("\n=== Testing lookup ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        service = make_service(tmpdir)

        passage = service.lookup("John 3:16")
        assert passage.translation == "KJV"
        assert passage.reference == "John 3:16"
        assert passage.text == "For God so loved the <em>&lt;world&gt;</em>"
        assert passage.warnings == []
        print("✓ KJV rule applied with escaping")

        passage = service.lookup("John 3:16", "ASV")
        assert passage.text == "For God so loved the world"
        print("✓ translation without rules passes text through")

        try:
            service.lookup("John 9:1")
            assert False, "Should have raised VerseNotFoundError"
        except VerseNotFoundError as e:
            assert "John 9:1" in str(e) and "KJV" in str(e)
            print("✓ missing passage raises VerseNotFoundError")

        try:
            service.lookup("John 3:16", "NIV")
            assert False, "Should have raised VerseNotFoundError"
        except VerseNotFoundError:
            print("✓ unknown translation raises VerseNotFoundError")

        for bad, exc in [("John", InvalidFormatError),
                         ("John 1:1-Acts 1:2", CrossBookUnsupportedError)]:
            try:
                service.lookup(bad)
                assert False, f"Should have raised {exc.__name__}"
            except exc:
                pass
        print("✓ parse errors propagate")


def test_lookup_collects_warnings():
    """Test that a broken rule is reported on the passage, not raised."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db = BibleDatabase(tmpdir)
        tid = db.add_translation("Test", "TST", processing_rules=[
            ProcessingRule("(", "x"),
            ProcessingRule("world", "World"),
        ])
        db.add_verse(tid, "John", 3, 16, "the world")
        db.add_verse(tid, "John", 3, 17, "the world again")
        service = ReferenceService(db)

        passage = service.lookup("John 3:16-17", "TST")
        assert [v.text for v in passage.verses] == ["the World", "the World again"]
        assert len(passage.warnings) == 2
        assert passage.to_dict()["warnings"][0]["pattern"] == "("
        print("✓ warnings collected per verse, formatting continues")


def test_render_outputs():
    """Test text, link and codeblock output."""
    print("\n=== Testing render ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        service = make_service(tmpdir)

        single = service.lookup("John 1:1")
        assert service.render(single, "text") == "John 1:1 (KJV): J1.1"
        print("✓ text, single verse has no number")

        multi = service.lookup("John 1:1-3")
        assert service.render(multi, "text") == "John 1:1-3 (KJV): 1 J1.1 2 J1.2 3 J1.3"
        print("✓ text, multiple verses numbered")

        assert service.render(multi, "link") == (
            "[John 1:1-3 (KJV)](https://www.biblegateway.com/passage/"
            "?search=John%201%3A1-3&version=KJV)"
        )
        print("✓ link")

        assert service.render(multi, "codeblock") == "```bible\nKJV John 1:1-3\nJ1.1 J1.2 J1.3\n```"
        assert service.render(multi, "codeblock", ["verse", "red-text"]) == (
            "```bible\nKJV John 1:1-3 [verse|red-text]\nJ1.1 J1.2 J1.3\n```"
        )
        print("✓ codeblock with and without options")

        assert service.render(multi) == service.render(multi, "text")
        print("✓ default output type from service")

        try:
            service.render(multi, "html")
            assert False, "Should have raised ValueError"
        except ValueError:
            print("✓ unknown output type rejected")

        assert service.insert("John 2", output_type="text") == "John 2 (KJV): 1 J2.1 2 J2.2 3 J2.3"
        print("✓ insert = lookup + render")


def test_bible_gateway_url():
    """Test version mapping and URI encoding."""
    assert bible_gateway_url("John 3:16", "SpaRV") == (
        "https://www.biblegateway.com/passage/?search=John%203%3A16&version=RVR1909"
    )
    assert bible_gateway_url("Song of Solomon 2:1", "XYZ").endswith(
        "search=Song%20of%20Solomon%202%3A1&version=XYZ"
    )
    print("✓ bible_gateway_url")


def main():
    """Run all tests."""
    print("=" * 60)
    print("Reference Service Test Suite")
    print("=" * 60)

    test_collect_verses()
    test_collect_verses_huge_end()
    test_lookup_applies_rules()
    test_lookup_collects_warnings()
    test_render_outputs()
    test_bible_gateway_url()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
