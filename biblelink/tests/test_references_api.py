"""
Tests for routes/references_api.py - Flask endpoints.
"""

import os
import tempfile

from biblelink.server import create_app
from biblelink.services.references import BibleDatabase, ProcessingRule


def make_client(tmpdir):
    db = BibleDatabase(tmpdir)
    tid = db.add_translation(
        "King James Version", "KJV",
        processing_rules=[ProcessingRule(r"\[(\w+)\]", "<em>$1</em>")],
    )
    db.add_verse(tid, "John", 3, 16, "For God so [loved] the world", save=False)
    db.add_verse(tid, "John", 3, 17, "For God sent not his Son", save=False)
    db.add_verse(tid, "Genesis", 1, 1, "In the beginning")

    app = create_app(tmpdir)
    app.config["TESTING"] = True
    return app.test_client()


def test_parse_endpoint():
    """Test /parse success and error codes."""
    print("\n=== Testing /parse ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        client = make_client(tmpdir)

        resp = client.get("/api/references/parse", query_string={"ref": "John 3:16-18"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["book"] == "John"
        assert data["start_verse"] == 16 and data["end_verse"] == 18
        print("✓ parse returns range")

        resp = client.get("/api/references/parse")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "ref_required"
        print("✓ missing ref")

        cases = {
            "John": "invalid_format",
            "1 Corinthians 1:2-2 Timothy 3:4": "cross_book_unsupported",
            "John 5:10-5:2": "invalid_range",
        }
        for ref, code in cases.items():
            resp = client.get("/api/references/parse", query_string={"ref": ref})
            assert resp.status_code == 400, ref
            assert resp.get_json()["error"] == code, ref
        print("✓ parse errors map to error codes")

        body = client.get("/api/references/parse",
                          query_string={"ref": "1 Corinthians 1:2-2 Timothy 3:4"}).get_json()
        assert body["start_book"] == "1 Corinthians"
        assert body["end_book"] == "2 Timothy"
        print("✓ cross-book error includes both books")


def test_lookup_endpoint():
    """Test /lookup rendering and errors."""
    print("\n=== Testing /lookup ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        client = make_client(tmpdir)

        resp = client.get("/api/references/lookup",
                          query_string={"ref": "John 3:16", "translation": "KJV", "output": "text"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["rendered"] == "John 3:16 (KJV): For God so <em>loved</em> the world"
        assert data["passage"]["verses"][0]["text"] == "For God so <em>loved</em> the world"
        print("✓ lookup applies rules and renders")

        resp = client.get("/api/references/lookup", query_string={
            "ref": "John 3:16-17", "translation": "KJV",
            "output": "codeblock", "options": "verse, link",
        })
        assert resp.get_json()["rendered"].startswith("```bible\nKJV John 3:16-17 [verse|link]\n")
        print("✓ codeblock options")

        resp = client.get("/api/references/lookup",
                          query_string={"ref": "John 9:9", "translation": "KJV"})
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"
        print("✓ missing verse is 404")

        resp = client.get("/api/references/lookup",
                          query_string={"ref": "John 3:16", "output": "pdf"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_output"
        print("✓ invalid output type")


def test_translation_endpoints():
    """Test /translations, /translations/<abbr>/rules and /books."""
    print("\n=== Testing translation endpoints ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        client = make_client(tmpdir)

        data = client.get("/api/references/translations").get_json()
        assert data["count"] == 1
        assert data["translations"][0]["abbreviation"] == "KJV"
        assert data["translations"][0]["verse_count"] == 3
        print("✓ translations listed")

        data = client.get("/api/references/translations/KJV/rules").get_json()
        assert data["rules"] == [{"regex": r"\[(\w+)\]", "formatting": "<em>$1</em>", "escape": False}]
        assert client.get("/api/references/translations/NIV/rules").status_code == 404
        print("✓ rules endpoint")

        assert client.get("/api/references/books").get_json() == {"books": ["Genesis", "John"]}
        print("✓ books in canonical order")


def test_corrupt_store_returns_500():
    """Test that an unreadable data file becomes a JSON 500."""
    print("\n=== Testing corrupt data file ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        with open(os.path.join(tmpdir, "bible_data.json"), "w", encoding="utf-8") as f:
            f.write("{not json")

        app = create_app(tmpdir)
        app.config["TESTING"] = True
        resp = app.test_client().get("/api/references/books")
        assert resp.status_code == 500
        data = resp.get_json()
        assert data["error"] == "storage_error"
        assert "bible_data.json" in data["detail"]
        print("✓ storage_error with the file path in detail")


def main():
    """Run all tests."""
    print("=" * 60)
    print("References API Test Suite")
    print("=" * 60)

    test_parse_endpoint()
    test_lookup_endpoint()
    test_translation_endpoints()
    test_corrupt_store_returns_500()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
