"""Tests for JSON-LD extraction."""

import json

from extractors.dom import parse_document
from extractors.jsonld import (
    JsonLdExtractor,
    extract_jsonld,
    extract_jsonld_by_type,
    flatten_entities,
    is_jsonld_script,
)


def _script(payload: str, script_type: str = "application/ld+json") -> str:
    return f'<script type="{script_type}">{payload}</script>'


class TestExtractJsonLd:
    """Tests for extract_jsonld."""

    def test_single_entity(self) -> None:
        """Test one block with one object."""
        html = _script('{"@context": "https://schema.org", "@type": "Article", "headline": "Hi"}')
        entities = extract_jsonld(html)

        assert entities == [
            {"@context": "https://schema.org", "@type": "Article", "headline": "Hi"}
        ]

    def test_graph_flattened(self) -> None:
        """Test @graph members become separate entities."""
        payload = {
            "@context": "https://schema.org",
            "@graph": [
                {"@type": "Organization", "name": "Acme"},
                {"@type": "WebSite", "name": "Acme Site"},
                {"@type": "WebPage", "name": "Home"},
            ],
        }
        entities = extract_jsonld(_script(json.dumps(payload)))

        assert len(entities) == 3
        assert [entity["@type"] for entity in entities] == ["Organization", "WebSite", "WebPage"]

    def test_top_level_array_is_one_entity(self) -> None:
        """Test a top-level array is passed through as a single entity."""
        html = _script('[{"@type": "Person", "name": "A"}, {"@type": "Person", "name": "B"}]')
        assert extract_jsonld(html) == [
            [{"@type": "Person", "name": "A"}, {"@type": "Person", "name": "B"}]
        ]

    def test_oversized_integer_block_skipped(self) -> None:
        """Test integer literals past the conversion limit only drop their block."""
        html = _script('{"@type": "Thing", "n": ' + "9" * 5000 + "}") + _script(
            '{"@type": "Person"}'
        )
        assert extract_jsonld(html) == [{"@type": "Person"}]

    def test_deeply_nested_block_skipped(self) -> None:
        """Test pathological nesting only drops its block."""
        html = _script("[" * 100_000 + "]" * 100_000) + _script('{"@type": "Person"}')
        assert extract_jsonld(html) == [{"@type": "Person"}]

    def test_malformed_block_skipped(self) -> None:
        """Test a malformed block does not hide the valid ones."""
        html = (
            _script('{"@type": "Thing", "name": "first"}')
            + _script('{"@type": "Broken", "name": ')
            + _script('{"@type": "Thing", "name": "second"}')
        )
        entities = extract_jsonld(html)

        assert [entity["name"] for entity in entities] == ["first", "second"]

    def test_only_malformed_block(self) -> None:
        """Test a document with only invalid JSON yields nothing."""
        assert extract_jsonld(_script("{not json}")) == []

    def test_empty_block_skipped(self) -> None:
        """Test whitespace-only blocks are ignored."""
        assert extract_jsonld(_script("   ")) == []

    def test_context_only_object_kept(self) -> None:
        """Test an object without @type is still an entity."""
        assert extract_jsonld(_script('{"@context": "https://schema.org"}')) == [
            {"@context": "https://schema.org"}
        ]

    def test_structure_passed_through(self) -> None:
        """Test nested objects, arrays and nulls are preserved."""
        payload = {
            "@type": "Article",
            "author": {"@type": "Person", "name": "Jane"},
            "keywords": ["a", "b"],
            "image": None,
            "wordCount": 1200,
        }
        entity = extract_jsonld(_script(json.dumps(payload)))[0]

        assert entity["author"]["name"] == "Jane"
        assert entity["keywords"] == ["a", "b"]
        assert "image" in entity
        assert entity["image"] is None
        assert entity["wordCount"] == 1200

    def test_other_script_types_ignored(self) -> None:
        """Test non JSON-LD scripts are not parsed."""
        html = _script('{"a": 1}', "application/json") + "<script>var x = {};</script>"
        assert extract_jsonld(html) == []

    def test_media_type_parameters_and_case(self) -> None:
        """Test the type attribute is matched case-insensitively without parameters."""
        html = _script('{"@type": "Thing"}', "Application/LD+JSON; charset=utf-8")
        assert extract_jsonld(html) == [{"@type": "Thing"}]

    def test_raw_control_characters(self) -> None:
        """Test literal newlines inside strings are accepted unless strict."""
        html = _script('{"@type": "Thing", "description": "line one\nline two"}')

        assert extract_jsonld(html)[0]["description"] == "line one\nline two"
        assert JsonLdExtractor(strict=True).extract(html) == []

    def test_unpaired_surrogate_escape(self) -> None:
        """Test lone surrogate escapes do not abort extraction."""
        html = _script('{"@type": "Thing", "name": "bad \\ud800 text"}')
        entities = extract_jsonld(html)

        assert len(entities) == 1
        assert entities[0]["name"].startswith("bad ")


class TestExtractJsonLdByType:
    """Tests for extract_jsonld_by_type."""

    def test_filters_by_type(self) -> None:
        """Test only matching entities are returned."""
        html = _script(
            json.dumps(
                {
                    "@graph": [
                        {"@type": "Person", "name": "Jane"},
                        {"@type": ["Organization", "Corporation"], "name": "Acme"},
                        {"@type": "Person", "name": "John"},
                        {"name": "untyped"},
                    ]
                }
            )
        )

        assert [e["name"] for e in extract_jsonld_by_type(html, "Person")] == ["Jane", "John"]
        assert [e["name"] for e in extract_jsonld_by_type(html, "Corporation")] == ["Acme"]
        assert extract_jsonld_by_type(html, "Event") == []


class TestHelpers:
    """Tests for module helpers."""

    def test_flatten_entities(self) -> None:
        """Test flattening rules for each payload shape."""
        assert flatten_entities({"@graph": [{"a": 1}, {"b": 2}]}) == [{"a": 1}, {"b": 2}]
        assert flatten_entities({"@graph": "not a list"}) == [{"@graph": "not a list"}]
        assert flatten_entities([{"a": 1}, {"b": 2}]) == [[{"a": 1}, {"b": 2}]]
        assert flatten_entities("just a string") == ["just a string"]

    def test_is_jsonld_script(self) -> None:
        """Test script detection."""
        document = parse_document(
            _script("{}") + '<div type="application/ld+json"></div><script src="a.js"></script>'
        )
        results = [is_jsonld_script(element) for element in document.find_all(True)]

        assert results == [True, False, False]
