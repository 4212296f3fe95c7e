"""Tests for RDFa extraction."""

from extractors.rdfa import RdfaExtractor, extract_rdfa, parse_prefix_attribute
from extractors.values import ValueKind


class TestItems:
    """Tests for item discovery."""

    def test_person_with_vocab(self) -> None:
        """Test a typeof element with vocab becomes an item."""
        html = """
        <div vocab="https://schema.org/" typeof="Person">
            <span property="name">Jane Doe</span>
            <span property="jobTitle">Engineer</span>
        </div>
        """
        items = extract_rdfa(html)

        assert len(items) == 1
        assert items[0].to_dict() == {
            "type": ["Person"],
            "vocab": "https://schema.org/",
            "properties": {"name": "Jane Doe", "job_title": "Engineer"},
        }

    def test_nested_item(self) -> None:
        """Test a property element with typeof holds a nested item."""
        html = """
        <div vocab="https://schema.org/" typeof="Person">
            <span property="name">Jane Doe</span>
            <div property="address" typeof="PostalAddress">
                <span property="streetAddress">123 Main St</span>
            </div>
        </div>
        """
        items = extract_rdfa(html)

        assert len(items) == 1
        person = items[0]
        assert person.get("address").kind == ValueKind.ITEM
        assert "street_address" not in person.properties

        address = person.get("address").value
        assert address.types == ("PostalAddress",)
        assert address.vocab == "https://schema.org/"
        assert address.first("street_address") == "123 Main St"

    def test_unrelated_nested_typeof_is_top_level(self) -> None:
        """Test a typeof element without property is its own item."""
        html = """
        <div typeof="schema:WebPage">
            <span property="schema:name">Outer</span>
            <div typeof="schema:Product">
                <span property="schema:name">Inner</span>
            </div>
        </div>
        """
        items = extract_rdfa(html)

        assert [item.types[0] for item in items] == [
            "https://schema.org/WebPage",
            "https://schema.org/Product",
        ]
        assert items[0].first("https://schema.org/name") == "Outer"
        assert items[1].first("https://schema.org/name") == "Inner"

    def test_multiple_items(self) -> None:
        """Test sibling items are returned in document order."""
        html = """
        <div vocab="https://schema.org/">
            <div typeof="Event"><span property="name">Launch</span></div>
            <div typeof="Event"><span property="name">Party</span></div>
        </div>
        """
        items = extract_rdfa(html)

        assert [item.first("name") for item in items] == ["Launch", "Party"]

    def test_vocab_without_typeof(self) -> None:
        """Test a vocab element without typeof is an untyped item."""
        html = """
        <body vocab="https://schema.org/">
            <h1 property="name">My Site</h1>
        </body>
        """
        items = extract_rdfa(html)

        assert len(items) == 1
        assert items[0].types == ()
        assert items[0].vocab == "https://schema.org/"
        assert items[0].first("name") == "My Site"

    def test_empty_vocab_scope_ignored(self) -> None:
        """Test a vocab element with no properties yields no item."""
        html = '<body vocab="https://schema.org/"><p>Nothing here</p></body>'
        assert extract_rdfa(html) == []

    def test_about_resolved(self, base_url: str) -> None:
        """Test about becomes the item id, resolved against the base URL."""
        html = '<div typeof="Person" about="/people/jane"><span property="name">J</span></div>'
        items = extract_rdfa(html, base_url)

        assert items[0].id == "https://example.com/people/jane"

    def test_property_outside_items_ignored(self) -> None:
        """Test property attributes with no enclosing item are not collected."""
        assert extract_rdfa('<p><span property="name">Loose</span></p>') == []


class TestPropertyValues:
    """Tests for property value rules."""

    def test_content_overrides_text(self) -> None:
        """Test the content attribute wins over element text."""
        html = """
        <div typeof="Product">
            <span property="price" content="9.99">$9.99</span>
        </div>
        """
        assert extract_rdfa(html)[0].first("price") == "9.99"

    def test_resource_values_resolved(self, base_url: str) -> None:
        """Test href, src and resource produce resolved URLs."""
        html = """
        <div typeof="Person">
            <a property="url" href="/jane">Home</a>
            <img property="image" src="photo.jpg">
            <span property="knows" resource="#bob">Bob</span>
        </div>
        """
        person = extract_rdfa(html, base_url)[0]

        assert person.get("url").kind == ValueKind.URL
        assert person.first("url") == "https://example.com/jane"
        assert person.first("image") == "https://example.com/articles/photo.jpg"
        assert person.first("knows") == "https://example.com/articles/post#bob"

    def test_repeated_property_is_list(self) -> None:
        """Test a property declared twice becomes a list."""
        html = """
        <div typeof="Person">
            <span property="telephone">555-1234</span>
            <span property="telephone">555-5678</span>
        </div>
        """
        person = extract_rdfa(html)[0]

        assert person.get("telephone").is_list
        assert person.to_dict()["properties"]["telephone"] == ["555-1234", "555-5678"]

    def test_multiple_property_names(self) -> None:
        """Test each property token receives the value."""
        html = '<div typeof="Thing"><span property="name alternateName">Bob</span></div>'
        item = extract_rdfa(html)[0]

        assert item.first("name") == "Bob"
        assert item.first("alternate_name") == "Bob"

    def test_datatypes(self) -> None:
        """Test xsd datatypes coerce literals."""
        html = """
        <div typeof="Recipe">
            <span property="servings" datatype="xsd:integer">4</span>
            <span property="vegan" datatype="xsd:boolean" content="true">Yes</span>
            <span property="published" datatype="xsd:date">2024-01-15</span>
            <span property="label" datatype="xsd:string">Soup</span>
            <span property="calories" datatype="xsd:integer">lots</span>
        </div>
        """
        recipe = extract_rdfa(html)[0]

        assert recipe.get("servings").kind == ValueKind.NUMBER
        assert recipe.first("servings") == 4.0
        assert recipe.first("vegan") is True
        assert recipe.get("published").kind == ValueKind.DATETIME
        assert recipe.get("label").kind == ValueKind.TEXT
        assert recipe.first("calories") == "lots"

    def test_empty_values_omitted(self) -> None:
        """Test empty text and empty content create no property."""
        html = """
        <div typeof="Thing">
            <span property="name">  </span>
            <meta property="description" content="">
        </div>
        """
        assert extract_rdfa(html)[0].properties == {}


class TestPrefixes:
    """Tests for compact name expansion."""

    def test_declared_prefix(self) -> None:
        """Test a prefix attribute anywhere in the document is applied."""
        html = """
        <html prefix="ex: https://example.com/ns#">
        <body>
            <div typeof="ex:Recipe" about="ex:soup">
                <span property="ex:yield">4 bowls</span>
                <span property="ex:related" resource="ex:bread"></span>
            </div>
        </body>
        </html>
        """
        recipe = extract_rdfa(html)[0]

        assert recipe.types == ("https://example.com/ns#Recipe",)
        assert recipe.id == "https://example.com/ns#soup"
        assert recipe.first("https://example.com/ns#yield") == "4 bowls"
        assert recipe.first("https://example.com/ns#related") == "https://example.com/ns#bread"

    def test_default_prefixes(self) -> None:
        """Test the built-in prefixes need no declaration."""
        html = '<div typeof="foaf:Person"><span property="foaf:name">Jane</span></div>'
        person = extract_rdfa(html)[0]

        assert person.types == ("http://xmlns.com/foaf/0.1/Person",)
        assert person.first("http://xmlns.com/foaf/0.1/name") == "Jane"

    def test_unknown_prefix_kept(self) -> None:
        """Test an undeclared prefix is left as written."""
        html = '<div typeof="zz:Thing"><span property="zz:name">X</span></div>'
        item = extract_rdfa(html)[0]

        assert item.types == ("zz:Thing",)
        assert item.first("zz:name") == "X"

    def test_parse_prefix_attribute(self) -> None:
        """Test prefix/namespace pairs are read and malformed tokens skipped."""
        parsed = parse_prefix_attribute("og: http://ogp.me/ns# junk ex: https://example.com/")
        assert parsed == {"og": "http://ogp.me/ns#", "ex": "https://example.com/"}
        assert parse_prefix_attribute(None) == {}


class TestLimits:
    """Tests for traversal limits."""

    def test_nesting_limit_truncates(self) -> None:
        """Test items deeper than the limit are dropped, not raised."""
        html = '<div typeof="T"><span property="name">0</span>'
        for level in range(1, 4):
            html += f'<div property="child" typeof="T"><span property="name">{level}</span>'
        html += "</div>" * 4

        items = RdfaExtractor(max_nesting_depth=1).extract(html)

        assert len(items) == 1
        child = items[0].get("child").value
        assert child.first("name") == "1"
        assert child.get("child") is None

    def test_element_depth_limit_keeps_item(self) -> None:
        """Test properties below the element depth limit are dropped."""
        html = """
        <div typeof="T">
            <span property="a">x</span>
            <div><div><span property="deep">y</span></div></div>
        </div>
        """
        items = RdfaExtractor(max_element_depth=2).extract(html)

        assert len(items) == 1
        assert items[0].first("a") == "x"
        assert "deep" not in items[0].properties
