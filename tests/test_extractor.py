"""
Tests for structured and simple text extraction.

Tests the full pipeline from parsed HTML to semantic documents.
"""

import pytest

from pagepal.config import ExtractionSettings
from pagepal.core.exceptions import NoContentFoundError
from pagepal.dom import parse_html, sanitize, visible_text
from pagepal.extraction import (
    TOC,
    Code,
    Heading,
    Image,
    ListBlock,
    MainContentSelector,
    Paragraph,
    Quote,
    StructuredExtractor,
    Table,
    extract_from_html,
    extract_simple_text,
)


class TestMainContentSelector:
    """Tests for content root selection."""

    def test_first_candidate_wins(self):
        """Candidates are tried in order."""
        document = parse_html(
            '<body><article>a</article><div class="content">b</div></body>')

        root = MainContentSelector().select(document.root)

        assert root.attrs.get("class") == "content"

    def test_body_fallback(self):
        """Without candidates the body is used."""
        document = parse_html("<body><div>text</div></body>")

        assert MainContentSelector().select(document.root).tag == "body"

    def test_nothing(self):
        """An empty document has no content root."""
        assert MainContentSelector().select(parse_html("").root) is None


class TestStructuredExtractor:
    """Tests for the structured pipeline."""

    def test_sample_page_sections(self, sample_document):
        """The sample page yields TOCs first, then content in order."""
        sections = StructuredExtractor().build(sample_document).sections

        assert [type(s) for s in sections] == [
            TOC, TOC, Heading, Paragraph, Heading, ListBlock, Code, Table, Image, Quote]

        toc_aside, toc_sidebar = sections[0], sections[1]
        assert (toc_aside.source, toc_sidebar.source) == ("aside", ".sidebar")

        assert sections[2] == Heading(level=1, text="Getting Started", depth=0)
        assert sections[4] == Heading(level=2, text="Installation", depth=1)

        steps = sections[5]
        assert steps.ordered is True
        assert steps.depth == 1
        assert [item.text for item in steps.items[1].nested] == ["Choose a folder", "Confirm"]

        assert sections[6] == Code(text='print("hello")', language="python", depth=1)
        assert sections[7] == Table(
            headers=("Name", "Version"), rows=(("core", "1.0"), ("cli", "2.0")), depth=0)
        assert sections[8] == Image(
            alt="Architecture diagram",
            caption="How the parts fit together",
            src="https://example.com/img/diagram.png",
        )

    def test_metadata(self, sample_document):
        """Metadata carries title and URL."""
        metadata = StructuredExtractor().build(sample_document).metadata

        assert metadata.title == "Guide Page"
        assert metadata.url == "https://example.com/guide"

    def test_chrome_excluded(self, sample_document):
        """Navigation, footer and scripts never reach the sections."""
        document = StructuredExtractor().build(sample_document)
        texts = " ".join(str(s) for s in document.sections[2:])

        assert "Copyright" not in texts
        assert "Home" not in texts
        assert "console.log" not in texts

    def test_original_untouched(self, sample_document):
        """Extraction leaves the source tree as it was."""
        before = visible_text(sample_document.root)

        StructuredExtractor().build(sample_document)

        assert visible_text(sample_document.root) == before

    def test_deterministic(self, sample_document):
        """Building twice gives equal sections."""
        extractor = StructuredExtractor()

        assert extractor.build(sample_document).sections == \
            extractor.build(sample_document).sections

    @pytest.mark.parametrize(
        "html",
        ["<html><body></body></html>", "", "<html><body>   <div> </div></body></html>"],
    )
    def test_no_content(self, html):
        """An empty or missing body raises NoContentFoundError."""
        with pytest.raises(NoContentFoundError):
            StructuredExtractor().build(parse_html(html, "https://example.com/empty"))

    def test_no_content_records_url(self):
        """The error carries the page URL."""
        with pytest.raises(NoContentFoundError) as exc_info:
            StructuredExtractor().build(parse_html("", "https://example.com/empty"))

        assert exc_info.value.url == "https://example.com/empty"

    def test_empty_main(self):
        """An empty main element gives an empty document, not an error."""
        document = extract_from_html("<body><main></main><p>Outside the main</p></body>")

        assert document.sections == ()

    def test_body_with_only_image(self):
        """A body holding only a described image is not empty."""
        document = extract_from_html(
            '<body><img src="/a.png" alt="Only image"></body>', "https://example.com/")

        assert document.sections == (
            Image(alt="Only image", src="https://example.com/a.png"),)

    def test_custom_exclusions(self):
        """Configured exclusions are removed before walking."""
        settings = ExtractionSettings(exclude_selectors=[".promo"])
        document = extract_from_html(
            '<main><p class="promo">Buy our stuff today</p><p>Real paragraph text</p></main>',
            settings=settings,
        )

        assert document.sections == (Paragraph(text="Real paragraph text", depth=0),)

    def test_to_dict_shape(self, sample_document):
        """The wire shape lists sections and metadata."""
        data = StructuredExtractor().build(sample_document).to_dict()

        assert set(data) == {"sections", "metadata"}
        assert data["sections"][0]["type"] == "table_of_contents"
        assert data["sections"][0]["selector"] == "aside"
        assert data["sections"][5]["type"] == "ordered_list"
        assert data["sections"][5]["items"][1]["nested"][0] == {"content": "Choose a folder"}
        assert data["metadata"]["url"] == "https://example.com/guide"
        assert "timestamp" in data["metadata"]


class TestExtractionCache:
    """Tests for cached extraction."""

    def test_cache_reused(self, sample_document):
        """Fresh results are returned without rebuilding."""
        extractor = StructuredExtractor()

        assert extractor.extract(sample_document) is extractor.extract(sample_document)

    def test_zero_ttl_rebuilds(self, sample_document):
        """A zero TTL always rebuilds."""
        extractor = StructuredExtractor(ExtractionSettings(cache_ttl_ms=0))

        assert extractor.extract(sample_document) is not extractor.extract(sample_document)

    def test_failure_not_cached(self, sample_document):
        """A failed extraction does not poison the cache."""
        extractor = StructuredExtractor()

        with pytest.raises(NoContentFoundError):
            extractor.extract(parse_html(""))

        assert extractor.cache.entry is None
        assert extractor.extract(sample_document).metadata.title == "Guide Page"

    def test_extract_text(self, sample_document):
        """extract_text returns the document and its formatting."""
        semantic, text = StructuredExtractor().extract_text(sample_document)

        assert text.startswith("Page: Guide Page")
        assert semantic.metadata.title == "Guide Page"


class TestSimpleText:
    """Tests for simple text extraction."""

    def test_main_text(self, sample_document):
        """Simple mode returns the collapsed text of the content root."""
        text = extract_simple_text(sample_document)

        assert text.startswith("Getting Started This guide walks through")
        assert "\n" not in text
        assert "  " not in text
        assert "Copyright" not in text
        assert "console.log" not in text

    def test_body_fallback(self):
        """Without a content root the body text is used."""
        document = parse_html(
            "<body><nav>Menu</nav><div>Body   text\nhere</div><aside>Side</aside></body>")

        assert extract_simple_text(document) == "Body text here"

    def test_empty_root_falls_back(self):
        """An empty content root falls back to the body."""
        document = parse_html("<body><main> </main><div>Outside</div></body>")

        assert extract_simple_text(document) == "Outside"

    def test_empty_document(self):
        """An empty document gives empty text."""
        assert extract_simple_text(parse_html("")) == ""

    def test_sanitized_view_reused(self):
        """Simple mode and the sanitized view agree on exclusions."""
        document = parse_html("<body><main><p>keep</p><script>x()</script></main></body>")

        assert extract_simple_text(document) == visible_text(
            sanitize(document.root, ["script"])).replace("\n", " ")
