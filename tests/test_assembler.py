import dataclasses

import pytest
from bs4 import BeautifulSoup

from postpdf.core.assembler import ArticleInput, Document, assemble, assemble_article, build_header
from postpdf.core.pipeline import STYLESHEET_BLOCK, STYLESHEET_INLINE, get_pipeline


class TestDocumentAssembler:
    def test_shortcodes_removed_end_to_end(self):
        doc = assemble("Hello", None, "<p>[vc_row][vc_column]Hi there[/vc_column][/vc_row]</p>")
        body = doc.body_html[len(build_header("Hello")):]
        assert "Hi there" in body
        assert "[" not in body and "]" not in body

    def test_header_title_escaped(self):
        doc = assemble("Fish & <Chips>", None, "")
        assert doc.body_html == "<h1>Fish &amp; &lt;Chips&gt;</h1>"

    def test_header_image(self):
        doc = assemble("T", "https://cdn.example.com/hero image.jpg?a=1&b=2", "<p>x</p>")
        assert doc.body_html.startswith(
            '<h1>T</h1><img src="https://cdn.example.com/hero%20image.jpg?a=1&amp;b=2" />'
        )
        assert doc.header_image == "https://cdn.example.com/hero image.jpg?a=1&b=2"

    def test_unsafe_header_image_dropped(self):
        doc = assemble("T", "javascript:alert(1)", "")
        assert doc.body_html == "<h1>T</h1>"

    def test_collapse_runs_after_rewrite(self):
        """A lazy image wrapped in a paragraph ends up unwrapped with its real source."""
        raw = '<p><img class="lazyload" data-src="real.jpg" src="placeholder.gif"></p><p>&nbsp;</p>'
        doc = assemble("T", None, raw, get_pipeline("1.2"))
        body = doc.body_html[len("<h1>T</h1>"):]
        assert not body.startswith("<p>")
        img = BeautifulSoup(body, 'html.parser').find('img')
        assert img['src'] == "real.jpg"
        assert not img.has_attr('class')
        assert "<p>" not in body

    def test_stylesheet_follows_pipeline(self):
        assert assemble("T", None, "", get_pipeline("1.0")).stylesheet == STYLESHEET_BLOCK
        assert assemble("T", None, "", get_pipeline("1.1")).stylesheet == STYLESHEET_INLINE
        assert "708px" in STYLESHEET_BLOCK and "page-break-inside: avoid" in STYLESHEET_BLOCK

    def test_document_is_frozen(self):
        doc = assemble("T", None, "<p>x</p>")
        with pytest.raises(dataclasses.FrozenInstanceError):
            doc.body_html = "changed"

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_title_required(self, title):
        with pytest.raises(ValueError):
            assemble(title, None, "<p>x</p>")

    def test_assemble_article(self):
        article = ArticleInput(title="T", body_html="<p>“x”</p>", header_image_url=None)
        doc = assemble_article(article, get_pipeline("1.0"))
        assert isinstance(doc, Document)
        assert doc.body_html == '<h1>T</h1><p>"x"</p>'
