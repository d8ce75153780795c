import html
import logging
from dataclasses import dataclass
from typing import Optional

from postpdf.core import images, sanitizer
from postpdf.core.pipeline import PipelineConfig, get_pipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArticleInput:
    """Raw article as handed over by the content source."""

    title: str
    body_html: str
    header_image_url: Optional[str] = None


@dataclass(frozen=True)
class Document:
    """Print-ready article: header + cleaned body, plus the stylesheet to render it with."""

    title: str
    body_html: str
    stylesheet: str
    header_image: Optional[str] = None


def build_header(title: str, header_image_url: Optional[str] = None) -> str:
    header = f'<h1>{html.escape(title)}</h1>'
    if header_image_url:
        url = images.escape_url(header_image_url)
        if url:
            header += f'<img src="{html.escape(url)}" />'
    return header


def process_body(raw_body: str, config: PipelineConfig) -> str:
    """
    Runs the body through the cleanup pipeline.
    Paragraph collapsing must come after image rewriting, which can change
    whether a paragraph holds a lone image.
    """
    body = sanitizer.clean_text(raw_body, config.shortcode_prefixes)
    body = images.rewrite(body, config)
    return sanitizer.collapse_paragraphs(body)


def assemble(title, header_image_url=None, raw_body='', config=None) -> Document:
    if not title or not title.strip():
        raise ValueError("Article title is required")
    config = config or get_pipeline()

    body = process_body(raw_body or '', config)
    logger.debug(f"Assembled '{title}': {len(raw_body or '')} -> {len(body)} chars of body HTML")

    return Document(
        title=title,
        body_html=build_header(title, header_image_url) + body,
        stylesheet=config.stylesheet,
        header_image=header_image_url or None,
    )


def assemble_article(article: ArticleInput, config=None) -> Document:
    return assemble(article.title, article.header_image_url, article.body_html, config)
