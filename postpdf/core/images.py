import logging
import re
import urllib.parse

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from postpdf.core import srcset
from postpdf.core.pipeline import INJECTED_IMAGE_STYLE, PipelineConfig, StylePolicy

logger = logging.getLogger(__name__)

IMG_TAG_PATTERN = re.compile(r'<img\b[^>]*>', re.IGNORECASE)

# Characters left alone when percent-encoding a URL for embedding.
URL_SAFE_CHARS = "-~+_.?#=!&;,/:%@$|*'()[]"
ALLOWED_URL_SCHEMES = ('http', 'https', 'ftp', 'ftps', 'mailto', 'news', 'irc', 'feed')
SCHEME_PATTERN = re.compile(r'^([a-zA-Z][a-zA-Z0-9+.\-]*):')

class SourceOrderFormatter(HTMLFormatter):
    """Minimal-escaping formatter that writes attributes in their current order."""

    def __init__(self):
        super().__init__(entity_substitution=EntitySubstitution.substitute_xml)

    def attributes(self, tag):
        return list(tag.attrs.items())


SOURCE_ORDER_FORMATTER = SourceOrderFormatter()

# (attribute, needs srcset resolution), highest priority first
SOURCE_ATTRIBUTES = (
    ('data-srcset', True),
    ('srcset', True),
    ('data-src', False),
    ('src', False),
)


def escape_url(url: str) -> str:
    """
    Makes a URL safe to embed in an attribute.
    Unsafe characters are percent-encoded; unknown schemes (javascript:, data:) yield ''.
    """
    url = (url or '').strip().replace(' ', '%20')
    if not url:
        return ''
    match = SCHEME_PATTERN.match(url)
    if match and match.group(1).lower() not in ALLOWED_URL_SCHEMES:
        logger.debug(f"Rejected image URL with scheme '{match.group(1)}'")
        return ''
    return urllib.parse.quote(url, safe=URL_SAFE_CHARS)


def _attr_text(value) -> str:
    if isinstance(value, (list, tuple)):
        return ' '.join(value)
    return value or ''


def select_source(img) -> str:
    """Returns the best source for an <img> tag, or '' when nothing resolves."""
    for attribute, is_srcset in SOURCE_ATTRIBUTES:
        value = _attr_text(img.get(attribute)).strip()
        if not value:
            continue
        return srcset.resolve(value) if is_srcset else value
    return ''


def fix_image(img, config: PipelineConfig) -> None:
    """Rewrites a parsed <img> tag in place."""
    source = escape_url(select_source(img))
    if source:
        if img.has_attr('src'):
            img['src'] = source
        else:
            # src goes right after the tag name
            img.attrs = {'src': source, **img.attrs}

    marker = config.lazy_class_marker
    if marker and img.has_attr('class') and marker in _attr_text(img['class']):
        del img['class']

    if config.style_policy is StylePolicy.STRIP:
        if img.has_attr('style'):
            del img['style']
    elif not img.has_attr('style'):
        img['style'] = INJECTED_IMAGE_STYLE


def rewrite_tag(tag_html: str, config: PipelineConfig) -> str:
    soup = BeautifulSoup(tag_html, 'html.parser')
    img = soup.find('img')
    if img is None:
        return tag_html

    fix_image(img, config)
    html = img.decode(formatter=SOURCE_ORDER_FORMATTER)
    if config.wrap_images_inline:
        html = f'<span style="display:inline;">{html}</span>'
    return html


def rewrite(html: str, config: PipelineConfig) -> str:
    """
    Rewrites every <img> tag in a document body.
    Each tag is parsed on its own, so the surrounding markup is left untouched.
    """
    count = 0

    def _replace(match):
        nonlocal count
        count += 1
        return rewrite_tag(match.group(0), config)

    result = IMG_TAG_PATTERN.sub(_replace, html or '')
    logger.debug(f"Rewrote {count} image tag(s)")
    return result
