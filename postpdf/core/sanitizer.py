"""
Text-level cleanup of CMS article markup.

The passes are plain regex substitutions over the HTML string so that markup
outside the matched tokens is preserved exactly. Each pass is idempotent.
"""
import re

# Page-builder shortcode namespaces stripped before the generic bracket pass.
DEFAULT_SHORTCODE_PREFIXES = ('vc_',)

QUOTE_REPLACEMENTS = {
    '“': '"',
    '”': '"',
    '‘': "'",
    '’': "'",
    '�': '',  # mis-decoded byte marker
}

GENERIC_SHORTCODE_PATTERN = re.compile(r'\[[^\]]*?\]')
EMPTY_PARAGRAPH_PATTERN = re.compile(r'<p>(?:\s|&nbsp;)*</p>', re.IGNORECASE)
SOLO_IMAGE_PARAGRAPH_PATTERN = re.compile(r'<p>\s*(<img[^>]+>)\s*</p>', re.IGNORECASE)


def _namespaced_pattern(prefixes):
    alternatives = '|'.join(re.escape(p) for p in prefixes)
    return re.compile(r'\[(/?(?:' + alternatives + r')[^\]]+)\]', re.IGNORECASE)


def normalize_quotes(html: str) -> str:
    for char, replacement in QUOTE_REPLACEMENTS.items():
        html = html.replace(char, replacement)
    return html


def strip_namespaced_shortcodes(html: str, prefixes=DEFAULT_SHORTCODE_PREFIXES) -> str:
    if not prefixes:
        return html
    return _namespaced_pattern(prefixes).sub('', html)


def strip_shortcodes(html: str) -> str:
    """Removes every remaining [...] token (citation markers like [1] included)."""
    return GENERIC_SHORTCODE_PATTERN.sub('', html)


def remove_empty_paragraphs(html: str) -> str:
    return EMPTY_PARAGRAPH_PATTERN.sub('', html)


def unwrap_solo_images(html: str) -> str:
    return SOLO_IMAGE_PARAGRAPH_PATTERN.sub(r'\1', html)


def clean_text(html: str, prefixes=DEFAULT_SHORTCODE_PREFIXES) -> str:
    """Quote normalization and shortcode stripping (runs before image rewriting)."""
    html = normalize_quotes(html or '')
    html = strip_namespaced_shortcodes(html, prefixes)
    return strip_shortcodes(html)


def collapse_paragraphs(html: str) -> str:
    """
    Drops vacuous paragraphs and unwraps image-only ones.
    Repeats until stable, since removing an inner paragraph can empty its parent.
    """
    html = html or ''
    while True:
        collapsed = unwrap_solo_images(remove_empty_paragraphs(html))
        if collapsed == html:
            return html
        html = collapsed


def clean(html: str, prefixes=DEFAULT_SHORTCODE_PREFIXES) -> str:
    return collapse_paragraphs(clean_text(html, prefixes))


def strip_shortcodes_js(prefixes=DEFAULT_SHORTCODE_PREFIXES) -> str:
    """Client-side twin of clean_text's shortcode passes, for the HTML preview."""
    alternatives = '|'.join(re.escape(p) for p in prefixes) or 'vc_'
    return (
        '<script>\n'
        '    document.addEventListener("DOMContentLoaded", function() {\n'
        '        document.body.innerHTML = document.body.innerHTML\n'
        '            .replace(/\\[(\\/?(?:' + alternatives + ')[^\\]]+)\\]/gi, "")\n'
        '            .replace(/\\[[^\\]]*?\\]/g, "");\n'
        '    });\n'
        '</script>'
    )
