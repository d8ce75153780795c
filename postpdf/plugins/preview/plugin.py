from postpdf.core.sanitizer import DEFAULT_SHORTCODE_PREFIXES, strip_shortcodes_js


def render_preview(document, prefixes=DEFAULT_SHORTCODE_PREFIXES) -> str:
    """
    Wraps a Document in a browser page showing what the PDF renderer receives.
    Shortcode-shaped text is stripped again client side in case an upstream
    engine re-introduced any; ``prefixes`` should match the ones the body was
    cleaned with.
    """
    return (
        '<!DOCTYPE html><html><head><meta charset="UTF-8"><title>PDF Preview</title>'
        f'{document.stylesheet}'
        '</head><body>'
        f'{document.body_html}'
        f'\n{strip_shortcodes_js(prefixes)}'
        '</body></html>'
    )
