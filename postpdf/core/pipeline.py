import enum
from dataclasses import dataclass

from postpdf.core.sanitizer import DEFAULT_SHORTCODE_PREFIXES

# Widest image the A4 print layout can hold without clipping.
IMAGE_MAX_WIDTH = 708

INJECTED_IMAGE_STYLE = f"max-width: {IMAGE_MAX_WIDTH}px; width: 100%; height: auto;"

# Print stylesheet for block-level images (kept off page boundaries).
STYLESHEET_BLOCK = """
    <style>
        body {
            font-family: Raleway, serif;
            font-size: 15px;
            line-height: 1.4;
        }
        h1 {
            font-size: 24px;
            margin-bottom: 20px;
            line-height: 1.3;
        }
        h2 {
            font-size: 16px;
            font-weight: 700;
            font-family: Raleway, serif;
            line-height: 1.3;
        }
        img {
            max-width: %(width)spx;
            width: 100%%;
            height: auto;
            margin-bottom: 0px;
            object-fit: contain;
            display: block;
            page-break-inside: avoid;
        }
        p {
            margin-bottom: 5px;
        }
    </style>
""" % {"width": IMAGE_MAX_WIDTH}

# Print stylesheet for images flowing inline with the text.
STYLESHEET_INLINE = """
    <style>
        body {
            font-family: Raleway, serif;
            font-size: 15px;
            line-height: 1.4;
        }
        h1 {
            font-size: 24px;
            margin-bottom: 20px;
            line-height: 1.3;
        }
        h2 {
            font-size: 16px;
            font-weight: 700;
            font-family: Raleway, serif;
            line-height: 1.3;
        }
        img {
            max-width: %(width)spx;
            width: 100%%;
            height: auto;
            margin-bottom: 0;
            display: inline;
        }
        p {
            margin-bottom: 5px;
        }
    </style>
""" % {"width": IMAGE_MAX_WIDTH}


class RenderTarget(enum.Enum):
    PREVIEW_HTML = "preview"
    PDF_ATTACHMENT = "attachment"
    PDF_INLINE = "inline"


class StylePolicy(enum.Enum):
    STRIP = "strip"
    INJECT = "inject"


class Disposition(enum.Enum):
    ATTACHMENT = "attachment"
    INLINE = "inline"


class UnknownPipelineError(KeyError):
    """Raised when a pipeline version has no registered preset."""


@dataclass(frozen=True)
class PipelineConfig:
    """Knobs that differ between releases of the article pipeline."""

    lazy_class_marker: str = "lazyload"
    style_policy: StylePolicy = StylePolicy.INJECT
    disposition: Disposition = Disposition.ATTACHMENT
    wrap_images_inline: bool = False
    robots_noindex: bool = False
    stylesheet: str = STYLESHEET_BLOCK
    shortcode_prefixes: tuple = DEFAULT_SHORTCODE_PREFIXES

    def pdf_target(self) -> RenderTarget:
        if self.disposition is Disposition.INLINE:
            return RenderTarget.PDF_INLINE
        return RenderTarget.PDF_ATTACHMENT


PIPELINES = {
    "1.0": PipelineConfig(
        lazy_class_marker="lazy",
        style_policy=StylePolicy.STRIP,
        disposition=Disposition.ATTACHMENT,
        stylesheet=STYLESHEET_BLOCK,
    ),
    "1.1": PipelineConfig(
        lazy_class_marker="lazy",
        style_policy=StylePolicy.STRIP,
        disposition=Disposition.INLINE,
        wrap_images_inline=True,
        robots_noindex=True,
        stylesheet=STYLESHEET_INLINE,
    ),
    "1.2": PipelineConfig(
        lazy_class_marker="lazyload",
        style_policy=StylePolicy.INJECT,
        disposition=Disposition.ATTACHMENT,
        robots_noindex=True,
        stylesheet=STYLESHEET_BLOCK,
    ),
}

DEFAULT_PIPELINE = "1.2"


def get_pipeline(version=None) -> PipelineConfig:
    """Return the preset registered for ``version`` (default: latest)."""
    key = version or DEFAULT_PIPELINE
    try:
        return PIPELINES[key]
    except KeyError:
        raise UnknownPipelineError(
            f"Unknown pipeline version '{key}'. Known: {', '.join(sorted(PIPELINES))}"
        ) from None
