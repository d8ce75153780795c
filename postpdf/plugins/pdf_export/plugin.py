import io
import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
REMOTE_URI_PATTERN = re.compile(r'^https?://', re.IGNORECASE)

PAGE_CSS = """
    <style>
        @page {
            size: %(paper_size)s %(orientation)s;
            margin: 1.5cm;
        }
    </style>
"""


class PdfExportError(RuntimeError):
    """The PDF backend failed to render a document."""


def slugify(value: str, fallback: str = "article") -> str:
    """ASCII-only, hyphen-separated slug for download filenames."""
    normalized = unicodedata.normalize("NFKD", value or "")
    normalized = normalized.encode("ascii", "ignore").decode("ascii").lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def pdf_filename(title: str) -> str:
    return f"{slugify(title)}.pdf"


def build_pdf_html(document, paper_size="a4", orientation="portrait") -> str:
    """Stylesheet + body, wrapped in the minimal page the renderer expects."""
    page_css = PAGE_CSS % {"paper_size": paper_size, "orientation": orientation}
    return (
        '<html><head><meta charset="utf-8">'
        f'{page_css}{document.stylesheet}'
        '</head><body>'
        f'{document.body_html}'
        '</body></html>'
    )


class PdfBackend:
    """
    Handle around xhtml2pdf.
    The library is imported on first use; one handle is shared per process.
    """
    _instance = None

    def __init__(self, paper_size="a4", orientation="portrait", remote_enabled=True):
        self.paper_size = paper_size
        self.orientation = orientation
        self.remote_enabled = remote_enabled
        self._pisa = None

    @staticmethod
    def get_instance(settings=None):
        if PdfBackend._instance is None:
            if settings is not None:
                PdfBackend._instance = PdfBackend(
                    paper_size=settings.paper_size,
                    orientation=settings.orientation,
                    remote_enabled=settings.remote_enabled,
                )
            else:
                PdfBackend._instance = PdfBackend()
            logger.info(f"PdfBackend: Created instance {id(PdfBackend._instance)}")
        return PdfBackend._instance

    def _load(self):
        if self._pisa is None:
            try:
                from xhtml2pdf import pisa
            except ImportError as ie:
                logger.error(f"xhtml2pdf import failed: {ie}")
                raise PdfExportError(f"xhtml2pdf library is missing/broken. Detail: {ie}") from ie
            self._pisa = pisa
        return self._pisa

    def _link_callback(self, uri, rel):
        if not self.remote_enabled and REMOTE_URI_PATTERN.match(uri or ''):
            logger.warning(f"PdfBackend: Remote resource blocked: {uri}")
            return ''
        return uri

    def render(self, document) -> bytes:
        pisa = self._load()
        source = build_pdf_html(document, self.paper_size, self.orientation)

        result = io.BytesIO()
        try:
            pisa_status = pisa.CreatePDF(
                source,
                dest=result,
                encoding='utf-8',
                link_callback=self._link_callback,
            )
        except Exception as e:
            logger.exception("PdfBackend: renderer crashed")
            raise PdfExportError(f"PDF Export Failed: {e}") from e

        if pisa_status.err:
            raise PdfExportError(f"PDF generation error: {pisa_status.err}")

        logger.info(f"PdfExport: Generated {result.getbuffer().nbytes} bytes for '{document.title}'.")
        return result.getvalue()


def export_pdf(document, backend=None) -> bytes:
    """Renders an assembled Document to PDF bytes."""
    backend = backend or PdfBackend.get_instance()
    return backend.render(document)
