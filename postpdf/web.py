import io
import logging

from flask import Blueprint, Flask, abort, current_app, jsonify, request, send_file

from postpdf.core.assembler import ArticleInput, assemble
from postpdf.core.pipeline import Disposition, RenderTarget, UnknownPipelineError
from postpdf.core.state import Settings
from postpdf.plugins.pdf_export.plugin import PdfBackend, PdfExportError, export_pdf, pdf_filename
from postpdf.plugins.preview.plugin import render_preview

logger = logging.getLogger(__name__)

export_bp = Blueprint('postpdf', __name__)
blueprint = export_bp

PREVIEW_SELECTOR = 'preview_pdf_html'
DOWNLOAD_SELECTOR = 'download_pdf'

# JSON fields that may be omitted or null, but must be strings when given
OPTIONAL_STRING_FIELDS = ('header_image_url', 'pipeline', 'disposition')


class RenderDispatcher:
    """Turns an assembled Document into an HTTP response for the requested target."""

    def __init__(self, settings, backend, loader=None):
        self.settings = settings
        self.backend = backend
        self.loader = loader

    def dispatch(self, document, target, config):
        if target is RenderTarget.PREVIEW_HTML:
            html = render_preview(document, config.shortcode_prefixes)
            response = current_app.response_class(html, mimetype='text/html')
        else:
            pdf = export_pdf(document, self.backend)
            response = send_file(
                io.BytesIO(pdf),
                mimetype='application/pdf',
                as_attachment=target is RenderTarget.PDF_ATTACHMENT,
                download_name=pdf_filename(document.title),
            )
        if config.robots_noindex:
            response.headers['X-Robots-Tag'] = 'noindex, nofollow'
        return response


def _dispatcher() -> RenderDispatcher:
    return current_app.extensions['postpdf']


def _pdf_target(config, disposition=None):
    if disposition is None:
        return config.pdf_target()
    try:
        disposition = Disposition(disposition)
    except ValueError:
        abort(400, description=f"Unknown disposition '{disposition}'")
    if disposition is Disposition.INLINE:
        return RenderTarget.PDF_INLINE
    return RenderTarget.PDF_ATTACHMENT


def _assemble(article, config):
    try:
        return assemble(article.title, article.header_image_url, article.body_html, config)
    except ValueError as e:
        abort(400, description=str(e))


def _article_from_json():
    limit = _dispatcher().settings.max_body_bytes
    if request.content_length is not None and request.content_length > limit:
        abort(413, description=f"Article larger than {limit} bytes")
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Expected a JSON object")
    title = payload.get('title')
    body_html = payload.get('body_html')
    if not isinstance(title, str) or not isinstance(body_html, str):
        abort(400, description="'title' and 'body_html' are required strings")
    for key in OPTIONAL_STRING_FIELDS:
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            abort(400, description=f"'{key}' must be a string")
    return payload, ArticleInput(
        title=title,
        body_html=body_html,
        header_image_url=payload.get('header_image_url') or None,
    )


@export_bp.route('/articles/<slug>')
def article(slug):
    dispatcher = _dispatcher()
    if dispatcher.loader is None:
        abort(404, description="No article source configured")

    article_input = dispatcher.loader(slug)
    if article_input is None:
        abort(404, description=f"Article '{slug}' not found")

    config = dispatcher.settings.pipeline_config(request.args.get('pipeline'))
    if PREVIEW_SELECTOR in request.args:
        target = RenderTarget.PREVIEW_HTML
    elif DOWNLOAD_SELECTOR in request.args:
        target = config.pdf_target()
    else:
        abort(400, description=f"Pass ?{PREVIEW_SELECTOR}=1 or ?{DOWNLOAD_SELECTOR}=1")

    document = _assemble(article_input, config)
    return dispatcher.dispatch(document, target, config)


@export_bp.route('/api/export/pdf', methods=['POST'])
def export_pdf_api():
    dispatcher = _dispatcher()
    payload, article_input = _article_from_json()
    config = dispatcher.settings.pipeline_config(payload.get('pipeline'))
    target = _pdf_target(config, payload.get('disposition'))
    document = _assemble(article_input, config)
    return dispatcher.dispatch(document, target, config)


@export_bp.route('/api/export/html', methods=['POST'])
def export_html_api():
    dispatcher = _dispatcher()
    payload, article_input = _article_from_json()
    config = dispatcher.settings.pipeline_config(payload.get('pipeline'))
    document = _assemble(article_input, config)
    return dispatcher.dispatch(document, RenderTarget.PREVIEW_HTML, config)


@export_bp.errorhandler(UnknownPipelineError)
def handle_unknown_pipeline(e):
    return jsonify(error=str(e.args[0]) if e.args else str(e)), 400


@export_bp.errorhandler(PdfExportError)
def handle_export_error(e):
    logger.error(f"PDF export failed: {e}")
    return jsonify(error=str(e)), 500


def create_app(loader=None, settings=None, backend=None) -> Flask:
    """
    Builds the Flask app serving article previews and PDF downloads.
    ``loader`` maps a slug to an ArticleInput (or None); content retrieval lives with the host.
    """
    settings = settings or Settings.get_instance()
    backend = backend or PdfBackend.get_instance(settings)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = settings.max_body_bytes
    app.extensions['postpdf'] = RenderDispatcher(settings, backend, loader)
    app.register_blueprint(export_bp)
    return app
