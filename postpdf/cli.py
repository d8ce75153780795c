"""Command-line front end: render an article body file, or serve the web endpoints."""

import argparse
import json
import logging
import sys
from pathlib import Path

from postpdf.core.assembler import ArticleInput, assemble
from postpdf.core.pipeline import PIPELINES
from postpdf.core.state import Settings
from postpdf.plugins.pdf_export.plugin import PdfBackend, PdfExportError, export_pdf, pdf_filename
from postpdf.plugins.preview.plugin import render_preview

logger = logging.getLogger("postpdf.cli")


def json_directory_loader(directory):
    """Loader reading <directory>/<slug>.json files with title/header_image_url/body_html keys."""
    root = Path(directory)

    def load(slug):
        path = root / f"{slug}.json"
        # Slugs come from URLs; refuse anything resolving outside the directory.
        if path.resolve().parent != root.resolve() or not path.is_file():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read article {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Article {path} is not a JSON object")
            return None
        title = data.get('title', '')
        body_html = data.get('body_html', '')
        header_image_url = data.get('header_image_url')
        if not isinstance(title, str) or not isinstance(body_html, str):
            logger.error(f"Article {path}: 'title' and 'body_html' must be strings")
            return None
        if header_image_url is not None and not isinstance(header_image_url, str):
            logger.error(f"Article {path}: 'header_image_url' must be a string")
            return None
        return ArticleInput(
            title=title,
            body_html=body_html,
            header_image_url=header_image_url or None,
        )

    return load


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="postpdf",
        description="Convert a web article into a print-ready PDF or HTML preview.",
    )
    parser.add_argument("--config", type=Path, help="Path to a postpdf.json settings file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="Render an article body file")
    render_parser.add_argument("input", type=Path, help="HTML file holding the article body")
    render_parser.add_argument("--title", required=True, help="Article title")
    render_parser.add_argument("--header-image", default=None, help="Featured image URL")
    render_parser.add_argument(
        "--pipeline",
        choices=sorted(PIPELINES),
        default=None,
        help="Pipeline version (defaults to the configured one)",
    )
    render_parser.add_argument(
        "--preview",
        action="store_true",
        help="Write the HTML preview instead of a PDF",
    )
    render_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output path (defaults to the slugified title in the current directory)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the preview/download web endpoints")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument(
        "--articles",
        type=Path,
        default=None,
        help="Directory of <slug>.json articles served under /articles/<slug>",
    )
    return parser.parse_args(argv)


def _run_render(args, settings) -> int:
    try:
        raw_body = args.input.read_text(encoding='utf-8')
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1

    config = settings.pipeline_config(args.pipeline)
    try:
        document = assemble(args.title, args.header_image, raw_body, config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    if args.preview:
        output = args.output or Path(pdf_filename(document.title)).with_suffix('.html')
        output.write_text(render_preview(document, config.shortcode_prefixes), encoding='utf-8')
    else:
        output = args.output or Path(pdf_filename(document.title))
        try:
            pdf = export_pdf(document, PdfBackend.get_instance(settings))
        except PdfExportError as e:
            logger.error(str(e))
            return 1
        output.write_bytes(pdf)

    logger.info(f"Saved {output}")
    return 0


def _run_serve(args, settings) -> int:
    from postpdf.web import create_app

    loader = json_directory_loader(args.articles) if args.articles else None
    app = create_app(loader=loader, settings=settings)
    app.run(host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
    )

    settings = Settings(args.config) if args.config else Settings.get_instance()
    if args.command == "render":
        return _run_render(args, settings)
    return _run_serve(args, settings)


if __name__ == "__main__":
    sys.exit(main())
