import sys
from pathlib import Path

import pytest

# Setup paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from postpdf.core.state import Settings
from postpdf.plugins.pdf_export.plugin import PdfBackend


@pytest.fixture
def settings(tmp_path):
    return Settings(tmp_path / "postpdf.json")


@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    Settings.reset_instance()
    PdfBackend._instance = None
