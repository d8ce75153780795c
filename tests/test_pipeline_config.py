import json
import unittest

import pytest

from postpdf.core.pipeline import (
    DEFAULT_PIPELINE,
    Disposition,
    PIPELINES,
    RenderTarget,
    StylePolicy,
    UnknownPipelineError,
    get_pipeline,
)
from postpdf.core.state import DEFAULTS, Settings


class TestPipelinePresets(unittest.TestCase):
    def test_default_is_latest(self):
        self.assertIs(get_pipeline(), PIPELINES[DEFAULT_PIPELINE])

    def test_original_release(self):
        config = get_pipeline("1.0")
        self.assertEqual(config.lazy_class_marker, "lazy")
        self.assertIs(config.style_policy, StylePolicy.STRIP)
        self.assertIs(config.pdf_target(), RenderTarget.PDF_ATTACHMENT)
        self.assertFalse(config.robots_noindex)

    def test_inline_release(self):
        config = get_pipeline("1.1")
        self.assertIs(config.disposition, Disposition.INLINE)
        self.assertIs(config.pdf_target(), RenderTarget.PDF_INLINE)
        self.assertTrue(config.wrap_images_inline)

    def test_latest_release(self):
        config = get_pipeline("1.2")
        self.assertEqual(config.lazy_class_marker, "lazyload")
        self.assertIs(config.style_policy, StylePolicy.INJECT)

    def test_unknown_version(self):
        with self.assertRaises(UnknownPipelineError):
            get_pipeline("9.9")


class TestSettings:
    def test_defaults_written_when_missing(self, tmp_path):
        path = tmp_path / "postpdf.json"
        settings = Settings(path)
        assert path.exists()
        assert json.loads(path.read_text()) == DEFAULTS
        assert settings.pipeline == DEFAULT_PIPELINE
        assert settings.paper_size == "a4"
        assert settings.orientation == "portrait"
        assert settings.remote_enabled is True

    def test_overrides(self, tmp_path):
        path = tmp_path / "postpdf.json"
        path.write_text(json.dumps({"pipeline": "1.1", "remote_enabled": False, "bogus": 1}))
        settings = Settings(path)
        assert settings.pipeline == "1.1"
        assert settings.remote_enabled is False
        assert settings.get("bogus") is None
        assert settings.pipeline_config() is get_pipeline("1.1")
        assert settings.pipeline_config("1.0") is get_pipeline("1.0")

    def test_corrupt_file_falls_back(self, tmp_path, caplog):
        path = tmp_path / "postpdf.json"
        path.write_text("{not json")
        settings = Settings(path)
        assert settings.values == DEFAULTS
        assert "Error reading settings" in caplog.text

    def test_non_object_file_falls_back(self, tmp_path):
        path = tmp_path / "postpdf.json"
        path.write_text("[1, 2]")
        assert Settings(path).values == DEFAULTS

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"paper_size": "letter"}))
        monkeypatch.setenv("POSTPDF_CONFIG", str(path))
        settings = Settings.get_instance()
        assert settings.config_path == path
        assert settings.paper_size == "letter"
        assert Settings.get_instance() is settings

    def test_unknown_configured_pipeline_falls_back(self, tmp_path, caplog):
        path = tmp_path / "postpdf.json"
        path.write_text(json.dumps({"pipeline": "0.1"}))
        settings = Settings(path)
        assert settings.pipeline == DEFAULT_PIPELINE
        assert settings.pipeline_config() is get_pipeline(DEFAULT_PIPELINE)
        assert "Unknown pipeline '0.1'" in caplog.text

    @pytest.mark.parametrize("value", ["abc", None, 0, -10, True, [1]])
    def test_invalid_max_body_bytes_falls_back(self, tmp_path, caplog, value):
        path = tmp_path / "postpdf.json"
        path.write_text(json.dumps({"max_body_bytes": value}))
        settings = Settings(path)
        assert settings.max_body_bytes == DEFAULTS["max_body_bytes"]
        assert "Invalid max_body_bytes" in caplog.text

    def test_numeric_string_max_body_bytes(self, tmp_path):
        path = tmp_path / "postpdf.json"
        path.write_text(json.dumps({"max_body_bytes": "2048"}))
        assert Settings(path).max_body_bytes == 2048
