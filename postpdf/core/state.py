import json
import logging
import os
from pathlib import Path
import sys

from postpdf.core.pipeline import DEFAULT_PIPELINE, PIPELINES, get_pipeline

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "POSTPDF_CONFIG"

DEFAULTS = {
    "pipeline": DEFAULT_PIPELINE,
    "paper_size": "a4",
    "orientation": "portrait",
    "remote_enabled": True,
    "max_body_bytes": 5 * 1024 * 1024,
}


class Settings:
    _instance = None

    def __init__(self, config_path=None):
        # Explicit path > env override > next to executable / working directory
        if config_path:
            self.config_path = Path(config_path)
        elif os.environ.get(CONFIG_ENV_VAR):
            self.config_path = Path(os.environ[CONFIG_ENV_VAR]).expanduser()
        elif getattr(sys, 'frozen', False):
            self.config_path = Path(sys.executable).parent / "postpdf.json"
        else:
            self.config_path = Path("postpdf.json").resolve()

        self._ensure_config()
        self.values = self._load()

    @staticmethod
    def get_instance():
        if Settings._instance is None:
            Settings._instance = Settings()
            logger.info(f"Settings: Loaded from {Settings._instance.config_path}")
        return Settings._instance

    @staticmethod
    def reset_instance():
        Settings._instance = None

    def _ensure_config(self):
        """Create a config file with defaults if missing."""
        if not self.config_path.exists():
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(DEFAULTS, f, indent=4)
            except OSError as e:
                logger.warning(f"Failed to write default settings to {self.config_path}: {e}")

    def _load(self):
        values = dict(DEFAULTS)
        try:
            if not self.config_path.exists():
                return values
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading settings {self.config_path}, using defaults: {e}")
            return values

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.config_path} is not a JSON object, using defaults")
            return values

        unknown = set(data) - set(DEFAULTS)
        if unknown:
            logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")
        values.update({k: v for k, v in data.items() if k in DEFAULTS})

        if not isinstance(values["pipeline"], str) or values["pipeline"] not in PIPELINES:
            logger.warning(
                f"Unknown pipeline '{values['pipeline']}' in {self.config_path}, "
                f"using {DEFAULTS['pipeline']}"
            )
            values["pipeline"] = DEFAULTS["pipeline"]

        try:
            max_body_bytes = int(values["max_body_bytes"])
        except (TypeError, ValueError):
            max_body_bytes = 0
        if isinstance(values["max_body_bytes"], bool) or max_body_bytes <= 0:
            logger.warning(
                f"Invalid max_body_bytes {values['max_body_bytes']!r} in {self.config_path}, "
                f"using {DEFAULTS['max_body_bytes']}"
            )
            max_body_bytes = DEFAULTS["max_body_bytes"]
        values["max_body_bytes"] = max_body_bytes
        return values

    def get(self, key):
        return self.values.get(key, DEFAULTS.get(key))

    @property
    def pipeline(self):
        return self.get("pipeline")

    @property
    def paper_size(self):
        return self.get("paper_size")

    @property
    def orientation(self):
        return self.get("orientation")

    @property
    def remote_enabled(self):
        return bool(self.get("remote_enabled"))

    @property
    def max_body_bytes(self):
        return int(self.get("max_body_bytes"))

    def pipeline_config(self, version=None):
        return get_pipeline(version or self.pipeline)
