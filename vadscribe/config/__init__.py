"""YAML configuration for vadscribe."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ..models.vad import VADConfig

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "pt-BR"
DEFAULT_SAMPLE_RATE = 16000

# Keys holding file paths; relative values are taken from the config file's directory
PATH_KEYS: Tuple[str, ...] = (
    'google_cloud.credentials_path',
    'logging.file_path',
)


class VadScribeConfig:
    """Loads a YAML file and exposes its values with dot-notation lookups."""

    def __init__(self, config_path: str):
        """Load configuration from ``config_path``.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the path is empty or the file is not a YAML mapping
        """
        if not config_path:
            raise ValueError("A configuration file path is required")
        self.config_file = Path(config_path)
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Reading vadscribe configuration: {self.config_file}")
        self.config: Dict[str, Any] = self._read_yaml()
        self._anchor_paths()
        logger.info(f"Configuration sections: {', '.join(sorted(self.config))}")

    def _read_yaml(self) -> Dict[str, Any]:
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_file}: {e}")

        if not data:
            raise ValueError(f"Configuration file is empty: {self.config_file}")
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        return data

    def _anchor_paths(self) -> None:
        base_dir = self.config_file.parent
        for key_path in PATH_KEYS:
            value = self.get(key_path)
            if value and not os.path.isabs(value):
                self.set(key_path, str(base_dir / value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a value by dot-separated path, e.g. ``'vad.silence_threshold'``."""
        node: Any = self.config
        for part in key_path.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key_path: str, value: Any) -> None:
        """Set a value by dot-separated path, creating missing sections."""
        *parents, leaf = key_path.split('.')
        node = self.config
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
        logger.debug(f"Config override {key_path} = {value!r}")

    def get_vad_config(self) -> VADConfig:
        """Silence detection settings from the ``vad`` section, defaults elsewhere."""
        defaults = VADConfig()
        return VADConfig(
            min_recording_duration=float(self.get('vad.min_recording_duration', defaults.min_recording_duration)),
            silence_threshold=float(self.get('vad.silence_threshold', defaults.silence_threshold)),
            silence_duration=float(self.get('vad.silence_duration', defaults.silence_duration)),
            window_size=int(self.get('vad.window_size', defaults.window_size)),
        )

    def get_api_key(self) -> Optional[str]:
        return self.get('google_cloud.api_key') or None

    def get_google_credentials_path(self) -> Optional[str]:
        """Service account file, or None when not configured.

        Raises:
            FileNotFoundError: If a path is configured but the file is missing
        """
        configured = self.get('google_cloud.credentials_path')
        if not configured:
            return None

        credentials = Path(configured)
        if not credentials.is_file():
            raise FileNotFoundError(f"Google credentials file not found: {configured}")
        return str(credentials.absolute())

    def get_language(self) -> str:
        return self.get('google_cloud.language', DEFAULT_LANGUAGE)

    def get_sample_rate(self) -> int:
        return int(self.get('audio.sample_rate', DEFAULT_SAMPLE_RATE))
