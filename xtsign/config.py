"""
Project configuration for xtsign.

Read from ``xtsign.config.json`` in the project root:

    {
      "dev":   {"extension_dir": "extension"},
      "keys":  {"public_key_path": "...", "private_key_path": "..."},
      "build": {"dist_dir": "dist"}
    }

Every section is optional. ``XTSIGN_EXTENSION_DIR`` and
``XTSIGN_PRIVATE_KEY_PATH`` override the file.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .crypto.keys import PRIVATE_KEY_FILENAME, PUBLIC_KEY_FILENAME
from .errors import ConfigError
from .manifest.document import MANIFEST_FILENAME

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "xtsign.config.json"
DEFAULT_EXTENSION_DIR = "extension"
DEFAULT_DIST_DIR = "dist"

ENV_EXTENSION_DIR = "XTSIGN_EXTENSION_DIR"
ENV_PRIVATE_KEY_PATH = "XTSIGN_PRIVATE_KEY_PATH"


@dataclass
class ProjectConfig:
    """Resolved project layout."""
    root_dir: Path = field(default_factory=Path.cwd)
    extension_dir: str = DEFAULT_EXTENSION_DIR
    dist_dir: str = DEFAULT_DIST_DIR
    public_key_path: Optional[str] = None
    private_key_path: Optional[str] = None
    include_project_config: bool = True
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def metadata_dir(self) -> Path:
        return self.root_dir / self.extension_dir

    @property
    def manifest_path(self) -> Path:
        return self.metadata_dir / MANIFEST_FILENAME

    @property
    def config_path(self) -> Path:
        return self.root_dir / CONFIG_FILENAME

    def resolved_public_key_path(self) -> Path:
        if self.public_key_path:
            return self.root_dir / self.public_key_path
        return self.metadata_dir / PUBLIC_KEY_FILENAME

    def resolved_private_key_path(self) -> Path:
        if self.private_key_path:
            return self.root_dir / self.private_key_path
        return self.metadata_dir / PRIVATE_KEY_FILENAME


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section of {CONFIG_FILENAME} must be an object")
    return value


def load_config(root_dir: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """Load project configuration, falling back to defaults when absent."""
    root = Path(root_dir) if root_dir is not None else Path.cwd()
    config_path = root / CONFIG_FILENAME

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"failed to parse {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        logger.debug("Loaded project config from %s", config_path)

    dev = _section(data, "dev")
    keys = _section(data, "keys")
    build = _section(data, "build")

    config = ProjectConfig(
        root_dir=root,
        extension_dir=dev.get("extension_dir") or DEFAULT_EXTENSION_DIR,
        dist_dir=build.get("dist_dir") or DEFAULT_DIST_DIR,
        public_key_path=keys.get("public_key_path"),
        private_key_path=keys.get("private_key_path"),
        raw=data,
    )

    env_dir = os.getenv(ENV_EXTENSION_DIR)
    if env_dir:
        config.extension_dir = env_dir
    env_key = os.getenv(ENV_PRIVATE_KEY_PATH)
    if env_key:
        config.private_key_path = env_key

    return config


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_EXTENSION_DIR",
    "ENV_EXTENSION_DIR",
    "ENV_PRIVATE_KEY_PATH",
    "ProjectConfig",
    "load_config",
]
