"""Configuration for output capture and normalization.

Defaults come from the environment so deployments can tune capture without
code changes; explicit values (from a dict or a JSON/YAML file) override
them.

Usage:
    from shell_output.config import OutputConfig, load_config

    config = OutputConfig()                      # environment defaults
    config = OutputConfig(tab_size=4)            # explicit override
    config = load_config("capture.yaml")         # file, falling back to env

Environment Variables:
    SHELL_OUTPUT_TAB_SIZE: Tab stop width (default: 8)
    SHELL_OUTPUT_IDLE_TIMEOUT: Seconds of silence before output is settled (default: 0.5)
    SHELL_OUTPUT_MAX_WAIT: Hard ceiling for a single read in seconds (default: 30.0)
    SHELL_OUTPUT_MAX_BUFFER: Maximum characters captured per read (default: 65536)
    SHELL_OUTPUT_MAX_PAGES: Maximum pager dismissals per read (default: 50000)
    SHELL_OUTPUT_AUTO_DISMISS_PAGER: Send the dismissal key on pager prompts (default: true)
    SHELL_OUTPUT_PAGER_KEY: Key sent to dismiss a pager (default: a space)
    SHELL_OUTPUT_SANITIZE: Strip disallowed control bytes from chunks (default: true)
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass
class OutputConfig:
    """Settings shared by the session layer and the normalizer."""
    tab_size: int = field(default_factory=lambda: int(os.environ.get("SHELL_OUTPUT_TAB_SIZE", "8")))
    idle_timeout: float = field(default_factory=lambda: float(os.environ.get("SHELL_OUTPUT_IDLE_TIMEOUT", "0.5")))
    max_wait: float = field(default_factory=lambda: float(os.environ.get("SHELL_OUTPUT_MAX_WAIT", "30.0")))
    max_buffer: int = field(default_factory=lambda: int(os.environ.get("SHELL_OUTPUT_MAX_BUFFER", str(64 * 1024))))
    max_pages: int = field(default_factory=lambda: int(os.environ.get("SHELL_OUTPUT_MAX_PAGES", "50000")))
    auto_dismiss_pager: bool = field(default_factory=lambda: _env_flag("SHELL_OUTPUT_AUTO_DISMISS_PAGER", "true"))
    pager_dismiss_key: str = field(default_factory=lambda: os.environ.get("SHELL_OUTPUT_PAGER_KEY", " "))
    sanitize: bool = field(default_factory=lambda: _env_flag("SHELL_OUTPUT_SANITIZE", "true"))

    def __post_init__(self):
        if self.tab_size < 1:
            raise ValueError(f"tab_size must be >= 1, got {self.tab_size}")
        if self.idle_timeout <= 0 or self.max_wait <= 0:
            raise ValueError("idle_timeout and max_wait must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OutputConfig':
        """Create a config from a mapping, ignoring unknown keys.

        Args:
            data: Mapping of field names to values. Missing fields use the
                environment defaults.

        Raises:
            ValueError: If a value is out of range.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown output config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Optional[Union[str, Path]]) -> OutputConfig:
    """Load an ``OutputConfig`` from a JSON or YAML file.

    Args:
        path: Path to a ``.json``, ``.yaml`` or ``.yml`` file. None or a
            missing file yields the environment defaults.

    Returns:
        The loaded configuration.

    Raises:
        ValueError: If the file cannot be parsed, is not a mapping, has an
            unsupported suffix, or contains out-of-range values.
    """
    if path is None:
        return OutputConfig()

    file_path = Path(path)
    if not file_path.exists():
        logger.debug("Output config file does not exist: %s", file_path)
        return OutputConfig()

    content = file_path.read_text(encoding='utf-8')
    try:
        if file_path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        elif file_path.suffix == '.json':
            data = json.loads(content)
        else:
            raise ValueError(f"Unsupported config file type: {file_path.suffix!r}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"Invalid output config file {file_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Output config file must contain a mapping: {file_path}")

    logger.debug("Loaded output config from %s", file_path)
    return OutputConfig.from_dict(data)
