"""Toolkit configuration persisted as JSON."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .compression.config import CompressorConfig
from .compression.content_advisor import AdvisorConfig
from .errors import ConfigError

# Config file location (current working directory)
CONFIG_FILE = Path.cwd() / "imagetoolkit.json"


@dataclass
class ToolkitConfig:
    """All toolkit settings."""
    compressor: CompressorConfig = field(default_factory=CompressorConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)

    def to_dict(self) -> Dict[str, Any]:
        advisor = asdict(self.advisor)
        # Keys come from the environment, never written back
        advisor['api_key'] = ""
        return {
            'compressor': self.compressor.to_dict(),
            'advisor': advisor,
        }


def _build(cls, section: Any, name: str):
    """Instantiate a config dataclass from a JSON section."""
    if section is None:
        return cls()
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be an object")

    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")

    try:
        return cls(**section)
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' section: {e}") from e


def load_config(path: Optional[Union[str, Path]] = None) -> ToolkitConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Config file (defaults to imagetoolkit.json in the cwd)

    Returns:
        ToolkitConfig; defaults if the file does not exist

    Raises:
        ConfigError: If the file is unreadable or invalid
    """
    path = Path(path) if path is not None else CONFIG_FILE
    if not path.exists():
        return ToolkitConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")

    return ToolkitConfig(
        compressor=_build(CompressorConfig, data.get('compressor'), 'compressor'),
        advisor=_build(AdvisorConfig, data.get('advisor'), 'advisor'),
    )


def save_config(config: ToolkitConfig, path: Optional[Union[str, Path]] = None) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration to save
        path: Config file (defaults to imagetoolkit.json in the cwd)

    Returns:
        True if saved successfully
    """
    path = Path(path) if path is not None else CONFIG_FILE
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        return True
    except IOError:
        return False
