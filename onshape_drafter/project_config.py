"""
JSON-based project configuration for onshape_drafter.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (the dataclasses below)
2. User config (~/.drafter.json)
3. Project config (./.drafter.json)
   An explicit --config path replaces 2 and 3.
4. CLI arguments

Example .drafter.json:
{
    "api": {
        "stack": "cad",
        "credentials_file": "credentials.json",
        "max_workers": 4
    },
    "poll": {
        "interval_seconds": 1.0,
        "timeout_seconds": 60.0
    },
    "annotations": {
        "text_height": 0.12,
        "policy": "lenient",
        "view_selection": "all"
    },
    "input": {
        "data_file": "drafterData.json"
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from onshape_drafter.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".drafter.json"

POLICIES = ("lenient", "strict")
VIEW_SELECTIONS = ("all", "random")


@dataclass
class ApiConfig:
    """Remote API access."""
    stack: str = "cad"
    credentials_file: str = "credentials.json"
    timeout_seconds: float = 30.0
    max_workers: int = 4  # concurrent view geometry fetches


@dataclass
class PollConfig:
    """Job status polling."""
    interval_seconds: float = 1.0
    timeout_seconds: float = 60.0


@dataclass
class AnnotationsConfig:
    """Annotation placement and formatting."""
    text_height: float = 0.12
    chord_angle_deg: float = 45.0
    far_chord_angle_deg: float = 225.0
    label_offset_factor: float = 2.0  # label = center + factor * (chord - center)
    dimension_decimals: int = 2
    dimension_postfix: str = "R<>"
    policy: str = "lenient"
    view_selection: str = "all"


@dataclass
class InputConfig:
    """Local input file."""
    data_file: str = "drafterData.json"
    description: str = "Drafter annotations"


_SECTIONS = {
    'api': ApiConfig,
    'poll': PollConfig,
    'annotations': AnnotationsConfig,
    'input': InputConfig,
}


def _typed_value(section_name: str, key: str, value: Any, default: Any) -> Any:
    """Check a config value against the type of its default; ints widen to float."""
    expected = type(default)
    if not isinstance(value, bool):
        if expected is float and isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, expected):
            return value
    raise ConfigurationError(
        f"{section_name}.{key} must be {expected.__name__}, got {type(value).__name__} {value!r}")


def _read_document(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    api: ApiConfig = field(default_factory=ApiConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    annotations: AnnotationsConfig = field(default_factory=AnnotationsConfig)
    input: InputConfig = field(default_factory=InputConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    def validate(self) -> 'ProjectConfig':
        """Check value ranges and enumerations.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: on the first invalid value
        """
        if self.annotations.policy not in POLICIES:
            raise ConfigurationError(
                f"annotations.policy must be one of {POLICIES}, got {self.annotations.policy!r}")
        if self.annotations.view_selection not in VIEW_SELECTIONS:
            raise ConfigurationError(
                f"annotations.view_selection must be one of {VIEW_SELECTIONS}, "
                f"got {self.annotations.view_selection!r}")
        if self.annotations.text_height <= 0:
            raise ConfigurationError("annotations.text_height must be positive")
        if self.annotations.dimension_decimals < 0:
            raise ConfigurationError("annotations.dimension_decimals must not be negative")
        if self.poll.interval_seconds <= 0 or self.poll.timeout_seconds <= 0:
            raise ConfigurationError("poll interval and timeout must be positive")
        if self.api.max_workers < 1:
            raise ConfigurationError("api.max_workers must be at least 1")
        if not self.api.stack:
            raise ConfigurationError("api.stack must not be empty")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from a dictionary.

        Unknown sections and keys are ignored with a debug message, so that
        ``_comment`` entries in sample files are harmless.

        Raises:
            ConfigurationError: if the document or a known section is not an
                object, or a value does not have its field's type
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be a JSON object, got {type(data).__name__}")

        config = cls()

        for section_name, section_data in data.items():
            if section_name not in _SECTIONS:
                logger.debug("Ignoring config section %r", section_name)
                continue
            if not isinstance(section_data, dict):
                raise ConfigurationError(f"Config section {section_name!r} must be an object")
            section = getattr(config, section_name)
            for key, value in section_data.items():
                if hasattr(section, key):
                    setattr(section, key, _typed_value(section_name, key, value, getattr(section, key)))
                else:
                    logger.debug("Ignoring config key %s.%s", section_name, key)

        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from a JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        data = _read_document(path)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def config_search_paths() -> List[Path]:
    """Implicit config file locations, lowest precedence first."""
    return [Path.home() / CONFIG_FILENAME, Path.cwd() / CONFIG_FILENAME]


def find_config_file(explicit_config: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Find the highest-precedence configuration file.

    Search order:
    1. Explicit config path (if provided)
    2. .drafter.json in the current working directory
    3. ~/.drafter.json

    Raises:
        ConfigurationError: if an explicit path was given but does not exist
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if not explicit.exists():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit

    for config_path in reversed(config_search_paths()):
        if config_path.exists():
            return config_path

    return None


def load_config(explicit_config: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    An explicit config is used on its own, and one that cannot be parsed is a
    configuration error. Otherwise ~/.drafter.json and ./.drafter.json are
    layered key by key, the project file winning; a broken implicit file is
    logged and left out.
    """
    if explicit_config:
        config_path = find_config_file(explicit_config)
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigurationError(f"Failed to load config {config_path}: {e}") from e

    layered: Dict[str, Any] = {}
    for config_path in config_search_paths():
        if not config_path.exists():
            continue
        try:
            data = _read_document(config_path)
            ProjectConfig.from_dict(data)
        except (json.JSONDecodeError, IOError, ConfigurationError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)
            continue
        for section_name, section_data in data.items():
            if isinstance(section_data, dict):
                layered.setdefault(section_name, {}).update(section_data)
        logger.info("Configuration loaded from %s", config_path)

    return ProjectConfig.from_dict(layered)


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Write a documented sample configuration file."""
    sample = {
        "_comment": "Onshape drafter configuration",
        "_version": "1.0",
        "api": {
            "_comment": "Stack name is looked up in the credentials file",
            **asdict(ApiConfig()),
        },
        "poll": {
            "_comment": "Modify/translation job polling",
            **asdict(PollConfig()),
        },
        "annotations": {
            "_comment": "policy: lenient|strict, view_selection: all|random",
            **asdict(AnnotationsConfig()),
        },
        "input": asdict(InputConfig()),
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
