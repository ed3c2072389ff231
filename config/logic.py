import collections.abc
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.loader import load_config
from config.models import Config
from utils.errors import ConfigError
from utils.logger import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
USER_CONFIG_DIR = Path.home() / ".aireview"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_FILENAME = ".aireview.yaml"


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges two dictionaries.
    Lists are replaced, not merged.
    """
    for key, value in source.items():
        if isinstance(value, collections.abc.Mapping) and key in target and isinstance(target[key], collections.abc.Mapping):
            target[key] = deep_merge(dict(target[key]), value)
        else:
            target[key] = value
    return target


def find_project_root(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the repository root by searching upwards for a .git entry.
    """
    d = start_dir.resolve()
    while True:
        if (d / ".git").exists():
            return d
        if d == d.parent:
            return None
        d = d.parent


def find_project_config(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the project-specific configuration file (.aireview.yaml) in the repository root.
    """
    project_root = find_project_root(start_dir)
    if project_root:
        project_config_path = project_root / PROJECT_CONFIG_FILENAME
        if project_config_path.is_file():
            return project_config_path
    return None


def _read(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return load_config(f)


def load_and_merge_configs(custom_config_path: Optional[str] = None, start_dir: Path = Path(".")) -> Config:
    """
    Loads all configurations (default, user, project) and merges them.
    A custom config path can be provided to override all others.

    Raises:
        ConfigError: If the default or custom file is missing/broken, or validation fails.
    """
    if not DEFAULT_CONFIG_PATH.is_file():
        raise ConfigError("Default configuration file not found.")

    if custom_config_path:
        path = Path(custom_config_path)
        if not path.is_file():
            raise ConfigError(f"Custom config file not found at: {custom_config_path}")
        logger.info(f"Using custom configuration from: {custom_config_path}")
        merged_config = deep_merge(_read(DEFAULT_CONFIG_PATH), _read(path))
        return _validate(merged_config)

    optional_paths: List[Path] = []
    if USER_CONFIG_PATH.is_file():
        optional_paths.append(USER_CONFIG_PATH)
    project_config_path = find_project_config(start_dir)
    if project_config_path:
        optional_paths.append(project_config_path)

    merged_config = _read(DEFAULT_CONFIG_PATH)
    for path in optional_paths:
        logger.info(f"Loading configuration from: {path}")
        try:
            merged_config = deep_merge(merged_config, _read(path))
        except (OSError, ConfigError) as e:
            logger.warning(f"Could not load or parse config at {path}: {e}")

    return _validate(merged_config)


def _validate(merged_config: Dict[str, Any]) -> Config:
    try:
        final_config = Config(**merged_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    logger.debug(f"Final merged config: {final_config.model_dump_json(indent=2, exclude={'backend': {'api_key'}})}")
    return final_config
