import os
import re
import yaml
from typing import Any, Dict, IO

from utils.errors import ConfigError

# Matches a whole scalar of the form ${VAR_NAME}
ENV_VAR_MATCHER = re.compile(r"^\$\{(\w+)\}$")


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader subclass so the env resolver is not registered on yaml.SafeLoader itself."""


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Replaces `${VAR_NAME}` with the value of the VAR_NAME environment variable.
    """
    value = loader.construct_scalar(node)
    match = ENV_VAR_MATCHER.match(value)
    if not match:
        return value

    env_var = match.group(1)
    replacement = os.getenv(env_var)
    if replacement is None:
        raise ConfigError(f"Environment variable '{env_var}' not found for substitution in config.")
    return replacement


_ConfigLoader.add_constructor("!env", _env_var_constructor)
_ConfigLoader.add_implicit_resolver("!env", ENV_VAR_MATCHER, None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration. Empty documents yield {}.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    try:
        config = yaml.load(config_file, Loader=_ConfigLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration root must be a mapping.")
    return config
