from config.models import BackendConfig
from core.contracts.backend import ReviewBackend
from core.registry import backend_registry
from utils.errors import AIReviewException, ConfigError

# Imported for their registration side effect
from core.backends import claude, codex, mock, openai  # noqa: F401


def get_backend(config: BackendConfig) -> ReviewBackend:
    """
    Factory function to get a review backend instance based on the config.

    Args:
        config: The backend configuration.

    Returns:
        An instance of a class that implements the ReviewBackend protocol.

    Raises:
        ConfigError: If the provider is unknown or cannot be created.
    """
    try:
        return backend_registry.create(config.provider, config=config)
    except KeyError:
        raise ConfigError(
            f"Unknown backend provider '{config.provider}'. "
            f"Available providers: {backend_registry.available()}"
        )
    except AIReviewException:
        raise
    except Exception as e:
        # Catch other instantiation errors from the backend's __init__
        raise ConfigError(f"Failed to create backend '{config.provider}': {e}") from e
