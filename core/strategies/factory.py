from typing import List, Optional

from core.contracts.backend import ReviewBackend
from core.contracts.strategy import AnalysisStrategy
from core.registry import strategy_registry
from utils.errors import ConfigError

# Imported for their registration side effect
from core.strategies import backend as backend_strategies, hybrid, static  # noqa: F401


def available_strategies() -> List[str]:
    return strategy_registry.available()


def requires_backend(analysis_type: str) -> bool:
    """
    Raises:
        ConfigError: If the analysis type is unknown.
    """
    try:
        strategy_cls = strategy_registry.get(analysis_type)
    except KeyError:
        raise ConfigError(
            f"Unknown analysis type '{analysis_type}'. "
            f"Available analysis types: {available_strategies()}"
        )
    return getattr(strategy_cls, "requires_backend", False)


def create_strategy(analysis_type: str, backend: Optional[ReviewBackend] = None) -> AnalysisStrategy:
    """
    Builds the strategy registered under `analysis_type`.

    Raises:
        ConfigError: If the type is unknown, or it needs a backend and none is given.
    """
    if requires_backend(analysis_type) and backend is None:
        raise ConfigError(f"Analysis type '{analysis_type}' requires a review backend, but none is configured.")
    return strategy_registry.create(analysis_type, backend=backend)
