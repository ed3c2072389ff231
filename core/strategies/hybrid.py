import asyncio
from typing import Optional

from core.contracts.backend import ReviewBackend
from core.contracts.models import AnalysisResult
from core.registry import strategy_registry
from core.strategies.backend import GeneralReviewStrategy
from core.strategies.base import degrade_on_failure, merge_results
from core.strategies.static import RuleBasedStrategy


@strategy_registry.register("hybrid")
class HybridStrategy:
    """Runs the rule-based and the general backend review side by side and merges them."""

    name = "hybrid"
    requires_backend = True

    def __init__(self, backend: Optional[ReviewBackend] = None):
        self.backend_strategy = GeneralReviewStrategy(backend)
        self.static_strategy = RuleBasedStrategy()

    @degrade_on_failure
    async def perform_analysis(self, content: str, path: str, include_suggestions: bool = True) -> AnalysisResult:
        static_result, backend_result = await asyncio.gather(
            self.static_strategy.perform_analysis(content, path, include_suggestions),
            self.backend_strategy.perform_analysis(content, path, include_suggestions),
        )
        return merge_results([static_result, backend_result])
