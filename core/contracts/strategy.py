from typing import Protocol

from .models import AnalysisResult


class AnalysisStrategy(Protocol):
    """A swappable unit that turns file content into an AnalysisResult."""

    name: str

    async def perform_analysis(self, content: str, path: str, include_suggestions: bool) -> AnalysisResult:
        """Never raises: failures come back as a degraded AnalysisResult."""
        ...
