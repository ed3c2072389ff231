from typing import Protocol

from .models import CodeReviewResult


class Reporter(Protocol):
    def render(self, result: CodeReviewResult) -> str:
        ...
