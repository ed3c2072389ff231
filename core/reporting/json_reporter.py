from core.contracts.models import CodeReviewResult
from core.contracts.reporter import Reporter


class JsonReporter(Reporter):
    """Structured report with the same camelCase keys as the result model aliases."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def render(self, result: CodeReviewResult) -> str:
        return result.model_dump_json(indent=self.indent, by_alias=True)
