from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.contracts.backend import ReviewBackend
from core.contracts.models import AnalysisResult
from core.registry import strategy_registry
from core.strategies.base import SectionMap, degrade_on_failure, escape_code_fences, parse_sections
from utils.errors import ConfigError
from utils.logger import logger

PROMPT_DIR = Path(__file__).parent / "prompts"

FENCE_LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".py": "python",
}

_prompt_env = Environment(
    loader=FileSystemLoader(str(PROMPT_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
    undefined=StrictUndefined,
)


def fence_language(path: str) -> str:
    return FENCE_LANGUAGES.get(Path(path).suffix.lower(), "")


class BackendAnalysisStrategy:
    """
    Builds a persona prompt, sends it to a review backend and maps the answer
    onto the AnalysisResult buckets.

    Subclasses only choose a prompt template and how their headings map to buckets.
    """

    name = "backend"
    requires_backend = True
    template_name = "general.j2"
    section_map: SectionMap = (
        (("context", "summary", "overview"), "context"),
        (("security",), "security_issues"),
        (("performance",), "performance_issues"),
        (("architecture",), "architecture_issues"),
        (("logic", "bug"), "logic_issues"),
        (("suggestion", "recommendation", "improvement"), "suggestions"),
    )

    def __init__(self, backend: Optional[ReviewBackend] = None):
        if backend is None:
            raise ConfigError(f"Analysis type '{self.name}' requires a review backend, but none is configured.")
        self.backend = backend

    def build_prompt(self, content: str, path: str, include_suggestions: bool) -> str:
        template = _prompt_env.get_template(self.template_name)
        return template.render(
            path=path,
            content=escape_code_fences(content),
            language=fence_language(path),
            include_suggestions=include_suggestions,
        )

    def parse_response(self, response: str, include_suggestions: bool) -> AnalysisResult:
        return parse_sections(response, self.section_map, include_suggestions)

    @degrade_on_failure
    async def perform_analysis(self, content: str, path: str, include_suggestions: bool = True) -> AnalysisResult:
        prompt = self.build_prompt(content, path, include_suggestions)
        logger.debug(f"Prompt for {path} ({self.name}): {len(prompt)} chars")
        response = await self.backend.analyze(prompt)
        return self.parse_response(response, include_suggestions)


@strategy_registry.register("codex")
class GeneralReviewStrategy(BackendAnalysisStrategy):
    name = "codex"


@strategy_registry.register("toxic-architect")
class ToxicArchitectStrategy(BackendAnalysisStrategy):
    """Architecture critique; its headings are remapped onto the standard buckets."""

    name = "toxic-architect"
    template_name = "toxic_architect.j2"
    section_map: SectionMap = (
        (("solid", "principle"), "security_issues"),
        (("architecture", "clean"), "performance_issues"),
        (("quality", "coupling"), "architecture_issues"),
        (("pattern", "design"), "logic_issues"),
        (("fix", "recommendation"), "suggestions"),
    )


@strategy_registry.register("web-accessibility")
class WebAccessibilityStrategy(BackendAnalysisStrategy):
    """Accessibility review; its headings are remapped onto the standard buckets."""

    name = "web-accessibility"
    template_name = "web_accessibility.j2"
    section_map: SectionMap = (
        (("accessibility", "wcag"), "security_issues"),
        (("semantic", "seo"), "performance_issues"),
        (("react", "component"), "architecture_issues"),
        (("performance", "ux"), "logic_issues"),
        (("recommendation", "improvement"), "suggestions"),
    )
