from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from core.contracts.models import CodeReviewResult
from core.contracts.reporter import Reporter
from utils.errors import ReporterError


class TextReporter(Reporter):
    def __init__(
        self,
        template_dir: Optional[str] = None,
        template_name: str = "review.txt.j2",
        use_emoji: bool = True,
    ):
        if template_dir is None:
            # Default template directory relative to this file
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        self.template_name = template_name
        self.use_emoji = use_emoji
        try:
            self.env = Environment(
                loader=FileSystemLoader(self.template_dir),
                trim_blocks=True,
                lstrip_blocks=True,
            )
        except Exception as e:
            raise ReporterError(f"Failed to initialize Jinja2 environment: {e}") from e

    def icon(self, emoji: str) -> str:
        return f"{emoji} " if self.use_emoji else ""

    def render(self, result: CodeReviewResult) -> str:
        try:
            template = self.env.get_template(self.template_name)
            return template.render(result=result, icon=self.icon)
        except Exception as e:
            raise ReporterError(f"Failed to render template {self.template_name}: {e}") from e
