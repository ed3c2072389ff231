from typing import Optional

from config.models import OutputConfig
from core.contracts.reporter import Reporter
from core.reporting.json_reporter import JsonReporter
from core.reporting.text_reporter import TextReporter
from utils.errors import ConfigError

REPORT_FORMATS = ("text", "json")


def get_reporter(report_format: str, config: Optional[OutputConfig] = None) -> Reporter:
    """
    Raises:
        ConfigError: If the format is not one of REPORT_FORMATS.
    """
    config = config or OutputConfig()
    if report_format == "json":
        return JsonReporter()
    if report_format == "text":
        return TextReporter(
            template_dir=config.template_dir,
            template_name=config.template,
            use_emoji=config.use_emoji,
        )
    raise ConfigError(f"Unknown report format '{report_format}'. Available formats: {list(REPORT_FORMATS)}")
