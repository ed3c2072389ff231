import re
from typing import List, Pattern

from config.models import AnalysisConfig
from core.contracts.models import SuitabilityResult
from utils.errors import ConfigError

# Heuristic, language-agnostic-ish declaration counters (JS/TS + Python)
FUNCTION_PATTERN = re.compile(r"\bfunction\s+\w+|\bconst\s+\w+\s*=\s*(?:async\s*)?\(|\bdef\s+\w+")
CLASS_PATTERN = re.compile(r"\bclass\s+\w+")


def count_functions(content: str) -> int:
    return len(FUNCTION_PATTERN.findall(content))


def count_classes(content: str) -> int:
    return len(CLASS_PATTERN.findall(content))


def count_lines(content: str) -> int:
    return len(content.split("\n"))


class SuitabilityFilter:
    """
    Decides whether a file is worth analysing. Pure: `content` is already loaded.

    Checks run in a fixed order and stop at the first failure:
    extension, excluded pattern, byte size, lines, functions, classes.
    All limits are inclusive.
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config
        self._extensions = tuple(ext.lower() for ext in config.supported_extensions)
        self._excluded = self._compile(config.excluded_patterns)

    @staticmethod
    def _compile(patterns: List[str]) -> List[Pattern[str]]:
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                raise ConfigError(f"Invalid excluded pattern '{pattern}': {e}") from e
        return compiled

    def check(self, path: str, content: str) -> SuitabilityResult:
        if not path.lower().endswith(self._extensions):
            return SuitabilityResult(suitable=False, reason="Unsupported file type")

        normalized_path = path.replace("\\", "/")
        for pattern in self._excluded:
            if pattern.search(normalized_path):
                return SuitabilityResult(
                    suitable=False,
                    reason=f"File matches excluded pattern '{pattern.pattern}'",
                )

        size = len(content.encode("utf-8"))
        if size > self.config.max_file_size:
            return SuitabilityResult(
                suitable=False,
                reason=f"File too large ({size} bytes > {self.config.max_file_size} bytes)",
            )

        lines = count_lines(content)
        if lines > self.config.max_lines:
            return SuitabilityResult(
                suitable=False,
                reason=f"Too many lines ({lines} > {self.config.max_lines})",
            )

        functions = count_functions(content)
        if functions > self.config.max_functions:
            return SuitabilityResult(
                suitable=False,
                reason=f"Too many functions ({functions} > {self.config.max_functions})",
            )

        classes = count_classes(content)
        if classes > self.config.max_classes:
            return SuitabilityResult(
                suitable=False,
                reason=f"Too many classes ({classes} > {self.config.max_classes})",
            )

        return SuitabilityResult(suitable=True)
