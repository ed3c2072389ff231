import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from core.contracts.models import AnalysisResult
from core.registry import strategy_registry
from core.strategies.base import degrade_on_failure
from core.suitability import FUNCTION_PATTERN, count_classes, count_functions, count_lines

LONG_FUNCTION_LINES = 50
HIGH_COMPLEXITY = 30
# an opening brace further than this from the declaration belongs to something else
MAX_SIGNATURE_CHARS = 300

BRACE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".java", ".go", ".c", ".cc", ".cpp", ".h", ".hpp", ".cs", ".rs", ".kt", ".swift", ".php")
JS_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")

BRANCH_KEYWORDS = re.compile(r"\b(?:if|else|elif|for|while|switch|case|catch|except)\b")
BRANCH_OPERATORS = re.compile(r"&&|\|\|")
TODO_COMMENT = re.compile(r"(?://|#)\s*(?:TODO|FIXME)\b", re.IGNORECASE)
DEBUG_STATEMENT = re.compile(r"\bconsole\.(?:log|debug)\s*\(|\bdebugger\s*;?|\bbreakpoint\s*\(\s*\)")
EMPTY_HANDLER = re.compile(r"\bcatch\s*(?:\([^)]*\))?\s*\{\s*\}|\bexcept\b[^:\n]*:\s*pass\b")
HARDCODED_SECRET = re.compile(
    r"\b(?:password|passwd|secret|api[_-]?key|access[_-]?token|auth[_-]?token)\b\s*[:=]\s*['\"][^'\"\s]{4,}['\"]",
    re.IGNORECASE,
)
DYNAMIC_CODE = re.compile(r"\beval\s*\(|\bnew\s+Function\s*\(|(?<![\w.])exec\s*\(")
RAW_HTML = re.compile(r"\.innerHTML\s*=|dangerouslySetInnerHTML")
SHELL_TRUE = re.compile(r"shell\s*=\s*True")
SYNC_IO = re.compile(r"\b(?:readFileSync|writeFileSync|execSync|spawnSync)\s*\(")
LET_DECLARATION = re.compile(r"\blet\s+\w+")
ANY_TYPE = re.compile(r":\s*any\b")
NAMED_FUNCTION = re.compile(r"\bfunction\s+(\w+)|\bconst\s+(\w+)\s*=\s*(?:async\s*)?\(")


@dataclass
class StaticMetrics:
    lines_of_code: int
    function_count: int
    class_count: int
    complexity: int


@dataclass
class StaticFindings:
    metrics: StaticMetrics
    security: List[str] = field(default_factory=list)
    performance: List[str] = field(default_factory=list)
    architecture: List[str] = field(default_factory=list)
    logic: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def calculate_complexity(content: str) -> int:
    """Naive cyclomatic complexity: 1 + branching keywords + boolean operators."""
    return 1 + len(BRANCH_KEYWORDS.findall(content)) + len(BRANCH_OPERATORS.findall(content))


def find_function_end(content: str, start: int) -> Optional[int]:
    """
    Index just past the brace closing the function declared at `start`.

    Returns None when the declaration has no braced body (expression-bodied
    arrow functions, declarations without a body).
    """
    depth = 0
    in_string = False
    quote = ""
    opened = False
    i = start
    while i < len(content):
        char = content[i]
        if in_string:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                in_string = False
        elif char in ("'", '"', "`"):
            in_string = True
            quote = char
        elif char == "{":
            depth += 1
            opened = True
        elif char == "}":
            depth -= 1
            if opened and depth == 0:
                return i + 1
        elif not opened and (char == ";" or i - start > MAX_SIGNATURE_CHARS):
            return None
        i += 1
    return None


class RuleBasedAnalyzer:
    """Pattern-based heuristics computed straight from source text."""

    def analyze(self, content: str, path: str, include_suggestions: bool = True) -> StaticFindings:
        suffix = Path(path).suffix.lower()
        lines = content.split("\n")
        findings = StaticFindings(
            metrics=StaticMetrics(
                lines_of_code=count_lines(content),
                function_count=count_functions(content),
                class_count=count_classes(content),
                complexity=calculate_complexity(content),
            )
        )

        self._security(content, findings)
        self._performance(content, findings)
        self._architecture(content, suffix, findings)
        self._logic(content, lines, findings)
        if include_suggestions:
            self._suggestions(content, suffix, findings)
        return findings

    def _security(self, content: str, findings: StaticFindings) -> None:
        if DYNAMIC_CODE.search(content):
            findings.security.append("Dynamic code execution (eval/exec/new Function) found - avoid evaluating strings as code")
        if RAW_HTML.search(content):
            findings.security.append("Raw HTML injection (innerHTML/dangerouslySetInnerHTML) - sanitize content or render text nodes")
        if SHELL_TRUE.search(content):
            findings.security.append("subprocess call with shell=True - pass an argument list instead")
        for match in HARDCODED_SECRET.finditer(content):
            line = content.count("\n", 0, match.start()) + 1
            findings.security.append(f"Possible hardcoded credential at line {line}")

    def _performance(self, content: str, findings: StaticFindings) -> None:
        sync_calls = sorted({m.group(0).rstrip("( ") for m in SYNC_IO.finditer(content)})
        if sync_calls:
            findings.performance.append(
                f"Synchronous I/O calls ({', '.join(sync_calls)}) block the event loop - prefer async variants"
            )

    def _architecture(self, content: str, suffix: str, findings: StaticFindings) -> None:
        complexity = findings.metrics.complexity
        if complexity > HIGH_COMPLEXITY:
            findings.architecture.append(
                f"High cyclomatic complexity ({complexity} > {HIGH_COMPLEXITY}) - consider splitting this module"
            )
        if suffix not in BRACE_SUFFIXES:
            return
        for match in FUNCTION_PATTERN.finditer(content):
            end = find_function_end(content, match.start())
            if end is None:
                continue
            function_lines = content.count("\n", match.start(), end) + 1
            if function_lines > LONG_FUNCTION_LINES:
                line = content.count("\n", 0, match.start()) + 1
                findings.architecture.append(
                    f"Long function detected at line {line} "
                    f"({function_lines} lines) - consider breaking into smaller functions"
                )

    def _logic(self, content: str, lines: List[str], findings: StaticFindings) -> None:
        for index, line in enumerate(lines):
            if TODO_COMMENT.search(line):
                findings.logic.append(f"TODO comment found at line {index + 1}: {line.strip()}")
        if DEBUG_STATEMENT.search(content):
            findings.logic.append("Debug statements (console.log/debugger) found - remove before committing")
        if EMPTY_HANDLER.search(content):
            findings.logic.append("Empty exception handler swallows errors")

    def _suggestions(self, content: str, suffix: str, findings: StaticFindings) -> None:
        if suffix not in JS_SUFFIXES:
            return
        for match in NAMED_FUNCTION.finditer(content):
            name = match.group(1) or match.group(2)
            before = content[max(0, match.start() - 200):match.start()]
            if "/**" not in before:
                findings.suggestions.append(f"Consider adding JSDoc documentation for function: {name}")
        if LET_DECLARATION.search(content):
            findings.suggestions.append("Consider using const instead of let for variables that are not reassigned")
        if suffix in (".ts", ".tsx") and ANY_TYPE.search(content):
            findings.suggestions.append("Replace `any` annotations with specific types")


def format_context(path: str, metrics: StaticMetrics) -> str:
    return (
        f"Static analysis of {path}\n"
        f"- Lines of code: {metrics.lines_of_code}\n"
        f"- Functions: {metrics.function_count}\n"
        f"- Classes: {metrics.class_count}\n"
        f"- Complexity: {metrics.complexity}"
    )


@strategy_registry.register("static")
class RuleBasedStrategy:
    """Heuristic review that needs no backend."""

    name = "static"
    requires_backend = False

    def __init__(self, backend=None):
        self.analyzer = RuleBasedAnalyzer()

    @degrade_on_failure
    async def perform_analysis(self, content: str, path: str, include_suggestions: bool = True) -> AnalysisResult:
        findings = self.analyzer.analyze(content, path, include_suggestions)
        return AnalysisResult(
            context=format_context(path, findings.metrics),
            security_issues=findings.security,
            performance_issues=findings.performance,
            architecture_issues=findings.architecture,
            logic_issues=findings.logic,
            suggestions=findings.suggestions,
        )
