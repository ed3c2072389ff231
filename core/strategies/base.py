"""
Helpers shared by every analysis strategy.

`degrade_on_failure` wraps a strategy's `perform_analysis` so that it never
raises: any failure becomes an AnalysisResult whose context explains what went
wrong and whose issue lists are empty.
"""
import functools
import re
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from core.contracts.models import AnalysisResult
from utils.errors import AIReviewException
from utils.logger import logger

BUCKETS = ("context", "security_issues", "performance_issues", "architecture_issues", "logic_issues", "suggestions")
FALLBACK_BUCKET = "suggestions"

_HEADING = re.compile(
    r"^\s{0,3}(?:#{1,6}\s*)?(?:\d+[.)]\s*)?\*\*(?P<bold>[^*\n]+?)\*\*\s*:?\s*(?P<rest>.*)$"
    r"|^\s{0,3}#{1,6}\s+(?P<hash>.+?)\s*#*\s*$"
)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")
_EMPTY_ITEMS = {"", "none", "none.", "n/a", "no issues found", "no issues found.", "-"}

SectionMap = Sequence[Tuple[Sequence[str], str]]


def degraded_result(error: BaseException) -> AnalysisResult:
    if isinstance(error, AIReviewException):
        message = str(error)
    else:
        message = f"Unexpected {type(error).__name__}"
    return AnalysisResult(context=f"Analysis failed: {message}")


def degrade_on_failure(func: Callable[..., Awaitable[AnalysisResult]]) -> Callable[..., Awaitable[AnalysisResult]]:
    @functools.wraps(func)
    async def wrapper(self, content: str, path: str, include_suggestions: bool = True) -> AnalysisResult:
        try:
            return await func(self, content, path, include_suggestions)
        except Exception as e:
            name = getattr(self, 'name', type(self).__name__)
            # only our own errors carry messages safe to show; others may echo file content or keys
            reason = str(e) if isinstance(e, AIReviewException) else type(e).__name__
            logger.warning(f"'{name}' analysis of {path} failed: {reason}")
            logger.debug(f"'{name}' analysis of {path} failed with {type(e).__name__}: {e}")
            return degraded_result(e)
    return wrapper


def escape_code_fences(content: str) -> str:
    """Escapes every backtick so embedded code cannot close the prompt's fenced block."""
    return content.replace("`", "\\`")


def _names_bucket(heading: str, section_map: SectionMap) -> bool:
    name = heading.lower()
    return any(keyword in name for keywords, _ in section_map for keyword in keywords)


def split_sections(text: str, section_map: Optional[SectionMap] = None) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Splits markdown-ish text on heading lines (`## Title`, `**Title**:`, `1. **Title**`).

    A `#` heading always opens a section. Bold lines only act as headings in
    text without `#` headings, and once a bold heading naming a bucket of
    `section_map` is open, other bold lines belong to its body. Numbered bold
    findings such as `1. **Hardcoded key**: ...` therefore stay list items.

    Returns:
        (preamble, [(heading, body), ...])
    """
    preamble: List[str] = []
    sections: List[Tuple[str, List[str]]] = []
    seen_hash = False
    in_known_section = False
    for line in text.splitlines():
        match = _HEADING.match(line)
        if match:
            is_hash = line.lstrip().startswith("#")
            heading = (match.group("bold") or match.group("hash") or "").strip().rstrip(":").strip()
            known = bool(section_map) and _names_bucket(heading, section_map)
            if is_hash or (not seen_hash and (known or not in_known_section)):
                rest = match.group("rest") or ""
                sections.append((heading, [rest] if rest.strip() else []))
                seen_hash = seen_hash or is_hash
                in_known_section = known
                continue
        if sections:
            sections[-1][1].append(line)
        else:
            preamble.append(line)
    return "\n".join(preamble).strip(), [(h, "\n".join(body).strip()) for h, body in sections]


def split_items(body: str) -> List[str]:
    """One entry per bullet; a body without bullets is a single entry."""
    items: List[List[str]] = []
    current: Optional[List[str]] = None
    loose: List[str] = []
    for line in body.splitlines():
        if _BULLET.match(line):
            current = [_BULLET.sub("", line, count=1).strip()]
            items.append(current)
        elif current is not None and line.strip():
            current.append(line.strip())
        elif current is None:
            loose.append(line)

    result = [" ".join(parts) for parts in items]
    leading = "\n".join(loose).strip()
    if leading:
        result.insert(0, leading)
    return [item for item in result if item.strip().lower() not in _EMPTY_ITEMS]


def bucket_for(heading: str, section_map: SectionMap) -> str:
    name = heading.lower()
    for keywords, bucket in section_map:
        if any(keyword in name for keyword in keywords):
            return bucket
    return FALLBACK_BUCKET


def parse_sections(text: str, section_map: SectionMap, include_suggestions: bool = True) -> AnalysisResult:
    """
    Maps a free-text review onto the five issue buckets plus context.

    Unrecognised headings land in suggestions. Context is the text of the
    context-like sections, else the text before the first heading, else everything.
    """
    preamble, sections = split_sections(text, section_map)
    collected: Dict[str, List[str]] = {bucket: [] for bucket in BUCKETS}
    for heading, body in sections:
        bucket = bucket_for(heading, section_map)
        if bucket == "context":
            if body:
                collected["context"].append(body)
        else:
            collected[bucket].extend(split_items(body))

    context = "\n\n".join(collected["context"]) or preamble or text.strip()
    return AnalysisResult(
        context=context,
        security_issues=collected["security_issues"],
        performance_issues=collected["performance_issues"],
        architecture_issues=collected["architecture_issues"],
        logic_issues=collected["logic_issues"],
        suggestions=collected["suggestions"] if include_suggestions else [],
    )


def merge_results(results: Sequence[AnalysisResult]) -> AnalysisResult:
    """Joins contexts and concatenates every issue list."""
    return AnalysisResult(
        context="\n\n".join(r.context for r in results if r.context),
        security_issues=[i for r in results for i in r.security_issues],
        performance_issues=[i for r in results for i in r.performance_issues],
        architecture_issues=[i for r in results for i in r.architecture_issues],
        logic_issues=[i for r in results for i in r.logic_issues],
        suggestions=[i for r in results for i in r.suggestions],
    )
