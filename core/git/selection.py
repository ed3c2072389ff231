from typing import Iterable, List, Optional, Sequence, Union

from core.contracts.models import RepositoryStatus, ReviewType
from utils.errors import ConfigError


def parse_review_type(value: Union[str, ReviewType]) -> ReviewType:
    """
    Raises:
        ConfigError: If `value` is not one of staged, modified, full.
    """
    try:
        return ReviewType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ReviewType)
        raise ConfigError(f"Invalid review type '{value}'. Expected one of: {allowed}")


def _ordered_union(*groups: Iterable[str]) -> List[str]:
    seen = set()
    merged: List[str] = []
    for group in groups:
        for path in group:
            if path not in seen:
                seen.add(path)
                merged.append(path)
    return merged


def files_for_review(status: RepositoryStatus, review_type: Union[str, ReviewType]) -> List[str]:
    """
    Selects changed paths for a review type. Pure function of its inputs.

    staged   -> staged
    modified -> staged | modified
    full     -> staged | modified | untracked

    Unions keep first-seen order and drop exact duplicates.
    """
    review_type = parse_review_type(review_type)
    if review_type is ReviewType.STAGED:
        return _ordered_union(status.staged)
    if review_type is ReviewType.MODIFIED:
        return _ordered_union(status.staged, status.modified)
    return _ordered_union(status.staged, status.modified, status.untracked)


def filter_reviewable(
    paths: Sequence[str],
    extensions: Optional[Sequence[str]] = None,
    case_insensitive: bool = True,
) -> List[str]:
    """
    Keeps paths with a reviewable extension and drops duplicates.

    With `case_insensitive`, `Foo.ts` and `foo.ts` count as one entry (the first one wins).
    On case-sensitive filesystems this can merge two distinct files.
    """
    suffixes = tuple(ext.lower() for ext in extensions) if extensions else None
    seen = set()
    selected: List[str] = []
    for path in paths:
        if suffixes is not None and not path.lower().endswith(suffixes):
            continue
        key = path.lower() if case_insensitive else path
        if key in seen:
            continue
        seen.add(key)
        selected.append(path)
    return selected
