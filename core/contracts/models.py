from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReviewType(str, Enum):
    """Which changed files a run looks at, ordered by increasing inclusiveness."""
    STAGED = "staged"
    MODIFIED = "modified"
    FULL = "full"


class ReviewStatus(str, Enum):
    INACCESSIBLE = "inaccessible"
    SKIPPED = "skipped"
    REVIEWED = "reviewed"
    ERROR = "error"


class _Model(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenModel(BaseModel):
    # results are snapshots; collections are tuples so nested values cannot be appended to either
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RepositoryStatus(_FrozenModel):
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    staged: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()
    untracked: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()


class AnalyzableFile(_Model):
    path: str
    content: str


class SuitabilityResult(_Model):
    suitable: bool
    reason: Optional[str] = None


class AnalysisResult(_FrozenModel):
    context: str = ""
    security_issues: Tuple[str, ...] = ()
    performance_issues: Tuple[str, ...] = ()
    architecture_issues: Tuple[str, ...] = ()
    logic_issues: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()

    @property
    def issue_count(self) -> int:
        return (
            len(self.security_issues)
            + len(self.performance_issues)
            + len(self.architecture_issues)
            + len(self.logic_issues)
        )


class ReviewedFile(_FrozenModel):
    path: str
    status: ReviewStatus
    reason: Optional[str] = None
    analysis: Optional[AnalysisResult] = None


class CodeReviewResult(_FrozenModel):
    summary: str
    files: Tuple[ReviewedFile, ...] = ()
    repository_status: RepositoryStatus


class ReviewRequest(_Model):
    repository_path: str = "."
    review_type: str = ReviewType.MODIFIED.value
    include_suggestions: bool = True
    analysis_type: str = "codex"
