from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


class AnalysisConfig(BaseModel):
    max_file_size: int = Field(50 * 1024, ge=1, description="Maximum content size in bytes, inclusive")
    max_lines: int = Field(2500, ge=1, description="Maximum number of lines, inclusive")
    max_functions: int = Field(50, ge=0, description="Maximum heuristic function count")
    max_classes: int = Field(10, ge=0, description="Maximum heuristic class count")
    concurrency: int = Field(3, description="Number of files analysed at the same time (clamped by the dispatcher)")
    max_read_size: int = Field(1024 * 1024, ge=1, description="Files above this size on disk are never read")
    supported_extensions: List[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx", ".py"],
    )
    excluded_patterns: List[str] = Field(
        default_factory=lambda: [
            r"\.d\.ts$",
            r"\.(test|spec)\.(t|j)sx?$",
            r"(^|/)node_modules/",
            r"(^|/)dist/",
            r"(^|/)build/",
        ],
    )
    case_insensitive_dedup: bool = Field(True, description="Fold case when removing duplicate changed paths")


class GitConfig(BaseModel):
    timeout_sec: int = 10
    null_terminated: bool = Field(False, description="Read `git status --porcelain -z` output")
    include_untracked: bool = True


class BackendConfig(BaseModel):
    provider: str = "codex"
    name: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_sec: int = 120
    command: List[str] = Field(
        default_factory=lambda: ["codex", "exec", "--sandbox", "workspace-write", "--skip-git-repo-check"],
    )
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ReviewConfig(BaseModel):
    review_type: str = "modified"
    analysis_type: str = "codex"
    include_suggestions: bool = True


class PathConfig(BaseModel):
    case_insensitive: Optional[bool] = Field(None, description="None means: detect from the platform")


class OutputConfig(BaseModel):
    format: str = "text"
    use_emoji: bool = True
    template: str = "review.txt.j2"
    template_dir: Optional[str] = None


class HookConfig(BaseModel):
    enabled: bool = Field(True, description="Run aireview from the pre-commit hook")
    fail_on_issues: bool = Field(True, description="Block the commit when reviewed files report issues")


class LogConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig, description="File suitability and concurrency settings")
    git: GitConfig = Field(default_factory=GitConfig, description="Repository status query settings")
    backend: BackendConfig = Field(default_factory=BackendConfig, description="External review backend settings")
    review: ReviewConfig = Field(default_factory=ReviewConfig, description="Default review request")
    paths: PathConfig = Field(default_factory=PathConfig, description="Path resolution settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Report rendering settings")
    hook: HookConfig = Field(default_factory=HookConfig, description="Git hook settings")
    log: LogConfig = Field(default_factory=LogConfig, description="Logging settings")
