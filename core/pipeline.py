from collections import Counter
from typing import Optional, Sequence, Union

from config.models import Config
from core.backends.router import get_backend
from core.contracts.backend import ReviewBackend
from core.contracts.models import (
    AnalyzableFile,
    CodeReviewResult,
    RepositoryStatus,
    ReviewedFile,
    ReviewRequest,
    ReviewStatus,
)
from core.contracts.strategy import AnalysisStrategy
from core.dispatcher import ConcurrentDispatcher, TaskFailure
from core.git.selection import files_for_review, filter_reviewable, parse_review_type
from core.git.status_reader import RepositoryStatusReader
from core.paths import PathResolver
from core.strategies.factory import create_strategy, requires_backend
from core.suitability import SuitabilityFilter
from utils.errors import FileAccessError, PathTraversalError
from utils.fs import FileSystem
from utils.logger import logger


def build_summary(status: RepositoryStatus, files: Sequence[ReviewedFile]) -> str:
    """Counts files by final status in one pass. Inaccessible files count as errors."""
    counts = Counter(f.status for f in files)
    reviewed = counts[ReviewStatus.REVIEWED]
    skipped = counts[ReviewStatus.SKIPPED]
    errors = counts[ReviewStatus.ERROR] + counts[ReviewStatus.INACCESSIBLE]
    return (
        "Code Review Results\n"
        "===================================================\n\n"
        f"Reviewed {len(files)} files in branch '{status.branch}'.\n"
        f"   Reviewed: {reviewed} | Skipped: {skipped} | Errors: {errors}"
    )


class ReviewPipeline:
    """
    The main review pipeline.

    read status -> select files -> per file: resolve path, read, check
    suitability, analyse (bounded concurrency) -> aggregate.

    Only configuration problems and repository status failures abort a run;
    everything that goes wrong for one file is recorded on that file.
    """

    def __init__(
        self,
        config: Config,
        backend: Optional[ReviewBackend] = None,
        status_reader: Optional[RepositoryStatusReader] = None,
        file_system: Optional[FileSystem] = None,
        path_resolver: Optional[PathResolver] = None,
        suitability: Optional[SuitabilityFilter] = None,
        dispatcher: Optional[ConcurrentDispatcher] = None,
    ):
        self.config = config
        self.backend = backend
        self.status_reader = status_reader or RepositoryStatusReader(config.git)
        self.file_system = file_system or FileSystem()
        self.path_resolver = path_resolver or PathResolver(config.paths.case_insensitive)
        self.suitability = suitability or SuitabilityFilter(config.analysis)
        self.dispatcher = dispatcher or ConcurrentDispatcher()

    async def execute(self, request: ReviewRequest) -> CodeReviewResult:
        """
        Runs one review.

        Raises:
            ConfigError: Invalid review type or analysis type, or missing backend.
                Raised before any repository or file access.
            RepositoryAccessError: The status of the repository could not be read.
        """
        review_type = parse_review_type(request.review_type)
        strategy = create_strategy(request.analysis_type, self.backend)

        logger.info(f"Starting {review_type.value} review of {request.repository_path} with '{request.analysis_type}'")
        status = await self.status_reader.status(request.repository_path)

        paths = filter_reviewable(
            files_for_review(status, review_type),
            self.config.analysis.supported_extensions,
            self.config.analysis.case_insensitive_dedup,
        )
        logger.info(f"Selected {len(paths)} files for review")

        async def review(path: str) -> ReviewedFile:
            return await self._review_file(request.repository_path, path, strategy, request.include_suggestions)

        results = await self.dispatcher.process_all(
            paths,
            review,
            self.config.analysis.concurrency,
            on_error=self._task_error,
        )
        files = [self._as_reviewed(r) for r in results]

        summary = build_summary(status, files)
        logger.info(summary.splitlines()[-1].strip())
        return CodeReviewResult(summary=summary, files=files, repository_status=status)

    async def _review_file(
        self,
        repository_path: str,
        path: str,
        strategy: AnalysisStrategy,
        include_suggestions: bool,
    ) -> ReviewedFile:
        try:
            full_path = self.path_resolver.resolve(repository_path, path)
        except PathTraversalError:
            return ReviewedFile(path=path, status=ReviewStatus.ERROR, reason="Invalid path: outside the repository")

        try:
            if not await self.file_system.exists(full_path):
                return ReviewedFile(path=path, status=ReviewStatus.INACCESSIBLE, reason="File does not exist")

            stats = await self.file_system.stat(full_path)
            if stats.is_directory:
                return ReviewedFile(path=path, status=ReviewStatus.INACCESSIBLE, reason="Path is a directory")
            if not stats.is_file:
                return ReviewedFile(path=path, status=ReviewStatus.INACCESSIBLE, reason="Not a regular file")

            limit = self.config.analysis.max_read_size
            if stats.size > limit:
                return ReviewedFile(
                    path=path,
                    status=ReviewStatus.INACCESSIBLE,
                    reason=f"File exceeds readable size limit ({stats.size} bytes > {limit} bytes)",
                )

            file = AnalyzableFile(path=path, content=await self.file_system.read(full_path))
        except FileAccessError as e:
            return ReviewedFile(path=path, status=ReviewStatus.INACCESSIBLE, reason=str(e))
        except Exception as e:
            logger.debug(f"Unexpected error reading {path}: {type(e).__name__}: {e}")
            return ReviewedFile(path=path, status=ReviewStatus.ERROR, reason="Unexpected error while reading file")

        suitability = self.suitability.check(file.path, file.content)
        if not suitability.suitable:
            logger.debug(f"Skipping {path}: {suitability.reason}")
            return ReviewedFile(path=path, status=ReviewStatus.SKIPPED, reason=suitability.reason)

        analysis = await strategy.perform_analysis(file.content, file.path, include_suggestions)
        logger.debug(f"Reviewed {path}")
        return ReviewedFile(path=path, status=ReviewStatus.REVIEWED, analysis=analysis)

    @staticmethod
    def _task_error(path: str, error: Exception) -> ReviewedFile:
        return ReviewedFile(path=path, status=ReviewStatus.ERROR, reason="Unexpected error while reviewing file")

    @staticmethod
    def _as_reviewed(result: Union[ReviewedFile, TaskFailure]) -> ReviewedFile:
        if isinstance(result, TaskFailure):
            return ReviewPipeline._task_error(result.path, result.error)
        return result


def build_pipeline(config: Config, analysis_type: str) -> ReviewPipeline:
    """
    Wires a pipeline from configuration. A backend is only created when the
    analysis type needs one.

    Raises:
        ConfigError: Unknown analysis type, or the backend cannot be created.
    """
    backend = get_backend(config.backend) if requires_backend(analysis_type) else None
    return ReviewPipeline(config, backend=backend)


async def run_review(config: Config, request: ReviewRequest) -> CodeReviewResult:
    """Builds a pipeline for `request` and runs it once."""
    pipeline = build_pipeline(config, request.analysis_type)
    return await pipeline.execute(request)
