import asyncio
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from config.models import AnalysisConfig, BackendConfig, Config
from core.backends.mock import MockBackend
from core.contracts.models import RepositoryStatus, ReviewedFile, ReviewRequest, ReviewStatus
from core.pipeline import ReviewPipeline, build_pipeline, build_summary
from utils.errors import ConfigError, RepositoryAccessError

LLM_RESPONSE = "## Context\nSmall module.\n## Logic Issues\n- Missing null check\n## Suggestions\n- Add tests"


class FakeStatusReader:
    def __init__(self, status: RepositoryStatus):
        self._status = status
        self.calls = []

    async def status(self, repo_path: str) -> RepositoryStatus:
        self.calls.append(repo_path)
        return self._status


class TestReviewPipeline(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = self._tmp.name
        self.write("a.ts", "export const a = 1;\n")
        self.write("b.ts", "const x = 1;\n" * 20)
        self.write("c.ts", "export const c = 1;\n")

        self.status = RepositoryStatus(
            branch="feature",
            staged=["a.ts"],
            modified=["a.ts", "b.ts"],
            untracked=["c.ts"],
        )
        self.config = Config(analysis=AnalysisConfig(max_lines=10))

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name: str, content: str):
        with open(os.path.join(self.repo, name), "w", encoding="utf-8") as f:
            f.write(content)

    def run_pipeline(self, request: ReviewRequest, backend=None, status=None) -> object:
        pipeline = ReviewPipeline(
            self.config,
            backend=backend,
            status_reader=FakeStatusReader(status or self.status),
        )
        return asyncio.run(pipeline.execute(request))

    def test_modified_review_end_to_end(self):
        backend = MockBackend(response=LLM_RESPONSE)
        result = self.run_pipeline(
            ReviewRequest(repository_path=self.repo, review_type="modified", analysis_type="codex"),
            backend=backend,
        )

        self.assertEqual([f.path for f in result.files], ["a.ts", "b.ts"])
        a, b = result.files
        self.assertEqual(a.status, ReviewStatus.REVIEWED)
        self.assertEqual(a.analysis.context, "Small module.")
        self.assertEqual(a.analysis.logic_issues, ("Missing null check",))
        self.assertEqual(a.analysis.suggestions, ("Add tests",))
        self.assertEqual(b.status, ReviewStatus.SKIPPED)
        self.assertEqual(b.reason, "Too many lines (21 > 10)")
        self.assertEqual(len(backend.prompts), 1)

        self.assertIn("Reviewed 2 files in branch 'feature'.", result.summary)
        self.assertIn("Reviewed: 1 | Skipped: 1 | Errors: 0", result.summary)
        self.assertEqual(result.repository_status.branch, "feature")

    def test_staged_and_full_review_types(self):
        staged = self.run_pipeline(ReviewRequest(repository_path=self.repo, review_type="staged", analysis_type="static"))
        self.assertEqual([f.path for f in staged.files], ["a.ts"])

        full = self.run_pipeline(ReviewRequest(repository_path=self.repo, review_type="full", analysis_type="static"))
        self.assertEqual([f.path for f in full.files], ["a.ts", "b.ts", "c.ts"])

    def test_suggestions_can_be_left_out(self):
        result = self.run_pipeline(
            ReviewRequest(repository_path=self.repo, review_type="staged", include_suggestions=False),
            backend=MockBackend(response=LLM_RESPONSE),
        )
        self.assertEqual(result.files[0].analysis.suggestions, ())

    def test_missing_backend_fails_before_reading_status(self):
        reader = FakeStatusReader(self.status)
        pipeline = ReviewPipeline(self.config, backend=None, status_reader=reader)

        with self.assertRaises(ConfigError):
            asyncio.run(pipeline.execute(ReviewRequest(repository_path=self.repo, analysis_type="codex")))
        self.assertEqual(reader.calls, [])

    def test_invalid_review_type_fails_before_reading_status(self):
        reader = FakeStatusReader(self.status)
        pipeline = ReviewPipeline(self.config, status_reader=reader)

        with self.assertRaises(ConfigError):
            asyncio.run(pipeline.execute(ReviewRequest(repository_path=self.repo, review_type="all", analysis_type="static")))
        self.assertEqual(reader.calls, [])

    def test_per_file_failures_are_isolated(self):
        with open(os.path.join(self.repo, "latin1.ts"), "wb") as f:
            f.write(b"const s = '\xe9';\n")
        status = RepositoryStatus(
            branch="main",
            staged=["../escape.ts", "missing.ts", "latin1.ts", "a.ts"],
        )
        result = self.run_pipeline(
            ReviewRequest(repository_path=self.repo, review_type="staged", analysis_type="static"),
            status=status,
        )

        by_path = {f.path: f for f in result.files}
        self.assertEqual(by_path["../escape.ts"].status, ReviewStatus.ERROR)
        self.assertEqual(by_path["../escape.ts"].reason, "Invalid path: outside the repository")
        self.assertEqual(by_path["missing.ts"].status, ReviewStatus.INACCESSIBLE)
        self.assertEqual(by_path["latin1.ts"].status, ReviewStatus.INACCESSIBLE)
        self.assertEqual(by_path["latin1.ts"].reason, "File is not valid UTF-8 text")
        self.assertEqual(by_path["a.ts"].status, ReviewStatus.REVIEWED)
        self.assertIn("Reviewed: 1 | Skipped: 0 | Errors: 3", result.summary)

    def test_directory_is_inaccessible(self):
        os.mkdir(os.path.join(self.repo, "nested.ts"))
        status = RepositoryStatus(branch="main", untracked=["nested.ts", "c.ts"])
        result = self.run_pipeline(
            ReviewRequest(repository_path=self.repo, review_type="full", analysis_type="static"),
            status=status,
        )

        self.assertEqual(result.files[0].status, ReviewStatus.INACCESSIBLE)
        self.assertEqual(result.files[0].reason, "Path is a directory")
        self.assertEqual(result.files[1].status, ReviewStatus.REVIEWED)

    def test_oversized_file_is_not_read(self):
        self.config.analysis.max_read_size = 5
        result = self.run_pipeline(ReviewRequest(repository_path=self.repo, review_type="staged", analysis_type="static"))
        self.assertEqual(result.files[0].status, ReviewStatus.INACCESSIBLE)
        self.assertEqual(result.files[0].reason, "File exceeds readable size limit (20 bytes > 5 bytes)")

    @patch("core.pipeline.create_strategy")
    def test_unexpected_strategy_error_marks_file(self, mock_create_strategy):
        strategy = AsyncMock()
        strategy.perform_analysis.side_effect = RuntimeError("boom")
        mock_create_strategy.return_value = strategy

        result = self.run_pipeline(ReviewRequest(repository_path=self.repo, review_type="modified", analysis_type="static"))

        self.assertEqual(result.files[0].status, ReviewStatus.ERROR)
        self.assertEqual(result.files[0].reason, "Unexpected error while reviewing file")
        # b.ts is skipped before analysis
        self.assertEqual(result.files[1].status, ReviewStatus.SKIPPED)


def test_result_is_immutable():
    result = asyncio.run(
        ReviewPipeline(Config(), status_reader=FakeStatusReader(RepositoryStatus(branch="main")))
        .execute(ReviewRequest(analysis_type="static"))
    )
    assert result.files == ()
    with pytest.raises(ValidationError):
        result.summary = "changed"


def test_nested_result_is_immutable(tmp_path):
    (tmp_path / "a.ts").write_text("export const run = (x) => eval(x);\n", encoding="utf-8")
    status = RepositoryStatus(branch="main", staged=["a.ts"])
    result = asyncio.run(
        ReviewPipeline(Config(), status_reader=FakeStatusReader(status))
        .execute(ReviewRequest(repository_path=str(tmp_path), review_type="staged", analysis_type="static"))
    )
    reviewed = result.files[0]
    assert reviewed.status == ReviewStatus.REVIEWED

    with pytest.raises(ValidationError):
        reviewed.status = ReviewStatus.ERROR
    with pytest.raises(ValidationError):
        reviewed.analysis.context = ""
    with pytest.raises(AttributeError):
        reviewed.analysis.security_issues.append("x")
    with pytest.raises(AttributeError):
        result.repository_status.staged.append("x")
    with pytest.raises(AttributeError):
        result.files.append(reviewed)

    assert result.repository_status.staged == ("a.ts",)
    assert reviewed.analysis.security_issues


def test_repository_error_propagates():
    reader = AsyncMock()
    reader.status.side_effect = RepositoryAccessError("Git command execution failed. Is this a valid repository?")
    pipeline = ReviewPipeline(Config(), status_reader=reader)

    with pytest.raises(RepositoryAccessError):
        asyncio.run(pipeline.execute(ReviewRequest(analysis_type="static")))


def test_build_summary_counts_inaccessible_as_errors():
    files = [
        ReviewedFile(path="a.ts", status=ReviewStatus.REVIEWED),
        ReviewedFile(path="b.ts", status=ReviewStatus.SKIPPED, reason="Unsupported file type"),
        ReviewedFile(path="c.ts", status=ReviewStatus.ERROR, reason="x"),
        ReviewedFile(path="d.ts", status=ReviewStatus.INACCESSIBLE),
    ]
    summary = build_summary(RepositoryStatus(branch="main"), files)
    assert summary.startswith("Code Review Results")
    assert "Reviewed 4 files in branch 'main'." in summary
    assert summary.endswith("Reviewed: 1 | Skipped: 1 | Errors: 2")


def test_build_pipeline_creates_backend_only_when_needed():
    config = Config(backend=BackendConfig(provider="mock"))
    assert build_pipeline(config, "static").backend is None
    assert isinstance(build_pipeline(config, "codex").backend, MockBackend)

    with pytest.raises(ConfigError):
        build_pipeline(Config(backend=BackendConfig(provider="nope")), "codex")


if __name__ == "__main__":
    unittest.main()
