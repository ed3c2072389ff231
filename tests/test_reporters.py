import json

import pytest

from config.models import OutputConfig
from core.contracts.models import AnalysisResult, CodeReviewResult, RepositoryStatus, ReviewedFile, ReviewStatus
from core.reporting.factory import get_reporter
from core.reporting.json_reporter import JsonReporter
from core.reporting.text_reporter import TextReporter
from utils.errors import ConfigError, ReporterError


@pytest.fixture
def result():
    return CodeReviewResult(
        summary="Code Review Results\n===\n\nReviewed 4 files in branch 'main'.",
        repository_status=RepositoryStatus(branch="main", staged=["a.ts"]),
        files=[
            ReviewedFile(
                path="a.ts",
                status=ReviewStatus.REVIEWED,
                analysis=AnalysisResult(
                    context="Small module.\nSecond line.",
                    security_issues=["Hardcoded token"],
                    suggestions=["Add tests"],
                ),
            ),
            ReviewedFile(path="b.ts", status=ReviewStatus.SKIPPED, reason="Too many lines (21 > 10)"),
            ReviewedFile(path="c.ts", status=ReviewStatus.ERROR, reason="Invalid path: outside the repository"),
            ReviewedFile(path="d.ts", status=ReviewStatus.INACCESSIBLE, reason="File does not exist"),
        ],
    )


def test_text_reporter(result):
    output = TextReporter().render(result)

    assert output.startswith("Code Review Results")
    assert "1. a.ts\n" in output
    assert "   🧠 Analysis:\n   Small module.\n   Second line.\n" in output
    assert "   🔍 Security Issues:\n   - Hardcoded token\n" in output
    assert "   💡 Suggestions:\n   - Add tests\n" in output
    assert "Performance Issues" not in output
    assert "2. b.ts\n   ⚠️ Skipped: Too many lines (21 > 10)\n" in output
    assert "3. c.ts\n   ❌ Error: Invalid path: outside the repository\n" in output
    assert "4. d.ts\n   🔒 Inaccessible: File does not exist\n" in output


def test_text_reporter_without_emoji(result):
    output = TextReporter(use_emoji=False).render(result)
    assert "   Skipped: Too many lines (21 > 10)" in output
    assert "🧠" not in output


def test_text_reporter_no_files():
    empty = CodeReviewResult(summary="Summary", repository_status=RepositoryStatus(branch="main"))
    assert "No files to review." in TextReporter().render(empty)


def test_text_reporter_missing_template(result, tmp_path):
    reporter = TextReporter(template_dir=str(tmp_path), template_name="nope.j2")
    with pytest.raises(ReporterError, match="nope.j2"):
        reporter.render(result)


def test_json_reporter_uses_camel_case(result):
    data = json.loads(JsonReporter().render(result))

    assert data["repositoryStatus"]["branch"] == "main"
    assert data["files"][0]["analysis"]["securityIssues"] == ["Hardcoded token"]
    assert data["files"][1]["status"] == "skipped"
    assert data["files"][3]["reason"] == "File does not exist"


def test_same_result_renders_both_ways(result):
    text = get_reporter("text").render(result)
    parsed = CodeReviewResult.model_validate_json(get_reporter("json").render(result))
    assert parsed == result
    assert "a.ts" in text


def test_get_reporter():
    assert isinstance(get_reporter("json"), JsonReporter)
    reporter = get_reporter("text", OutputConfig(use_emoji=False))
    assert isinstance(reporter, TextReporter)
    assert reporter.use_emoji is False
    with pytest.raises(ConfigError, match="Unknown report format 'xml'"):
        get_reporter("xml")
