import pytest

from config.models import AnalysisConfig
from core.suitability import SuitabilityFilter, count_classes, count_functions, count_lines
from utils.errors import ConfigError


@pytest.fixture
def config():
    return AnalysisConfig(max_file_size=100, max_lines=5, max_functions=2, max_classes=1)


def test_counters():
    content = "function a() {}\nconst b = async () => 1;\ndef c():\n    pass\nclass D {}\n"
    assert count_functions(content) == 3
    assert count_classes(content) == 1
    assert count_lines(content) == 6
    assert count_lines("") == 1


def test_size_limit_is_inclusive(config):
    suitability = SuitabilityFilter(config)
    assert suitability.check("a.ts", "x" * 100).suitable

    result = suitability.check("a.ts", "x" * 101)
    assert not result.suitable
    assert result.reason == "File too large (101 bytes > 100 bytes)"


def test_size_counts_utf8_bytes(config):
    result = SuitabilityFilter(config).check("a.ts", "é" * 51)
    assert result.reason == "File too large (102 bytes > 100 bytes)"


def test_line_limit(config):
    suitability = SuitabilityFilter(config)
    assert suitability.check("a.ts", "\n" * 4).suitable
    assert suitability.check("a.ts", "\n" * 5).reason == "Too many lines (6 > 5)"


def test_function_and_class_limits(config):
    suitability = SuitabilityFilter(config)
    functions = "function a(){}\nfunction b(){}\nfunction c(){}"
    assert suitability.check("a.ts", functions).reason == "Too many functions (3 > 2)"

    classes = "class A {}\nclass B {}"
    assert suitability.check("a.ts", classes).reason == "Too many classes (2 > 1)"


def test_unsupported_extension_is_checked_first(config):
    result = SuitabilityFilter(config).check("notes.md", "x" * 1000)
    assert result.reason == "Unsupported file type"


def test_excluded_pattern_before_size(config):
    suitability = SuitabilityFilter(config)
    result = suitability.check("types/index.d.ts", "x" * 1000)
    assert result.reason == "File matches excluded pattern '\\.d\\.ts$'"

    assert not suitability.check("src\\node_modules\\lib.js", "").suitable
    assert not suitability.check("src/App.test.tsx", "").suitable


def test_size_before_lines(config):
    result = SuitabilityFilter(config).check("a.ts", "\n" * 200)
    assert result.reason.startswith("File too large")


def test_invalid_excluded_pattern_raises():
    with pytest.raises(ConfigError, match="Invalid excluded pattern"):
        SuitabilityFilter(AnalysisConfig(excluded_patterns=["(unclosed"]))
