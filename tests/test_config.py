import io

import pytest

from config import logic
from config.loader import load_config
from config.logic import deep_merge, find_project_config, load_and_merge_configs
from config.models import Config
from utils.errors import ConfigError


def test_load_config_substitutes_env_vars(monkeypatch):
    monkeypatch.setenv("AIREVIEW_TEST_KEY", "sk-123")
    config = load_config(io.StringIO("backend:\n  api_key: ${AIREVIEW_TEST_KEY}\n"))
    assert config == {"backend": {"api_key": "sk-123"}}


def test_load_config_missing_env_var(monkeypatch):
    monkeypatch.delenv("AIREVIEW_MISSING_KEY", raising=False)
    with pytest.raises(ConfigError, match="AIREVIEW_MISSING_KEY"):
        load_config(io.StringIO("backend:\n  api_key: ${AIREVIEW_MISSING_KEY}\n"))


def test_load_config_empty_and_invalid():
    assert load_config(io.StringIO("")) == {}
    with pytest.raises(ConfigError, match="mapping"):
        load_config(io.StringIO("- a\n- b\n"))
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(io.StringIO("a: [unclosed\n"))


def test_deep_merge_replaces_lists():
    merged = deep_merge(
        {"analysis": {"max_lines": 10, "supported_extensions": [".ts", ".js"]}},
        {"analysis": {"supported_extensions": [".py"]}},
    )
    assert merged == {"analysis": {"max_lines": 10, "supported_extensions": [".py"]}}


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    user_config = tmp_path / "home" / ".aireview" / "config.yaml"
    monkeypatch.setattr(logic, "USER_CONFIG_PATH", user_config)
    return user_config


def test_defaults_match_models(isolated_home, tmp_path):
    config = load_and_merge_configs(start_dir=tmp_path)
    assert config == Config()


def test_layers_user_then_project(isolated_home, tmp_path):
    isolated_home.parent.mkdir(parents=True)
    isolated_home.write_text("analysis:\n  max_lines: 100\n  concurrency: 5\n", encoding="utf-8")

    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "src").mkdir()
    (repo / ".aireview.yaml").write_text("analysis:\n  concurrency: 8\nreview:\n  analysis_type: static\n", encoding="utf-8")

    assert find_project_config(repo / "src") == repo / ".aireview.yaml"

    config = load_and_merge_configs(start_dir=repo / "src")
    assert config.analysis.max_lines == 100
    assert config.analysis.concurrency == 8
    assert config.review.analysis_type == "static"


def test_broken_optional_file_is_skipped(isolated_home, tmp_path):
    isolated_home.parent.mkdir(parents=True)
    isolated_home.write_text("analysis: [broken\n", encoding="utf-8")
    config = load_and_merge_configs(start_dir=tmp_path)
    assert config.analysis.max_lines == 2500


def test_custom_config(tmp_path):
    custom = tmp_path / "custom.yaml"
    custom.write_text("output:\n  format: json\n", encoding="utf-8")
    assert load_and_merge_configs(custom_config_path=str(custom)).output.format == "json"

    with pytest.raises(ConfigError, match="not found"):
        load_and_merge_configs(custom_config_path=str(tmp_path / "missing.yaml"))


def test_validation_error(tmp_path):
    custom = tmp_path / "custom.yaml"
    custom.write_text("analysis:\n  max_lines: 0\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="validation failed"):
        load_and_merge_configs(custom_config_path=str(custom))
