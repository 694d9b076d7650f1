"""Tests for layered YAML configuration."""

import os
import tempfile

import pytest
import yaml

from keygrade.libs.config_loader import get_config, load_all_configs, load_configs


def write_yaml(directory, name, data):
    path = os.path.join(directory, name)
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


def test_later_files_override_earlier():
    """Nested keys merge; scalar values from later files win."""
    with tempfile.TemporaryDirectory() as tmp:
        default = write_yaml(tmp, "default.yaml", {
            "openai": {"model": "gpt-4o-mini", "pydantic_ai_settings": {"temperature": 0}},
            "grading": {"pass_threshold": 70},
        })
        local = write_yaml(tmp, "local.yaml", {
            "openai": {"api_key": "sk-local", "pydantic_ai_settings": {"max_tokens": 2000}},
            "grading": {"pass_threshold": 60},
        })

        result = load_configs(default, local)

    assert result == {
        "openai": {
            "model": "gpt-4o-mini",
            "api_key": "sk-local",
            "pydantic_ai_settings": {"temperature": 0, "max_tokens": 2000},
        },
        "grading": {"pass_threshold": 60},
    }


def test_missing_file_is_skipped():
    with tempfile.TemporaryDirectory() as tmp:
        default = write_yaml(tmp, "default.yaml", {"app": {"port": 5000}})
        result = load_configs(default, os.path.join(tmp, "local.yaml"))
    assert result == {"app": {"port": 5000}}


def test_no_configs_loaded():
    with pytest.raises(ValueError, match="No configs loaded"):
        load_configs("nonexistent1.yaml", "nonexistent2.yaml")


def test_non_dict_config_rejected():
    with tempfile.TemporaryDirectory() as tmp:
        path = write_yaml(tmp, "bad.yaml", ["not", "a", "mapping"])
        with pytest.raises(TypeError, match="must be a dict"):
            load_configs(path)


def test_dict_replaced_by_scalar():
    with tempfile.TemporaryDirectory() as tmp:
        first = write_yaml(tmp, "a.yaml", {"grading": {"default_prompt": None}})
        second = write_yaml(tmp, "b.yaml", {"grading": "disabled"})
        assert load_configs(first, second) == {"grading": "disabled"}


class TestGetConfig:
    """Test dot-separated lookups."""

    config = {
        "openai": {"model": "gpt-4o-mini", "organization": None},
        "grading": {"pass_threshold": 70},
    }

    def test_nested_lookup(self):
        assert get_config("openai.model", self.config) == "gpt-4o-mini"
        assert get_config("grading", self.config) == {"pass_threshold": 70}

    def test_none_value_is_returned(self):
        assert get_config("openai.organization", self.config, default="fallback") is None

    def test_missing_key_raises(self):
        with pytest.raises(KeyError):
            get_config("openai.api_key", self.config)

    def test_missing_key_with_default(self):
        assert get_config("openai.api_key", self.config, default="") == ""
        assert get_config("storage.settings_path", self.config, default=None) is None

    def test_descending_into_scalar(self):
        with pytest.raises(KeyError, match="non-dict"):
            get_config("grading.pass_threshold.value", self.config)
        assert get_config("grading.pass_threshold.value", self.config, default=1) == 1


def test_bundled_defaults():
    """The shipped config/default.yaml has the documented keys."""
    config = load_all_configs()

    assert get_config("openai.model", config) == "gpt-4o-mini"
    assert get_config("openai.pydantic_ai_settings.temperature", config) == 0
    assert get_config("grading.pass_threshold", config) == 70
    assert get_config("app.port", config) == 5000
    assert get_config("extraction.ocr_language", config) == "eng"


def test_get_config_without_config_reads_config_dir():
    assert get_config("openai.model") == get_config("openai.model", load_all_configs())
