"""Tests for the persistent settings store."""

import pytest
import yaml

from keygrade.libs.settings_store import API_KEY_SETTING, GRADING_PROMPT_SETTING, SettingsStore


def test_missing_file_is_empty(tmp_path):
    store = SettingsStore(tmp_path / "settings.yaml")
    assert store.get(API_KEY_SETTING) is None
    assert store.get(API_KEY_SETTING, "default") == "default"
    assert not (tmp_path / "settings.yaml").exists()


def test_values_persist(tmp_path):
    path = tmp_path / "nested" / "settings.yaml"
    SettingsStore(path).set(GRADING_PROMPT_SETTING, "Be lenient.")

    assert SettingsStore(path).get(GRADING_PROMPT_SETTING) == "Be lenient."
    assert yaml.safe_load(path.read_text()) == {GRADING_PROMPT_SETTING: "Be lenient."}


def test_delete(tmp_path):
    path = tmp_path / "settings.yaml"
    store = SettingsStore(path)
    store.set(GRADING_PROMPT_SETTING, "x")
    store.delete(GRADING_PROMPT_SETTING)

    assert GRADING_PROMPT_SETTING not in store
    assert GRADING_PROMPT_SETTING not in SettingsStore(path)


def test_save_api_key_trims(tmp_path):
    store = SettingsStore(tmp_path / "settings.yaml")
    assert store.save_api_key("  sk-abc \n")
    assert store.get(API_KEY_SETTING) == "sk-abc"


@pytest.mark.parametrize("value", ["", "   ", None])
def test_blank_api_key_not_saved(tmp_path, value):
    store = SettingsStore(tmp_path / "settings.yaml")
    store.save_api_key("sk-old")

    assert store.save_api_key(value) is False
    assert store.get(API_KEY_SETTING) == "sk-old"


def test_empty_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("")
    assert SettingsStore(path).get(API_KEY_SETTING) is None


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(TypeError):
        SettingsStore(path)


def test_from_configs_uses_settings_path(tmp_path):
    path = tmp_path / "custom.yaml"
    store = SettingsStore.from_configs({"storage": {"settings_path": str(path)}})
    assert store.path == path


def test_from_configs_default_path(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    store = SettingsStore.from_configs({"openai": {}})
    assert store.path == tmp_path / ".keygrade" / "settings.yaml"
