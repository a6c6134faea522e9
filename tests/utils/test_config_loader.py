"""Tests for ConfigLoader.

Covers loading from dicts and YAML files, ${VAR} and ${VAR:-default}
resolution in nested structures, and section validation.
"""

import pytest

from queryanalysis.utils.config_loader import ConfigLoader


class TestConfigLoaderLoad:
    def test_load_dict(self):
        config = {"llm": {"model": "m"}}
        assert ConfigLoader.load(config) == config

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "llm:\n  model: llama-3.3-70b-versatile\n"
            "retrievers:\n  HARRISON:\n    collection_name: harrison\n"
        )

        config = ConfigLoader.load(str(path))

        assert config["llm"]["model"] == "llama-3.3-70b-versatile"
        assert config["retrievers"]["HARRISON"]["collection_name"] == "harrison"

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ConfigLoader.load(path) == {}

    def test_load_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            ConfigLoader.load(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(tmp_path / "missing.yaml")


class TestEnvVarResolution:
    def test_simple_var(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "secret")

        config = ConfigLoader.load({"llm": {"api_key": "${GROQ_API_KEY}"}})

        assert config["llm"]["api_key"] == "secret"

    def test_unset_var_is_empty(self, monkeypatch):
        monkeypatch.delenv("QA_UNSET_VAR", raising=False)

        assert ConfigLoader.load({"key": "${QA_UNSET_VAR}"}) == {"key": ""}

    def test_default_value(self, monkeypatch):
        monkeypatch.delenv("QA_CHROMA_PATH", raising=False)

        config = ConfigLoader.load({"chroma": {"path": "${QA_CHROMA_PATH:-./data}"}})

        assert config["chroma"]["path"] == "./data"

    def test_nested_lists_and_multiple_vars(self, monkeypatch):
        monkeypatch.setenv("QA_HOST", "localhost")
        monkeypatch.setenv("QA_PORT", "8000")

        config = ConfigLoader.load(
            {"urls": ["http://${QA_HOST}:${QA_PORT}", 42], "flag": True}
        )

        assert config == {"urls": ["http://localhost:8000", 42], "flag": True}


class TestConfigLoaderValidate:
    def test_valid(self):
        ConfigLoader.validate({"llm": {}, "retrievers": {"A": {}}})

    def test_missing_sections(self):
        with pytest.raises(ValueError, match=r"\['llm', 'retrievers'\]"):
            ConfigLoader.validate({})

    def test_empty_retrievers(self):
        with pytest.raises(ValueError, match="non-empty mapping"):
            ConfigLoader.validate({"llm": {}, "retrievers": {}})

    def test_custom_required(self):
        ConfigLoader.validate({"llm": {}}, required=("llm",))
