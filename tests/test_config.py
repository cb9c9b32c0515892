"""Tests for fsmerkle_core.config: models and YAML loader."""

import logging

import pytest
from pydantic import ValidationError

from fsmerkle_core.config.loader import (
    DEFAULT_CONFIG_TEMPLATE,
    _expand_env_vars,
    configure_logging,
    load_config,
)
from fsmerkle_core.config.models import FsMerkleConfig, MerkleConfig


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty cwd and HOME so no real config is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


# ── Model defaults ──────────────────────────────────────────────────


class TestFsMerkleConfigDefaults:
    def test_default_log_level(self):
        assert FsMerkleConfig().log_level == "info"

    def test_default_log_format(self):
        assert FsMerkleConfig().log_format == "text"

    def test_default_algorithm(self):
        assert FsMerkleConfig().merkle.algorithm == "sha256"

    def test_default_storage_directory(self):
        assert FsMerkleConfig().storage.directory == "merkle_states"

    def test_default_ignore_patterns(self):
        assert ".git" in FsMerkleConfig().merkle.ignore_patterns


class TestMerkleConfig:
    def test_algorithm_normalised(self):
        assert MerkleConfig(algorithm="SHA3-256").algorithm == "sha3_256"

    def test_invalid_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            MerkleConfig(algorithm="md5")

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            FsMerkleConfig(log_level="verbose")


# ── Loader ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_without_file(self, isolated):
        assert load_config() == FsMerkleConfig()

    def test_project_local_file(self, isolated):
        (isolated / "fsmerkle.yaml").write_text(
            "merkle:\n  algorithm: blake2b\nstorage:\n  directory: /var/states\nlog_level: debug\n"
        )
        config = load_config()
        assert config.merkle.algorithm == "blake2b"
        assert config.storage.directory == "/var/states"
        assert config.log_level == "debug"

    def test_cli_path_wins(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("log_level: debug\n")
        custom = isolated / "custom.yaml"
        custom.write_text("log_level: error\n")
        assert load_config(str(custom)).log_level == "error"

    def test_user_global_file(self, isolated):
        home_cfg = isolated / "home" / ".fsmerkle" / "config.yaml"
        home_cfg.parent.mkdir(parents=True)
        home_cfg.write_text("log_format: json\n")
        assert load_config().log_format == "json"

    def test_empty_file_falls_through(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("")
        assert load_config() == FsMerkleConfig()

    def test_missing_cli_path(self, isolated):
        with pytest.raises(ValueError, match="not found"):
            load_config(str(isolated / "missing.yaml"))

    def test_invalid_yaml(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("merkle: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config()

    def test_invalid_values(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("merkle:\n  algorithm: crc32\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_non_mapping_document(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_cli_path_must_exist_even_with_local_file(self, isolated):
        (isolated / "fsmerkle.yaml").write_text("log_level: debug\n")
        with pytest.raises(ValueError, match="not found"):
            load_config(str(isolated / "typo.yaml"))

    def test_env_var_expansion(self, isolated, monkeypatch):
        monkeypatch.setenv("STATE_DIR", "/data/states")
        (isolated / "fsmerkle.yaml").write_text('storage:\n  directory: "${STATE_DIR}/fs"\n')
        assert load_config().storage.directory == "/data/states/fs"

    def test_default_template_parses(self, isolated):
        (isolated / "fsmerkle.yaml").write_text(DEFAULT_CONFIG_TEMPLATE)
        assert load_config() == FsMerkleConfig()


class TestExpandEnvVars:
    def test_nested(self, monkeypatch):
        monkeypatch.setenv("X", "1")
        assert _expand_env_vars({"a": ["${X}", {"b": "v${X}"}], "c": 2}) == {
            "a": ["1", {"b": "v1"}],
            "c": 2,
        }

    def test_unset_becomes_empty(self, monkeypatch):
        monkeypatch.delenv("FSMERKLE_UNSET_VAR", raising=False)
        assert _expand_env_vars("${FSMERKLE_UNSET_VAR}") == ""


def test_configure_logging_sets_root_level():
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, root.handlers[:]
    try:
        configure_logging(FsMerkleConfig(log_level="warn"))
        assert root.level == logging.WARNING
        configure_logging(FsMerkleConfig(log_level="debug"))
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
