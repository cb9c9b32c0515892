"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import FsMerkleConfig

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_LOG_FORMATS = {
    "text": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}


_ENV_REF = re.compile(r"\$\{(\w+)\}")


def _candidate_paths(cli_path: str | None) -> list[Path]:
    # First existing, non-empty file wins: --config, then the working
    # directory, then the user's home. An explicit --config must exist.
    candidates = [Path("fsmerkle.yaml"), Path.home() / ".fsmerkle" / "config.yaml"]
    if cli_path:
        explicit = Path(cli_path)
        if not explicit.exists():
            raise ValueError(f"Config file not found: {cli_path}")
        candidates.insert(0, explicit)
    return candidates


def _read_yaml(path: Path) -> object:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def load_config(cli_path: str | None = None) -> FsMerkleConfig:
    """Resolve and validate the fsmerkle config, falling back to defaults.

    Raises ValueError for a missing ``--config`` file, unparsable YAML, or
    values the models reject.
    """
    for path in _candidate_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            return FsMerkleConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return FsMerkleConfig()


def _expand_env_vars(obj: object) -> object:
    """Substitute ``${VAR}`` in every string of a parsed YAML tree; unset vars become ''."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    return obj


def configure_logging(config: FsMerkleConfig) -> None:
    """Apply log_level and log_format to the root logger."""
    logging.basicConfig(
        level=_LOG_LEVELS[config.log_level],
        format=_LOG_FORMATS[config.log_format],
        force=True,
    )


# Default YAML template for `fsmerkle config init`
DEFAULT_CONFIG_TEMPLATE = """\
# fsmerkle.yaml

# Merkle tree
merkle:
  algorithm: "sha256"          # sha256 | sha384 | sha512 | sha3_256 | sha3_512 | blake2b | blake2s
  ignore_patterns:             # matched against every path component (glob syntax)
    - ".git"
    - "__pycache__"
    - ".venv"
    - "node_modules"
    - ".tox"

# Snapshot storage
storage:
  directory: "merkle_states"   # where state_<folder>_<timestamp>.csv files are written

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
