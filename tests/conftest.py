"""Shared test fixtures for fsmerkle."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from fsmerkle_core.config.models import FsMerkleConfig, StorageConfig
from fsmerkle_core.merkle import Snapshot, compute_hash
from fsmerkle_core.storage import CsvSnapshotStore


def make_project(root: Path) -> Path:
    """Create a small project layout with nested directories."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "src").mkdir(exist_ok=True)
    (root / "src" / "main.py").write_text("print('hi')")
    (root / "src" / "util.py").write_text("def helper(): pass")
    (root / "README.md").write_text("# Readme")
    return root


@pytest.fixture
def project(tmp_path):
    """A project directory kept apart from any snapshot storage."""
    return make_project(tmp_path / "project")


@pytest.fixture
def hello_world(tmp_path):
    """Two files: a.txt="hello", b.txt="world"."""
    root = tmp_path / "hello_world"
    root.mkdir()
    (root / "a.txt").write_text("hello")
    (root / "b.txt").write_text("world")
    return root


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "merkle_states"


@pytest.fixture
def store(storage_dir):
    return CsvSnapshotStore(storage_dir)


@pytest.fixture
def sample_config(storage_dir):
    return FsMerkleConfig(storage=StorageConfig(directory=str(storage_dir)))


@pytest.fixture
def base_time():
    return datetime(2026, 10, 17, 9, 30, 15, 123456, tzinfo=timezone.utc)


@pytest.fixture
def make_snapshot(base_time):
    """Factory: snapshot from a {path: content} dict, N seconds after base_time."""

    def _make(files: dict[str, bytes], offset: int = 0, root: bytes | None = None) -> Snapshot:
        hashes = {path: compute_hash(content) for path, content in files.items()}
        return Snapshot(
            timestamp=base_time + timedelta(seconds=offset),
            root_hash=root if root is not None else compute_hash(b"".join(sorted(hashes.values()))),
            file_hashes=hashes,
        )

    return _make
