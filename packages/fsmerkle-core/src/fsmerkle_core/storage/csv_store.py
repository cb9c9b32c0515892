"""SnapshotStore implementation backed by one CSV file per snapshot."""

from __future__ import annotations

import csv
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from fsmerkle_core.merkle.models import (
    Digest,
    Snapshot,
    SnapshotNotFoundError,
    SnapshotReadError,
    SnapshotWriteError,
)

logger = logging.getLogger(__name__)

HEADER = ["timestamp", "root_hash", "file_path", "file_hash"]

# Sortable, so lexical order of file names is chronological
_FILENAME_TS_FORMAT = "%Y%m%d_%H%M%S_%f"
_FILENAME_TS_RE = r"\d{8}_\d{6}_\d{6}"

# File names that are not valid UTF-8 reach us as lone surrogates from
# os.walk; surrogateescape writes them back as the original bytes
_TEXT_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape"}


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from 3.11 on
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _discard(path: Path | None) -> None:
    if path is not None:
        path.unlink(missing_ok=True)


def _decode_hex(value: str, what: str, path: Path, line: int) -> Digest:
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise SnapshotReadError(path, f"line {line}: invalid {what} {value!r}") from e


class CsvSnapshotStore:
    """SnapshotStore implementation writing ``state_<subject>_<timestamp>.csv`` files.

    Every row repeats the snapshot's timestamp and root hash next to one
    file's path and hash, so a snapshot is a flat, denormalised table::

        timestamp,root_hash,file_path,file_hash
    """

    def __init__(self, storage_dir: str | Path = "merkle_states") -> None:
        self.storage_dir = Path(storage_dir)

    def _filename(self, snapshot: Snapshot, subject: str) -> Path:
        ts = snapshot.timestamp
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc)
        return self.storage_dir / f"state_{subject}_{ts.strftime(_FILENAME_TS_FORMAT)}.csv"

    # -- SnapshotStore protocol ------------------------------------------------

    def save(self, snapshot: Snapshot, subject: str) -> Path:
        """Write *snapshot* to a new CSV file and return its path.

        Rows go to a hidden temporary file that is renamed into place once
        complete. Raises SnapshotWriteError on failure, leaving no file.
        """
        target = self._filename(snapshot, subject)
        timestamp = snapshot.timestamp.isoformat()
        root_hash = snapshot.root_hash.hex()

        tmp_path: Path | None = None
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                dir=self.storage_dir,
                prefix=f".{target.stem}_",
                suffix=".tmp",
                delete=False,
                newline="",
                **_TEXT_ENCODING,
            ) as f:
                tmp_path = Path(f.name)
                writer = csv.writer(f)
                writer.writerow(HEADER)
                for file_path in sorted(snapshot.file_hashes):
                    writer.writerow([
                        timestamp,
                        root_hash,
                        file_path,
                        snapshot.file_hashes[file_path].hex(),
                    ])
            os.replace(tmp_path, target)
        except (OSError, UnicodeError, csv.Error) as e:
            _discard(tmp_path)
            raise SnapshotWriteError(target, str(e)) from e
        except BaseException:
            _discard(tmp_path)
            raise

        logger.debug("saved snapshot of %s (%d files) to %s", subject, snapshot.file_count, target)
        return target

    def load(self, path: str | Path) -> Snapshot:
        """Read a snapshot file written by save().

        Raises SnapshotNotFoundError if the file is missing and
        SnapshotReadError if its contents are malformed.
        """
        path = Path(path)
        if not path.is_file():
            raise SnapshotNotFoundError(str(path))

        timestamp: datetime | None = None
        root_hash: Digest | None = None
        file_hashes: dict[str, Digest] = {}
        try:
            with open(path, newline="", **_TEXT_ENCODING) as f:
                reader = csv.reader(f)
                header = next(reader, None)
                if header != HEADER:
                    raise SnapshotReadError(path, f"invalid CSV header {header!r}")

                for row in reader:
                    line = reader.line_num
                    if not row:
                        continue
                    if len(row) != len(HEADER):
                        raise SnapshotReadError(
                            path, f"line {line}: expected {len(HEADER)} columns, got {len(row)}"
                        )
                    ts_raw, root_raw, file_path, hash_raw = row

                    try:
                        row_ts = _parse_timestamp(ts_raw)
                    except ValueError as e:
                        raise SnapshotReadError(path, f"line {line}: invalid timestamp {ts_raw!r}") from e
                    row_root = _decode_hex(root_raw, "root hash", path, line)

                    if timestamp is None:
                        timestamp, root_hash = row_ts, row_root
                    elif row_ts != timestamp or row_root != root_hash:
                        raise SnapshotReadError(
                            path, f"line {line}: timestamp/root hash differs from first row"
                        )

                    if file_path in file_hashes:
                        raise SnapshotReadError(path, f"line {line}: duplicate path {file_path!r}")
                    file_hashes[file_path] = _decode_hex(hash_raw, "file hash", path, line)
        except (OSError, csv.Error) as e:
            raise SnapshotReadError(path, str(e)) from e

        if timestamp is None or root_hash is None:
            raise SnapshotReadError(path, "no snapshot rows")

        logger.debug("loaded snapshot %s (%d files)", path, len(file_hashes))
        return Snapshot(timestamp=timestamp, root_hash=root_hash, file_hashes=file_hashes)

    def list_snapshots(self, subject: str) -> list[Path]:
        """All stored snapshot files for *subject*, oldest first."""
        if not self.storage_dir.is_dir():
            return []
        pattern = re.compile(rf"state_{re.escape(subject)}_{_FILENAME_TS_RE}\.csv")
        return sorted(
            p for p in self.storage_dir.iterdir()
            if p.is_file() and pattern.fullmatch(p.name)
        )

    def find_latest(self, subject: str) -> Path:
        """Path of the most recent snapshot for *subject*."""
        files = self.list_snapshots(subject)
        if not files:
            raise SnapshotNotFoundError(subject)
        return files[-1]

    def load_latest(self, subject: str) -> Snapshot:
        return self.load(self.find_latest(subject))
