from fsmerkle_core.storage.csv_store import HEADER, CsvSnapshotStore

__all__ = ["HEADER", "CsvSnapshotStore"]
