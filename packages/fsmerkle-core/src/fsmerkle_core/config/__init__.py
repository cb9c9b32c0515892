from .loader import configure_logging, load_config
from .models import FsMerkleConfig, MerkleConfig, StorageConfig

__all__ = [
    "FsMerkleConfig",
    "MerkleConfig",
    "StorageConfig",
    "configure_logging",
    "load_config",
]
