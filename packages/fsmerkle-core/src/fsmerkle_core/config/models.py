from pydantic import BaseModel, Field, field_validator
from typing import Literal

from fsmerkle_core.merkle.tree import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS


class MerkleConfig(BaseModel):
    algorithm: str = DEFAULT_ALGORITHM
    ignore_patterns: list[str] = Field(default_factory=lambda: [
        ".git", "__pycache__", ".venv", "node_modules", ".tox"
    ])

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        v = v.lower().replace("-", "_")
        if v not in SUPPORTED_ALGORITHMS:
            supported = ", ".join(sorted(SUPPORTED_ALGORITHMS))
            raise ValueError(f"unsupported algorithm {v!r} (expected one of: {supported})")
        return v


class StorageConfig(BaseModel):
    directory: str = "merkle_states"


class FsMerkleConfig(BaseModel):
    merkle: MerkleConfig = Field(default_factory=MerkleConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
