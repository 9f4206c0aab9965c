# aasdiscovery/config.py
"""
Service configuration.

Defaults live on the dataclass; a YAML file can override them and CLI
flags override the file.

Example discovery.yaml:
    host: 0.0.0.0
    port: 8080
    storage_backend: sqlite
    storage_path: /var/lib/aasdiscovery
    default_limit: 100
    max_limit: 1000
    max_body_bytes: 1048576
    log_level: INFO
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidInputError

STORAGE_BACKENDS = ("memory", "file", "sqlite")


@dataclass
class DiscoveryConfig:
    """Tunable settings of the discovery service."""
    host: str = "127.0.0.1"
    port: int = 8080
    # memory, file or sqlite
    storage_backend: str = "file"
    # Directory holding the record files or the SQLite database
    storage_path: str = "./discovery_data"
    # Page size when a search request names no limit
    default_limit: int = 100
    # Larger requested limits are clamped to this; None means unbounded
    max_limit: Optional[int] = None
    # Request bodies above this size are rejected with 413
    max_body_bytes: int = 1024 * 1024
    log_level: str = "INFO"

    def __post_init__(self):
        for name in ("host", "storage_backend", "storage_path", "log_level"):
            if not isinstance(getattr(self, name), str):
                raise InvalidInputError(f"{name} must be a string")
        for name in ("port", "default_limit", "max_limit", "max_body_bytes"):
            value = getattr(self, name)
            if name == "max_limit" and value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(f"{name} must be an integer, got {value!r}")

        if self.storage_backend not in STORAGE_BACKENDS:
            raise InvalidInputError(
                f"Unknown storage backend: {self.storage_backend}. "
                f"Expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        if not 0 <= self.port <= 65535:
            raise InvalidInputError(f"port out of range: {self.port}")
        if self.default_limit < 0:
            raise InvalidInputError("default_limit must not be negative")
        if self.max_limit is not None and self.max_limit < 1:
            raise InvalidInputError("max_limit must be at least 1")
        if self.max_body_bytes < 1:
            raise InvalidInputError("max_body_bytes must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiscoveryConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidInputError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def merged(self, **overrides: Any) -> "DiscoveryConfig":
        """Return a copy with every non-None override applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DiscoveryConfig.from_dict(data)


def load_config(path: Path | str) -> DiscoveryConfig:
    """Load configuration from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return DiscoveryConfig()
    if not isinstance(data, dict):
        raise InvalidInputError(f"Configuration file must contain a mapping: {path}")
    return DiscoveryConfig.from_dict(data)
