# aasdiscovery - Discovery index for Asset Administration Shells
#
# Finds AAS identifiers by the asset links (name/value descriptors such as
# serialNumber=SN-1234) attached to them.
#
# Core concepts:
# - NameValue: A single asset link
# - DescriptorStore: Owns each AAS id's asset link set, durable via a backend
# - LinkIndex: Derived index from asset link to the AAS ids holding it
# - SearchEngine: Intersection search with stateless cursor paging
# - DiscoveryService: Register, fetch, delete and search entry point

from .errors import (
    DiscoveryError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
)
from .links import NameValue, AssetLinkRecord
from .index import LinkIndex
from .store import DescriptorStore, RegisterOutcome, create_store
from .storage import FileBackend, MemoryBackend, SQLiteBackend
from .search import SearchEngine, SearchPage
from .service import DiscoveryService
from .config import DiscoveryConfig, load_config

__all__ = [
    # Core
    "NameValue",
    "AssetLinkRecord",
    "LinkIndex",
    "DescriptorStore",
    "RegisterOutcome",
    "create_store",
    "SearchEngine",
    "SearchPage",
    "DiscoveryService",
    # Storage
    "FileBackend",
    "MemoryBackend",
    "SQLiteBackend",
    # Configuration
    "DiscoveryConfig",
    "load_config",
    # Errors
    "DiscoveryError",
    "InvalidInputError",
    "NotFoundError",
    "PayloadTooLargeError",
    "StorageError",
]

__version__ = "0.1.0"
