"""iconscope - Icon resolution and caching engine for installed-program inventories."""

__version__ = "0.1.0"

from iconscope.cache import CacheScope, CacheStats, CacheStore, CacheTier  # noqa: E402
from iconscope.config import EngineConfig, load_config  # noqa: E402
from iconscope.engine import IconResolutionEngine  # noqa: E402
from iconscope.logger import LogConfig, ResolutionLogger, VerboseLevel  # noqa: E402
from iconscope.types import (  # noqa: E402
    ErrorKind,
    IconRequest,
    InvalidRequestError,
    ProgramType,
    Provenance,
    ResolvedIcon,
)

__all__ = [
    "CacheScope",
    "CacheStats",
    "CacheStore",
    "CacheTier",
    "EngineConfig",
    "ErrorKind",
    "IconRequest",
    "IconResolutionEngine",
    "InvalidRequestError",
    "LogConfig",
    "ProgramType",
    "Provenance",
    "ResolutionLogger",
    "ResolvedIcon",
    "VerboseLevel",
    "load_config",
]
