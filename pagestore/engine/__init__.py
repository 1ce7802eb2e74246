"""PageStore Engine — errors, configuration, logging."""

from pagestore.engine.config import PageStoreConfig, load_config  # noqa: F401
from pagestore.engine.errors import ErrorKind, PageStoreError  # noqa: F401

__all__ = [
    "ErrorKind",
    "PageStoreConfig",
    "PageStoreError",
    "load_config",
]
