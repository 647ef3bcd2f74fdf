from bucketwise_core.io.config import AppConfig, default_app_config, load_app_config  # noqa: F401
from bucketwise_core.io.state import load_state, save_state  # noqa: F401
from bucketwise_core.io.storage import JsonFileStore, MemoryStore  # noqa: F401

__all__ = [
    "AppConfig",
    "default_app_config",
    "load_app_config",
    "load_state",
    "save_state",
    "JsonFileStore",
    "MemoryStore",
]
