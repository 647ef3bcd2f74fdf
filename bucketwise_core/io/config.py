from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Dict

from bucketwise_core.domain.models import DEFAULT_ALLOCATION
from bucketwise_core.services.allocation import validate_weights

STORE_ENV = "BUCKETWISE_STORE"


def default_store_path() -> Path:
    return Path(os.environ.get(STORE_ENV) or Path.home() / ".bucketwise_store.json")


@dataclasses.dataclass(frozen=True)
class AppConfig:
    store_path: Path = dataclasses.field(default_factory=default_store_path)
    currency: str = "CNY"
    default_allocation: Dict[str, float] = dataclasses.field(default_factory=lambda: dict(DEFAULT_ALLOCATION))
    log_level: str = "WARNING"


def default_app_config() -> AppConfig:
    return AppConfig()


def load_app_config(path: str | Path) -> AppConfig:
    data = _read_json(path)
    allocation = data.get("default_allocation")
    return AppConfig(
        store_path=Path(data["store_path"]).expanduser() if data.get("store_path") else default_store_path(),
        currency=str(data.get("currency", "CNY")),
        default_allocation=validate_weights(allocation) if allocation else dict(DEFAULT_ALLOCATION),
        log_level=str(data.get("log_level", "WARNING")).upper(),
    )


def _read_json(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    return data
