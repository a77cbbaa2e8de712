from __future__ import annotations

# Re-export loader / runtime helpers
from .config_loader import (
    RUNTIME_OVERRIDES_FILENAME,
    dump_runtime_overrides,
    get_config_dir,
    load_config,
)

# Re-export config models
from .config_models import (
    AppConfig,
    ExchangeConfig,
    GasConfig,
    LimitOrderConfig,
)

__all__ = [
    # models
    "ExchangeConfig",
    "GasConfig",
    "LimitOrderConfig",
    "AppConfig",
    # loader/runtime
    "RUNTIME_OVERRIDES_FILENAME",
    "get_config_dir",
    "dump_runtime_overrides",
    "load_config",
]
