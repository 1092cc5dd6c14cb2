from .provider import (
    ClusterConfig,
    ConfigProvider,
    EngineConfig,
    EnvConfigProvider,
    get_config_provider,
    set_config_provider,
)

__all__ = [
    "ClusterConfig",
    "ConfigProvider",
    "EngineConfig",
    "EnvConfigProvider",
    "get_config_provider",
    "set_config_provider",
]
