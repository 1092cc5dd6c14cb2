"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class EngineConfig:
    """kubectl engine configuration."""
    kubectl_path: str
    default_timeout: float


@dataclass
class ClusterConfig:
    """Ephemeral cluster configuration."""
    kind_path: str
    node_image: str
    node_version: str
    wait_for_ready: str

    @property
    def image(self) -> str:
        """Full node image reference."""
        return f"{self.node_image}:{self.node_version}"


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_engine_config(self) -> EngineConfig:
        """Get kubectl engine configuration."""
        ...

    def get_cluster_config(self) -> ClusterConfig:
        """Get ephemeral cluster configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_engine_config(self) -> EngineConfig:
        """Get engine configuration from environment variables."""
        raw_timeout = os.getenv("KUBEAPPLY_DEFAULT_TIMEOUT", "15")
        try:
            default_timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(
                f"KUBEAPPLY_DEFAULT_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            ) from None

        return EngineConfig(
            kubectl_path=os.getenv("KUBEAPPLY_KUBECTL", "kubectl"),
            default_timeout=default_timeout,
        )

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster configuration from environment variables."""
        return ClusterConfig(
            kind_path=os.getenv("KUBEAPPLY_KIND", "kind"),
            node_image=os.getenv("KUBEAPPLY_NODE_IMAGE", "kindest/node"),
            node_version=os.getenv("KUBEAPPLY_NODE_VERSION", "v1.26.2"),
            wait_for_ready=os.getenv("KUBEAPPLY_WAIT_FOR_READY", "5m"),
        )


_provider: Optional[ConfigProvider] = None


def get_config_provider() -> ConfigProvider:
    """Return the process-wide provider, creating an EnvConfigProvider on first use."""
    global _provider
    if _provider is None:
        _provider = EnvConfigProvider()
    return _provider


def set_config_provider(provider: Optional[ConfigProvider]) -> None:
    """Replace the process-wide provider. ``None`` resets to the default."""
    global _provider
    _provider = provider
