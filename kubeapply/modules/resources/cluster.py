"""
Disposable kind clusters and wrappers around existing clusters.

Both expose a kubeconfig file path and a typed Kubernetes API client. They
are intended for integration tests: start a cluster, point the apply and
delete functions at its kubeconfig, and check the result with the client.

Example:

    cluster = EphemeralCluster()
    cluster.start()
    try:
        apply_manifests(cluster.kubeconfig_file_path, ApplyManifestsOptions(), [path])
        cluster.core_v1().read_namespace("demo")
    finally:
        cluster.stop()
"""

import logging
import os
import subprocess
import tempfile
from dataclasses import replace
from typing import Any, Dict, Optional

import yaml
from kubernetes import client as k8s_client
from kubernetes import config, dynamic

from ...config.provider import ClusterConfig, get_config_provider
from ..kubectl.errors import KubeApplyError
from .names import random_name

logger = logging.getLogger(__name__)

CLUSTER_NAME_LENGTH = 24
CLUSTER_NAME_PREFIXES = ("ephemeral", "cluster")

# Buffer on top of kind's own --wait before the subprocess is killed.
_KIND_CREATE_TIMEOUT = 600
_KIND_DELETE_TIMEOUT = 300


class ClusterError(KubeApplyError):
    """A cluster could not be created, connected to or torn down."""


class KindProvider:
    """Creates and deletes clusters with the kind CLI."""

    def __init__(self, kind_path: str = "kind"):
        self.kind_path = kind_path

    @staticmethod
    def cluster_config(name: str, image: str) -> Dict[str, Any]:
        """v1alpha4 cluster config with a single control-plane node."""
        return {
            "kind": "Cluster",
            "apiVersion": "kind.x-k8s.io/v1alpha4",
            "name": name,
            "nodes": [
                {"role": "control-plane", "image": image},
            ],
        }

    def create(self, name: str, kubeconfig_path: str, image: str, wait_for_ready: str = "5m") -> None:
        cluster_config = yaml.safe_dump(self.cluster_config(name, image), sort_keys=False)

        logger.info(f"Creating kind cluster {name} ({image})")
        subprocess.run(
            [
                self.kind_path,
                "create",
                "cluster",
                "--name",
                name,
                "--kubeconfig",
                kubeconfig_path,
                "--wait",
                wait_for_ready,
                "--config",
                "-",
            ],
            input=cluster_config,
            capture_output=True,
            text=True,
            check=True,
            timeout=_KIND_CREATE_TIMEOUT,
        )

    def delete(self, name: str, kubeconfig_path: str) -> None:
        logger.info(f"Deleting kind cluster {name}")
        subprocess.run(
            [
                self.kind_path,
                "delete",
                "cluster",
                "--name",
                name,
                "--kubeconfig",
                kubeconfig_path,
            ],
            capture_output=True,
            text=True,
            check=True,
            timeout=_KIND_DELETE_TIMEOUT,
        )


def _describe(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError) and exc.stderr:
        return exc.stderr.strip()
    return str(exc)


class _ClientAccessors:
    """Typed client accessors shared by both cluster kinds."""

    _api_client: Optional[k8s_client.ApiClient] = None
    _dynamic_client: Optional[dynamic.DynamicClient] = None
    _kubeconfig_file_path: str = ""

    @property
    def kubeconfig_file_path(self) -> str:
        return self._kubeconfig_file_path

    @property
    def client(self) -> Optional[k8s_client.ApiClient]:
        return self._api_client

    def core_v1(self) -> k8s_client.CoreV1Api:
        return k8s_client.CoreV1Api(self._require_client())

    def apps_v1(self) -> k8s_client.AppsV1Api:
        return k8s_client.AppsV1Api(self._require_client())

    @property
    def dynamic_client(self) -> dynamic.DynamicClient:
        # DynamicClient runs discovery on construction, so build it on first use.
        if self._dynamic_client is None:
            self._dynamic_client = dynamic.DynamicClient(self._require_client())
        return self._dynamic_client

    def _require_client(self) -> k8s_client.ApiClient:
        if self._api_client is None:
            raise ClusterError("cluster client is not initialized")
        return self._api_client


def _build_api_client(kubeconfig_path: str, what: str) -> k8s_client.ApiClient:
    try:
        return config.new_client_from_config(config_file=kubeconfig_path)
    except Exception as e:
        raise ClusterError(f"could not create client for {what}: {e}") from e


class ExistingCluster(_ClientAccessors):
    """A cluster reached through an existing kubeconfig file."""

    def __init__(self, kubeconfig_path: str, api_client: k8s_client.ApiClient):
        self._kubeconfig_file_path = kubeconfig_path
        self._api_client = api_client
        self._dynamic_client = None

    @classmethod
    def from_kubeconfig(cls, kubeconfig_path: str) -> "ExistingCluster":
        """
        Wrap an existing kubeconfig.

        Example:
            cluster = ExistingCluster.from_kubeconfig("/home/user/.kube/config")
        """
        api_client = _build_api_client(kubeconfig_path, "generic cluster")
        return cls(kubeconfig_path, api_client)


class EphemeralCluster(_ClientAccessors):
    """
    A kind cluster that lives for the duration of a test run.

    ``stop()`` before ``start()`` does nothing. A failed ``start()`` does not
    clean up after itself; call ``stop()`` anyway or accept the leftovers.
    """

    def __init__(
        self,
        node_image: Optional[str] = None,
        node_version: Optional[str] = None,
        config: Optional[ClusterConfig] = None,
    ):
        if config is None:
            config = get_config_provider().get_cluster_config()

        self.config = replace(
            config,
            node_image=node_image or config.node_image,
            node_version=node_version or config.node_version,
        )

        self.cluster_name = ""
        self.provider: Optional[KindProvider] = None
        self._kubeconfig_file_path = ""
        self._api_client = None
        self._dynamic_client = None

    def start(self) -> None:
        provider = KindProvider(self.config.kind_path)

        cluster_name = random_name(CLUSTER_NAME_LENGTH, CLUSTER_NAME_PREFIXES)

        try:
            fd, kubeconfig_path = tempfile.mkstemp(suffix=".kubeconfig", prefix=f"{cluster_name}-")
            os.close(fd)
        except OSError as e:
            raise ClusterError(
                f"could not create temporary file for kubeconf for cluster {cluster_name}"
            ) from e

        try:
            provider.create(
                cluster_name,
                kubeconfig_path,
                self.config.image,
                wait_for_ready=self.config.wait_for_ready,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ClusterError(
                f"could not create ephemeral cluster {cluster_name}: {_describe(e)}"
            ) from e

        api_client = _build_api_client(kubeconfig_path, f"ephemeral cluster {cluster_name}")

        self._api_client = api_client
        self._dynamic_client = None
        self.cluster_name = cluster_name
        self._kubeconfig_file_path = kubeconfig_path
        self.provider = provider

        logger.info(f"Ephemeral cluster {cluster_name} is ready (kubeconfig: {kubeconfig_path})")

    def stop(self) -> None:
        if self.provider is None:
            return

        try:
            self.provider.delete(self.cluster_name, self._kubeconfig_file_path)
        except (OSError, subprocess.SubprocessError) as e:
            raise ClusterError(
                f"could not delete ephemeral cluster {self.cluster_name}: {_describe(e)}"
            ) from e

        try:
            os.remove(self._kubeconfig_file_path)
        except OSError as e:
            raise ClusterError(
                f"could not delete kubeconfig file {self._kubeconfig_file_path}"
            ) from e

        self.provider = None

    def __enter__(self) -> "EphemeralCluster":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
