"""
Delete the resources described by manifests or Kustomizations, as
``kubectl delete`` would.
"""

import threading
from typing import Optional, Sequence

from . import bridge, engine
from .engine import Command, ConfigFlags, IOStreams
from .types import DeleteOptions

_delete_lock = threading.Lock()


def delete_manifests(kubeconfig_path: str, *file_paths: str, timeout: Optional[float] = None) -> None:
    """Delete every resource defined in the given manifest files."""
    _delete(kubeconfig_path, DeleteOptions(is_kustomization=False), file_paths, timeout)


def delete_kustomization(kubeconfig_path: str, *file_paths: str, timeout: Optional[float] = None) -> None:
    """Delete every resource the given Kustomization directories build."""
    _delete(kubeconfig_path, DeleteOptions(is_kustomization=True), file_paths, timeout)


def build_delete_command(
    options: DeleteOptions,
    file_paths: Sequence[str],
    config_flags: ConfigFlags,
    io_streams: IOStreams,
    time_left: float,
) -> Command:
    cmd = engine.new_cmd_delete(config_flags, io_streams)

    if options.is_kustomization:
        cmd.flags().set("kustomize", ",".join(file_paths))
    else:
        cmd.flags().set("filename", ",".join(file_paths))

    return cmd


def _delete(
    kubeconfig_path: str,
    options: Optional[DeleteOptions],
    file_paths: Sequence[str],
    timeout: Optional[float] = None,
) -> None:
    bridge.validate_request(kubeconfig_path, options, file_paths, "delete")

    file_paths = list(file_paths)
    bridge.execute(
        _delete_lock,
        kubeconfig_path,
        lambda config_flags, io_streams, time_left: build_delete_command(
            options, file_paths, config_flags, io_streams, time_left
        ),
        timeout,
    )
