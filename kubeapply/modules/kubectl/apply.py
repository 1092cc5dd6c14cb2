"""
Apply manifests and Kustomizations, as ``kubectl apply`` would.
"""

import threading
from typing import Optional, Sequence

from . import bridge, engine
from .engine import Command, ConfigFlags, IOStreams
from .types import (
    ApplyKustomizationOptions,
    ApplyManifestsOptions,
    ApplyOptions,
    DryRunType,
)

# Held for the whole of an apply call; at most one apply is in flight.
_apply_lock = threading.Lock()


def apply_manifests(
    kubeconfig_path: str,
    options: Optional[ApplyManifestsOptions],
    file_paths: Sequence[str],
    timeout: Optional[float] = None,
) -> None:
    """
    Apply the given manifest files to the cluster ``kubeconfig_path`` points to.

    Args:
        kubeconfig_path: Path to the kubeconfig of the target cluster
        options: Dry-run and recursion settings
        file_paths: Manifest files or directories
        timeout: Seconds before the call gives up; defaults to the engine's
            configured default

    Raises:
        RequestValidationError: A precondition was not met
        EngineFatalError: kubectl failed
        DeadlineExceededError: The deadline passed first

    Example:
        apply_manifests(
            "/path/to/kubeconfig",
            ApplyManifestsOptions(),
            ["/path/to/manifest1.yaml", "/path/to/manifest2.yaml"],
            timeout=10,
        )
    """
    apply_opts = None
    if options is not None:
        apply_opts = ApplyOptions(
            dry_run=options.dry_run,
            recursive=options.recursive,
            is_kustomization=False,
        )

    _apply(kubeconfig_path, apply_opts, file_paths, timeout)


def apply_kustomization(
    kubeconfig_path: str,
    options: Optional[ApplyKustomizationOptions],
    file_paths: Sequence[str],
    timeout: Optional[float] = None,
) -> None:
    """
    Apply the given Kustomization directories to the cluster.

    Same contract as apply_manifests, with each path passed to
    ``kubectl apply --kustomize``.
    """
    apply_opts = None
    if options is not None:
        apply_opts = ApplyOptions(
            dry_run=options.dry_run,
            recursive=options.recursive,
            is_kustomization=True,
        )

    _apply(kubeconfig_path, apply_opts, file_paths, timeout)


def build_apply_command(
    options: ApplyOptions,
    file_paths: Sequence[str],
    config_flags: ConfigFlags,
    io_streams: IOStreams,
    time_left: float,
) -> Command:
    cmd = engine.new_cmd_apply(config_flags, io_streams)
    flags = cmd.flags()

    flags.set("request-timeout", str(int(time_left)))

    if options.dry_run in (DryRunType.CLIENT, DryRunType.SERVER):
        flags.set("dry-run", str(options.dry_run))

    if options.recursive:
        flags.set("recursive", "true")

    if options.is_kustomization:
        flags.set("kustomize", ",".join(file_paths))
    else:
        flags.set("filename", ",".join(file_paths))

    return cmd


def _apply(
    kubeconfig_path: str,
    options: Optional[ApplyOptions],
    file_paths: Sequence[str],
    timeout: Optional[float] = None,
) -> None:
    bridge.validate_request(kubeconfig_path, options, file_paths, "apply")

    file_paths = list(file_paths)
    bridge.execute(
        _apply_lock,
        kubeconfig_path,
        lambda config_flags, io_streams, time_left: build_apply_command(
            options, file_paths, config_flags, io_streams, time_left
        ),
        timeout,
    )
