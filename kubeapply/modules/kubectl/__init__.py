"""
Kubectl Module - Black Box Interface

Purpose: Apply and delete manifests and Kustomizations against a cluster
Interface: apply_manifests(), apply_kustomization(), delete_manifests(), delete_kustomization()
Hidden: kubectl invocation, fatal-error interception, deadline handling

Can be replaced with a different engine (direct K8s API, server-side apply client).
"""

from .apply import apply_kustomization, apply_manifests
from .delete import delete_kustomization, delete_manifests
from .errors import (
    DeadlineExceededError,
    EmptyKubeconfigError,
    EngineFatalError,
    KubeApplyError,
    MissingOptionsError,
    NoFilesError,
    RequestValidationError,
    TransportError,
    UnknownFlagError,
)
from .types import ApplyKustomizationOptions, ApplyManifestsOptions, DryRunType

__all__ = [
    "ApplyKustomizationOptions",
    "ApplyManifestsOptions",
    "DeadlineExceededError",
    "DryRunType",
    "EmptyKubeconfigError",
    "EngineFatalError",
    "KubeApplyError",
    "MissingOptionsError",
    "NoFilesError",
    "RequestValidationError",
    "TransportError",
    "UnknownFlagError",
    "apply_kustomization",
    "apply_manifests",
    "delete_kustomization",
    "delete_manifests",
]
