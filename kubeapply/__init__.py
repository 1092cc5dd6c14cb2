"""
kubeapply - kubectl apply/delete as a Python library

Apply and delete Kubernetes manifests and Kustomizations against a cluster
with the semantics of ``kubectl apply`` and ``kubectl delete``.

Modules:
- kubectl: apply/delete execution against a kubeconfig
- resources: ephemeral kind clusters and existing-cluster wrappers for tests
"""

from .modules.kubectl import (
    ApplyKustomizationOptions,
    ApplyManifestsOptions,
    DeadlineExceededError,
    DryRunType,
    EmptyKubeconfigError,
    EngineFatalError,
    KubeApplyError,
    MissingOptionsError,
    NoFilesError,
    RequestValidationError,
    TransportError,
    apply_kustomization,
    apply_manifests,
    delete_kustomization,
    delete_manifests,
)

__version__ = "1.0.0"

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
    "apply_kustomization",
    "apply_manifests",
    "delete_kustomization",
    "delete_manifests",
]
