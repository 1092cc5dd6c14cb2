"""
Resources Module - Black Box Interface

Purpose: Provide clusters to run apply/delete against in tests
Interface: EphemeralCluster.start()/stop(), ExistingCluster.from_kubeconfig(), random_name()
Hidden: kind CLI usage, kubeconfig handling, client construction

Can be replaced with k3d, minikube or a managed test cluster.
"""

from .cluster import ClusterError, EphemeralCluster, ExistingCluster, KindProvider
from .names import random_name

__all__ = ["ClusterError", "EphemeralCluster", "ExistingCluster", "KindProvider", "random_name"]
