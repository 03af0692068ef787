"""Core data models for Cluster Export."""

from .schemas import (
    CaseSnapshot,
    Cluster,
    ClusterMembership,
    ClusterRun,
    ClusterState,
    Item,
    RunStatus,
)

__all__ = [
    "CaseSnapshot",
    "Cluster",
    "ClusterMembership",
    "ClusterRun",
    "ClusterState",
    "Item",
    "RunStatus",
]
