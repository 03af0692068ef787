"""Cluster selection for export runs."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from cluster_export.export.naming import cluster_display_name, is_pseudo_cluster
from cluster_export.host.adapter import CaseSource, Deduplicator
from cluster_export.models import Cluster


@dataclass(frozen=True)
class ClusterRow:
    """One line of the cluster listing."""

    cluster_run: str
    cluster: str
    items: int
    deduplicated_items: int


def select_clusters(
    source: CaseSource,
    run_name: str,
    cluster_ids: Optional[Sequence[int]] = None,
    include_pseudo: bool = False,
) -> List[Cluster]:
    """
    Pick the clusters of a run to export.

    Args:
        source: Case to read clusters from
        run_name: Cluster run name
        cluster_ids: Explicit selection; every cluster of the run if None
        include_pseudo: Keep pseudo-clusters in the default selection

    Returns:
        Selected clusters, sorted by ID

    Raises:
        ValueError: If the run or one of the requested IDs does not exist
    """
    clusters = source.clusters(run_name)

    if cluster_ids is None:
        return [c for c in clusters if include_pseudo or not is_pseudo_cluster(c.id)]

    by_id = {c.id: c for c in clusters}
    missing = [i for i in cluster_ids if i not in by_id]
    if missing:
        raise ValueError(
            f"Unknown cluster(s) in {run_name}: {', '.join(str(i) for i in missing)}"
        )
    return [by_id[i] for i in sorted(set(cluster_ids))]


def list_cluster_rows(
    source: CaseSource, run_name: str, deduplicator: Deduplicator
) -> List[ClusterRow]:
    """List a run's clusters with item counts before and after deduplication."""
    rows = []
    for cluster in source.clusters(run_name):
        items = source.cluster_items(run_name, cluster)
        rows.append(
            ClusterRow(
                cluster_run=run_name,
                cluster=cluster_display_name(cluster.id),
                items=len(items),
                deduplicated_items=len(deduplicator.deduplicate(items)),
            )
        )
    return rows
