"""Cluster builder merging items that describe the same story."""

from nerdfeed.linker.builder import ClusterBuilder, build_clusters_pure, query_clustered
from nerdfeed.linker.metrics import LinkerMetrics
from nerdfeed.linker.models import Cluster


__all__ = [
    "Cluster",
    "ClusterBuilder",
    "LinkerMetrics",
    "build_clusters_pure",
    "query_clustered",
]
