"""Community detection, TF-IDF labelling and hierarchical clustering of signals."""

from .community import ClusterResult, GraphLink, GraphNode, detect_communities
from .hierarchical import ClusteringStats, HierarchicalClusterer, HierarchicalClusters
from .tfidf import TFIDFLabeler

__all__ = [
    "ClusterResult",
    "ClusteringStats",
    "GraphLink",
    "GraphNode",
    "HierarchicalClusterer",
    "HierarchicalClusters",
    "TFIDFLabeler",
    "detect_communities",
]
