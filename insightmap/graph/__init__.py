"""
Graph engine for interview insights.

This module provides entity resolution (lexical and embedding-based
duplicate merging), canonical entity selection, co-occurrence
aggregation, heterogeneous graph assembly with orphan closure, and
optional network analytics.
"""

from insightmap.graph.analytics import (
    GraphAnalyzer,
    NetworkXGraphAnalyzer,
    apply_analytics,
    merge_analytics,
)
from insightmap.graph.assembler import AssembledGraph, GraphAssembler
from insightmap.graph.canonical import CanonicalSelection, select_canonical
from insightmap.graph.cooccurrence import aggregate_cooccurrence
from insightmap.graph.models import (
    ChallengeLink,
    Entity,
    ExtractionLink,
    GraphEdgeRecord,
    GraphStats,
    GraphVisualization,
    NodeAnalytics,
    NodeRecord,
    VisualizationEdge,
    VisualizationNode,
)
from insightmap.graph.normalization import normalize_entity_name
from insightmap.graph.resolution import (
    Cluster,
    EntityResolver,
    ResolutionConfig,
    ResolutionResult,
)
from insightmap.graph.similarity import cosine_similarity
from insightmap.graph.store import GraphStore, InMemoryGraphStore, StoreError
from insightmap.graph.union_find import DisjointSetForest

__all__ = [
    # Models
    "Entity",
    "ExtractionLink",
    "GraphEdgeRecord",
    "NodeRecord",
    "ChallengeLink",
    "VisualizationNode",
    "VisualizationEdge",
    "NodeAnalytics",
    "GraphStats",
    "GraphVisualization",
    # Resolution
    "normalize_entity_name",
    "DisjointSetForest",
    "cosine_similarity",
    "ResolutionConfig",
    "Cluster",
    "ResolutionResult",
    "EntityResolver",
    "CanonicalSelection",
    "select_canonical",
    # Assembly
    "aggregate_cooccurrence",
    "AssembledGraph",
    "GraphAssembler",
    # Analytics
    "GraphAnalyzer",
    "NetworkXGraphAnalyzer",
    "merge_analytics",
    "apply_analytics",
    # Store
    "GraphStore",
    "InMemoryGraphStore",
    "StoreError",
]
