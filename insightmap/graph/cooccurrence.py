"""
Co-occurrence edges between canonical entities.

Two canonical entities are related when they are extracted from the same
insight. The edge weight is the number of insights they share.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from itertools import combinations

from insightmap.graph.models import ExtractionLink, VisualizationEdge

logger = logging.getLogger(__name__)

CO_OCCURS = "CO_OCCURS"


def cooccurrence_label(count: int) -> str:
    """Human label for an edge shared by ``count`` insights."""
    return f"{count} insight{'s' if count > 1 else ''}"


def group_by_record(
    links: Iterable[ExtractionLink],
    mapping: Mapping[str, str],
) -> dict[str, list[str]]:
    """
    Collect the distinct canonical entity IDs referenced by each record.

    Links to entities missing from the mapping (never loaded) are dropped
    so that no edge can point at an entity without a node.

    Returns:
        record ID -> canonical entity IDs, in first-seen order
    """
    records: dict[str, list[str]] = {}
    dropped = 0
    for link in links:
        canonical_id = mapping.get(link.entity_id)
        if canonical_id is None:
            dropped += 1
            continue
        entity_ids = records.setdefault(link.source_record_id, [])
        if canonical_id not in entity_ids:
            entity_ids.append(canonical_id)

    if dropped:
        logger.debug(f"Dropped {dropped} extraction links to unresolved entities")
    return records


def count_cooccurrences(records: Mapping[str, list[str]]) -> Counter[tuple[str, str]]:
    """
    Count unordered entity pairs sharing a record.

    Pairs are keyed in lexicographic order, so (A, B) and (B, A) coincide.
    """
    counts: Counter[tuple[str, str]] = Counter()
    for entity_ids in records.values():
        for a, b in combinations(entity_ids, 2):
            counts[(a, b) if a <= b else (b, a)] += 1
    return counts


def aggregate_cooccurrence(
    links: Iterable[ExtractionLink],
    mapping: Mapping[str, str],
) -> list[VisualizationEdge]:
    """
    Derive weighted CO_OCCURS edges from extraction links.

    Args:
        links: Extraction links for the insights in scope
        mapping: Canonical mapping (entity ID -> canonical entity ID)

    Returns:
        One edge per co-occurring canonical pair, weight = shared insights
    """
    counts = count_cooccurrences(group_by_record(links, mapping))

    return [
        VisualizationEdge(
            id=f"cooccur-{index}",
            source=source,
            target=target,
            relationship_type=CO_OCCURS,
            label=cooccurrence_label(count),
            weight=count,
            confidence=None,
        )
        for index, ((source, target), count) in enumerate(counts.items())
    ]
