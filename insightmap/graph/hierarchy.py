"""Challenge hierarchy expansion."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from insightmap.graph.models import ChallengeLink


def build_children_index(links: Iterable[ChallengeLink]) -> dict[str, list[str]]:
    """Build a parent ID -> child IDs index from hierarchy rows."""
    children: dict[str, list[str]] = {}
    for link in links:
        if link.parent_id:
            children.setdefault(link.parent_id, []).append(link.id)
    return children


def collect_challenge_subtree(links: Iterable[ChallengeLink], root_id: str) -> list[str]:
    """
    Return a challenge and all of its descendants.

    Breadth-first over the parent -> children index; cycles in the
    stored hierarchy are ignored.

    Args:
        links: All (id, parent_id) rows of the hierarchy
        root_id: Challenge to expand

    Returns:
        root_id followed by its descendants in discovery order
    """
    children = build_children_index(links)

    collected = [root_id]
    seen = {root_id}
    queue = deque([root_id])
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child not in seen:
                seen.add(child)
                collected.append(child)
                queue.append(child)
    return collected
