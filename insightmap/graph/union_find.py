"""
Disjoint-set forest (union-find) over arbitrary hashable keys.

The merge substrate for every clustering pass. Path compression is
iterative so large batches never hit the recursion limit.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)


class DisjointSetForest(Generic[K]):
    """
    Union-find with path compression and union by rank.

    Unseen keys are registered as singleton sets on first use, so every
    key ever passed to find()/union() belongs to exactly one set.

    Usage:
        forest = DisjointSetForest[str]()
        forest.union("a", "b")
        forest.union("b", "c")
        assert forest.find("a") == forest.find("c")
    """

    def __init__(self) -> None:
        self._parent: dict[K, K] = {}
        self._rank: dict[K, int] = {}

    def add(self, key: K) -> None:
        """Register key as a singleton set if it is not known yet."""
        if key not in self._parent:
            self._parent[key] = key
            self._rank[key] = 0

    def find(self, key: K) -> K:
        """
        Return the representative of key's set.

        Args:
            key: Any hashable key; unseen keys become singletons

        Returns:
            Root key of the set containing key
        """
        self.add(key)

        root = key
        while self._parent[root] != root:
            root = self._parent[root]

        # Point every node on the path directly at the root
        while key != root:
            next_key = self._parent[key]
            self._parent[key] = root
            key = next_key

        return root

    def union(self, a: K, b: K) -> bool:
        """
        Merge the sets containing a and b.

        Returns:
            True if two distinct sets were merged, False if already unified
        """
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False

        rank_a = self._rank[root_a]
        rank_b = self._rank[root_b]
        if rank_a < rank_b:
            self._parent[root_a] = root_b
        elif rank_a > rank_b:
            self._parent[root_b] = root_a
        else:
            self._parent[root_b] = root_a
            self._rank[root_a] = rank_a + 1
        return True

    def connected(self, a: K, b: K) -> bool:
        """True if a and b belong to the same set."""
        return self.find(a) == self.find(b)

    def groups(self) -> dict[K, list[K]]:
        """
        Materialize the partition.

        Returns:
            Mapping of root -> members; groups and members follow
            registration order
        """
        groups: dict[K, list[K]] = {}
        for key in list(self._parent):
            groups.setdefault(self.find(key), []).append(key)
        return groups

    def __contains__(self, key: object) -> bool:
        return key in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def __iter__(self) -> Iterator[K]:
        return iter(self._parent)
