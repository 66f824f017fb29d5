"""Tests for cosine similarity."""

from __future__ import annotations

import pytest

from insightmap.graph.similarity import cosine_similarity


class TestCosineSimilarity:
    """Test cosine similarity edge cases."""

    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_exact_value(self) -> None:
        assert cosine_similarity([1.0, 0.0], [4.0, 3.0]) == 0.8

    def test_symmetric(self) -> None:
        a, b = [0.3, -0.2, 0.9], [0.1, 0.4, 0.5]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_length_mismatch(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_empty_vectors(self) -> None:
        assert cosine_similarity([], []) == 0.0

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
