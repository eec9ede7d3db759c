"""Semantic index over expense descriptions.

Indexing is an enrichment: a created expense exists whether or not its
vector could be computed, so callers treat failures here as non-fatal.
"""

import logging

import numpy as np

from .embedders import ExpenseEmbedder, Vector
from .models import Expense

logger = logging.getLogger(__name__)


def expense_document(expense: Expense) -> str:
    return f"{expense.description} ({expense.category})"


class ExpenseIndex:
    """Per-user cosine-similarity index of expense embeddings."""

    def __init__(self, embedder: ExpenseEmbedder):
        self._embedder = embedder
        self._vectors: dict[str, dict[str, Vector]] = {}

    def __len__(self) -> int:
        return sum(len(vectors) for vectors in self._vectors.values())

    async def add(self, expense: Expense) -> None:
        [vector] = await self._embedder.embed_documents([expense_document(expense)])
        self._vectors.setdefault(expense.user_id, {})[expense.id] = vector

    async def rebuild(self, user_id: str, expenses: list[Expense]) -> None:
        """Replace the vectors of ``user_id`` with those of ``expenses``.

        Args:
            user_id: Owner of the expenses
            expenses: Every expense of the user currently in the repository
        """
        vectors = await self._embedder.embed_documents([expense_document(e) for e in expenses])
        self._vectors[user_id] = {expense.id: vector for expense, vector in zip(expenses, vectors)}
        logger.debug("Indexed %d expenses for %s", len(expenses), user_id)

    def remove(self, user_id: str, expense_ids: list[str]) -> None:
        vectors = self._vectors.get(user_id, {})
        for expense_id in expense_ids:
            vectors.pop(expense_id, None)

    async def search(self, user_id: str, query: str, limit: int = 10) -> list[tuple[str, float]]:
        """Rank the user's expenses by similarity to ``query``.

        Args:
            user_id: Whose expenses to search
            query: Free-text query
            limit: Maximum number of results

        Returns:
            (expense id, similarity) pairs, most similar first
        """
        vectors = self._vectors.get(user_id)
        if not vectors:
            return []
        query_vector = await self._embedder.embed_query(query)
        ids = list(vectors)
        scores = np.stack([vectors[i] for i in ids]) @ query_vector
        order = np.argsort(-scores)[:limit]
        return [(ids[i], float(scores[i])) for i in order]

    async def close(self) -> None:
        await self._embedder.close()
