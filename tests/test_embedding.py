"""Unit tests for expense embedders and the semantic expense index."""
import datetime as dt
from types import SimpleNamespace

import numpy as np
import pytest

from conftest import KeywordEmbedder
from finadvisor.finance import (
    Expense,
    ExpenseEmbedder,
    ExpenseIndex,
    OpenAIExpenseEmbedder,
    create_expense_embedder,
)
from finadvisor.finance.embedders import unit


def expense(expense_id: str, description: str, user_id: str = "u1") -> Expense:
    return Expense(id=expense_id, user_id=user_id, description=description, amount=1.0, date=dt.date(2025, 1, 1))


class FakeEmbeddingsClient:
    """Stands in for AsyncOpenAI; answers each batch in reverse order."""

    def __init__(self):
        self.batches: list[list[str]] = []
        self.closed = False
        self.embeddings = SimpleNamespace(create=self._create)

    async def _create(self, input, model):
        self.batches.append(list(input))
        data = [
            SimpleNamespace(index=i, embedding=[float(len(text)), 0.0, 0.0])
            for i, text in enumerate(input)
        ]
        return SimpleNamespace(data=list(reversed(data)))

    async def close(self):
        self.closed = True


class TestOpenAIExpenseEmbedder:
    """Tests for OpenAIExpenseEmbedder."""

    def test_embedder_is_abstract(self):
        """Test that ExpenseEmbedder cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ExpenseEmbedder()  # type: ignore

    def test_dimension_property(self):
        """Test that dimension reflects the configured model."""
        assert OpenAIExpenseEmbedder(api_key="fake-key").dimension == 1536
        assert OpenAIExpenseEmbedder(api_key="fake-key", model="text-embedding-3-large").dimension == 3072

    def test_invalid_configuration(self):
        """Test that an unknown model or empty batch raises ValueError."""
        with pytest.raises(ValueError, match="Unknown model"):
            OpenAIExpenseEmbedder(api_key="fake-key", model="unknown-model")
        with pytest.raises(ValueError, match="batch_size"):
            OpenAIExpenseEmbedder(api_key="fake-key", batch_size=0)

    @pytest.mark.asyncio
    async def test_documents_are_batched_and_ordered(self):
        """Test that large inputs are split and vectors follow input order."""
        client = FakeEmbeddingsClient()
        embedder = OpenAIExpenseEmbedder(api_key="fake-key", batch_size=2, client=client)

        vectors = await embedder.embed_documents(["a", "bb", "ccc"])

        assert client.batches == [["a", "bb"], ["ccc"]]
        assert len(vectors) == 3
        for vector in vectors:
            assert vector.dtype == np.float32
            assert np.linalg.norm(vector) == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_query_and_close(self):
        """Test that a query embeds as a single document and close reaches the client."""
        client = FakeEmbeddingsClient()
        embedder = OpenAIExpenseEmbedder(api_key="fake-key", client=client)

        vector = await embedder.embed_query("coffee")
        await embedder.close()

        assert client.batches == [["coffee"]]
        assert vector.shape == (3,)
        assert client.closed

    def test_unit_leaves_zero_vector(self):
        """Test that the zero vector is not divided by its norm."""
        zero = np.zeros(3, dtype=np.float32)
        assert np.array_equal(unit(zero), zero)

    def test_factory(self):
        """Test the factory's provider and configuration checks."""
        assert isinstance(create_expense_embedder("openai", api_key="fake-key"), OpenAIExpenseEmbedder)
        with pytest.raises(TypeError, match="api_key"):
            create_expense_embedder("openai")
        with pytest.raises(ValueError, match="Unsupported embedder"):
            create_expense_embedder("cohere", api_key="x")

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_embed_documents_real_api(self, api_keys):
        """Integration test: Embed expense text with real API."""
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        embedder = OpenAIExpenseEmbedder(api_key=api_keys["openai"])
        try:
            [vector] = await embedder.embed_documents(["Coffee at the airport (Food & Dining)"])
            assert vector.dtype == np.float32
            assert vector.shape[0] == 1536
            assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-4)
        finally:
            await embedder.close()


class TestExpenseIndex:
    """Tests for ExpenseIndex."""

    @pytest.mark.asyncio
    async def test_search_ranks_by_similarity(self):
        """Test that the closest description ranks first."""
        index = ExpenseIndex(KeywordEmbedder())
        await index.add(expense("a", "Rent for March"))
        await index.add(expense("b", "Coffee with Sam"))

        results = await index.search("u1", "coffee", limit=2)

        assert results[0][0] == "b"
        assert results[0][1] == pytest.approx(1.0)
        assert len(index) == 2

    @pytest.mark.asyncio
    async def test_index_is_per_user(self):
        """Test that one user's expenses are not searchable by another."""
        index = ExpenseIndex(KeywordEmbedder())
        await index.add(expense("a", "Coffee", user_id="u1"))
        assert await index.search("u2", "coffee") == []

    @pytest.mark.asyncio
    async def test_remove_and_rebuild(self):
        """Test that removed ids disappear and rebuild replaces the user's vectors."""
        index = ExpenseIndex(KeywordEmbedder())
        await index.add(expense("old", "Rent"))
        await index.rebuild("u1", [expense("a", "Taxi"), expense("b", "Groceries")])
        index.remove("u1", ["a"])

        results = await index.search("u1", "taxi")

        assert [expense_id for expense_id, _ in results] == ["b"]
        assert len(index) == 1
