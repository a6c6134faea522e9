"""Embedding utilities for query analysis retrievers.

Retrievers embed the rewritten query produced by the analyzer and compare it
against documents already stored in the vector database. Both sides must use the
same model, so the embedder is built once from the shared ``embeddings`` section
and handed to every retriever in the registry.

Configuration:

    .. code-block:: yaml

        embeddings:
          model: sentence-transformers/all-MiniLM-L6-v2
          device: cpu  # or cuda
          batch_size: 32
"""

from typing import Any

from langchain_huggingface import HuggingFaceEmbeddings


class EmbedderHelper:
    """Helper class for HuggingFace embedding model operations."""

    DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

    @classmethod
    def create_embedder(cls, config: dict[str, Any]) -> HuggingFaceEmbeddings:
        """Create HuggingFaceEmbeddings from config.

        Args:
            config: Configuration dictionary with embeddings section.

        Returns:
            HuggingFaceEmbeddings instance.
        """
        embeddings_config = config.get("embeddings", {}) or {}
        model = embeddings_config.get("model", cls.DEFAULT_MODEL)
        device = embeddings_config.get("device", "cpu")
        batch_size = embeddings_config.get("batch_size", 32)

        return HuggingFaceEmbeddings(
            model_name=model,
            model_kwargs={"device": device},
            encode_kwargs={"batch_size": batch_size},
        )

    @classmethod
    def embed_texts(
        cls, embedder: HuggingFaceEmbeddings, texts: list[str]
    ) -> list[list[float]]:
        """Embed a batch of texts for indexing."""
        if not texts:
            return []
        return embedder.embed_documents(texts)

    @classmethod
    def embed_query(cls, embedder: HuggingFaceEmbeddings, query: str) -> list[float]:
        """Embed a single query.

        Args:
            embedder: HuggingFaceEmbeddings instance.
            query: Query text.

        Returns:
            Query embedding.
        """
        return embedder.embed_query(query)
