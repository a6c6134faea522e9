"""Chroma-backed retriever for multi-retriever dispatch.

Each routing target owns one Chroma collection. ``ChromaRetriever`` wraps that
collection as a LangChain ``BaseRetriever`` so the dispatcher can treat every
target the same way: ``retriever.invoke(query) -> list[Document]``.

Configuration:
    Retrievers are declared under the ``retrievers`` section, keyed by target:

    .. code-block:: yaml

        chroma:
          path: ./chroma_data   # omit for an in-memory client
        search:
          top_k: 5
        retrievers:
          HARRISON:
            collection_name: harrison
            description: Facts about Harrison
            texts:
              - Harrison worked at Kensho
              - text: Harrison joined LangChain
                metadata: {source: blog, date: 2023-01-10}

    When ``texts`` is present the texts are embedded and upserted into the
    collection before the retriever is returned. Per-query metadata filters
    are applied with ``with_filters``. Documents are keyed by the
    SHA-256 of their content, so building the same config twice does not
    duplicate them.

Usage:
    >>> retriever = ChromaRetriever.from_config(config, "HARRISON", embedder)
    >>> retriever.invoke("workplace of Harrison")
    [Document(page_content='Harrison worked at Kensho', metadata={...})]
"""

import hashlib
import logging
from datetime import date
from typing import Any

import chromadb
from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.retrievers import BaseRetriever

from queryanalysis.schemas import date_to_int
from queryanalysis.utils.embeddings import EmbedderHelper


logger = logging.getLogger(__name__)


def create_client(config: dict[str, Any]) -> Any:
    """Create a Chroma client from the ``chroma`` config section."""
    chroma_config = config.get("chroma", {}) or {}
    path = chroma_config.get("path")
    if path:
        logger.info("Using persistent Chroma client at %s", path)
        return chromadb.PersistentClient(path=path)
    logger.info("Using in-memory Chroma client")
    return chromadb.EphemeralClient()


class ChromaRetriever(BaseRetriever):
    """Similarity search over a single Chroma collection.

    Attributes:
        collection: Chroma collection to query.
        embedder: Embedding model used for queries and indexed texts.
        top_k: Number of results per query.
        where: Optional Chroma metadata filter applied to every query.
    """

    collection: Any
    embedder: Embeddings
    top_k: int = 4
    where: dict[str, Any] | None = None

    def index_texts(
        self,
        texts: list[str | dict[str, Any]],
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Embed and upsert texts into the collection.

        Each entry is either a plain string or a mapping with ``text`` and an
        optional per-text ``metadata`` mapping, which is layered over the
        shared ``metadata``. ``date`` values are stored as YYYYMMDD ints so
        the range filters built by ``StructuredSearchQuery.to_filters`` can
        match them. Repeated texts are indexed once, keeping the first entry.

        Args:
            texts: Raw texts or text/metadata mappings to index.
            metadata: Metadata attached to every text.

        Returns:
            Number of texts written.
        """
        entries: dict[str, dict[str, Any]] = {}
        for entry in texts:
            if isinstance(entry, dict):
                text = entry.get("text") or ""
                entry_metadata = entry.get("metadata") or {}
            else:
                text, entry_metadata = entry, {}
            if not text.strip() or text in entries:
                continue
            entries[text] = self._normalize_metadata(
                {**(metadata or {}), **entry_metadata}
            )
        if not entries:
            return 0

        documents = list(entries)
        ids = [hashlib.sha256(text.encode("utf-8")).hexdigest() for text in documents]
        embeddings = EmbedderHelper.embed_texts(self.embedder, documents)
        kwargs: dict[str, Any] = {}
        if any(entries.values()):
            # Chroma rejects empty metadata mappings
            kwargs["metadatas"] = [entries[text] or None for text in documents]

        self.collection.upsert(
            ids=ids, documents=documents, embeddings=embeddings, **kwargs
        )
        logger.info("Indexed %d texts into %s", len(documents), self.collection.name)
        return len(documents)

    @staticmethod
    def _normalize_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
        normalized = dict(metadata)
        if isinstance(normalized.get("date"), date):
            normalized["date"] = date_to_int(normalized["date"])
        return normalized

    def with_filters(self, where: dict[str, Any] | None) -> "ChromaRetriever":
        """Return a copy of this retriever that also applies ``where``.

        A configured ``where`` is kept and combined with the new clause under
        ``$and``. ``None`` returns an unchanged copy.
        """
        if not where:
            return self.model_copy()
        if self.where:
            where = {"$and": [self.where, where]}
        return self.model_copy(update={"where": where})

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> list[Document]:
        query_embedding = EmbedderHelper.embed_query(self.embedder, query)
        logger.debug("Querying %s with where=%s", self.collection.name, self.where)
        results = self.collection.query(
            query_embeddings=[query_embedding],
            n_results=self.top_k,
            where=self.where,
        )
        return self._to_documents(results)

    @staticmethod
    def _to_documents(results: dict[str, Any]) -> list[Document]:
        # Chroma returns one inner list per query embedding; only one is sent
        ids = (results.get("ids") or [[]])[0]
        contents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[None] * len(ids)])[0]
        distances = (results.get("distances") or [[None] * len(ids)])[0]

        documents = []
        for doc_id, content, metadata, distance in zip(
            ids, contents, metadatas, distances
        ):
            meta = dict(metadata or {})
            meta["id"] = doc_id
            if distance is not None:
                meta["score"] = distance
            documents.append(Document(page_content=content or "", metadata=meta))
        return documents

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        name: str,
        embedder: Embeddings,
        client: Any | None = None,
    ) -> "ChromaRetriever":
        """Build the retriever for target ``name`` from a pipeline config.

        Args:
            config: Full pipeline configuration.
            name: Target key under the ``retrievers`` section.
            embedder: Shared embedding model.
            client: Existing Chroma client. Created from config when omitted.

        Returns:
            ChromaRetriever bound to the target's collection.

        Raises:
            ValueError: If the target or its collection_name is missing.
        """
        retrievers_config = config.get("retrievers", {}) or {}
        if name not in retrievers_config:
            msg = f"No retriever configured for target {name!r}"
            raise ValueError(msg)

        target_config = retrievers_config[name] or {}
        collection_name = target_config.get("collection_name")
        if not collection_name:
            msg = f"Retriever {name!r} is missing 'collection_name'"
            raise ValueError(msg)

        if client is None:
            client = create_client(config)
        collection = client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": target_config.get("metric", "cosine")},
        )

        default_top_k = (config.get("search", {}) or {}).get("top_k", 4)
        retriever = cls(
            collection=collection,
            embedder=embedder,
            top_k=target_config.get("top_k", default_top_k),
            where=target_config.get("where"),
        )

        texts = target_config.get("texts") or []
        if texts:
            retriever.index_texts(texts, metadata={"target": name})
        return retriever
