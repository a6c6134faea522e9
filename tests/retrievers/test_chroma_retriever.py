"""Tests for ChromaRetriever.

Most tests mock the Chroma collection and embedder to check query embedding,
result conversion, indexing, filters and construction from config. The last
group runs against an in-memory Chroma client with a deterministic fake
embedder.
"""

import uuid
from datetime import date
from unittest.mock import MagicMock, patch

import chromadb
import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings

from queryanalysis.retrievers.chroma import ChromaRetriever, create_client
from queryanalysis.schemas import StructuredSearchQuery


@pytest.fixture
def embedder() -> MagicMock:
    embedder = MagicMock(spec=Embeddings)
    embedder.embed_query.return_value = [0.1, 0.2, 0.3]
    embedder.embed_documents.side_effect = lambda texts: [[0.5] * 3 for _ in texts]
    return embedder


@pytest.fixture
def collection() -> MagicMock:
    collection = MagicMock()
    collection.name = "harrison"
    collection.query.return_value = {
        "ids": [["h1", "h2"]],
        "documents": [["Harrison worked at Kensho", "Harrison likes tea"]],
        "metadatas": [[{"target": "HARRISON"}, None]],
        "distances": [[0.12, 0.48]],
    }
    return collection


class TestChromaRetrieverSearch:
    def test_invoke_embeds_and_queries(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder, top_k=2)

        documents = retriever.invoke("workplace of Harrison")

        embedder.embed_query.assert_called_once_with("workplace of Harrison")
        collection.query.assert_called_once_with(
            query_embeddings=[[0.1, 0.2, 0.3]], n_results=2, where=None
        )
        assert [d.page_content for d in documents] == [
            "Harrison worked at Kensho",
            "Harrison likes tea",
        ]

    def test_metadata_carries_id_and_score(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        documents = retriever.invoke("q")

        assert documents[0].metadata == {"target": "HARRISON", "id": "h1", "score": 0.12}
        assert documents[1].metadata == {"id": "h2", "score": 0.48}

    def test_where_filter_forwarded(self, collection, embedder):
        retriever = ChromaRetriever(
            collection=collection, embedder=embedder, where={"source": "docs"}
        )

        retriever.invoke("q")

        assert collection.query.call_args.kwargs["where"] == {"source": "docs"}

    def test_empty_results(self, collection, embedder):
        collection.query.return_value = {
            "ids": [[]],
            "documents": [[]],
            "metadatas": [[]],
            "distances": [[]],
        }
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        assert retriever.invoke("q") == []

    def test_missing_optional_fields(self, collection, embedder):
        collection.query.return_value = {
            "ids": [["h1"]],
            "documents": [["Harrison worked at Kensho"]],
            "metadatas": None,
            "distances": None,
        }
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        documents = retriever.invoke("q")

        assert documents[0].metadata == {"id": "h1"}


class TestChromaRetrieverIndexing:
    def test_index_texts_upserts(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        count = retriever.index_texts(
            ["Harrison worked at Kensho", "  "], metadata={"target": "HARRISON"}
        )

        assert count == 1
        kwargs = collection.upsert.call_args.kwargs
        assert kwargs["documents"] == ["Harrison worked at Kensho"]
        assert kwargs["embeddings"] == [[0.5, 0.5, 0.5]]
        assert kwargs["metadatas"] == [{"target": "HARRISON"}]
        assert len(kwargs["ids"][0]) == 64

    def test_ids_are_stable(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        retriever.index_texts(["same text"])
        retriever.index_texts(["same text"])

        first, second = collection.upsert.call_args_list
        assert first.kwargs["ids"] == second.kwargs["ids"]
        assert "metadatas" not in first.kwargs

    def test_duplicate_texts_indexed_once(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        count = retriever.index_texts(
            ["Harrison worked at Kensho", "Harrison worked at Kensho", "Other"],
            metadata={"target": "HARRISON"},
        )

        assert count == 2
        kwargs = collection.upsert.call_args.kwargs
        assert kwargs["documents"] == ["Harrison worked at Kensho", "Other"]
        assert len(set(kwargs["ids"])) == 2
        assert len(kwargs["embeddings"]) == 2
        assert len(kwargs["metadatas"]) == 2

    def test_per_text_metadata_layers_over_shared(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        retriever.index_texts(
            [
                {
                    "text": "Harrison joined LangChain",
                    "metadata": {"source": "blog", "date": date(2023, 1, 10)},
                },
                "Harrison worked at Kensho",
            ],
            metadata={"target": "HARRISON"},
        )

        assert collection.upsert.call_args.kwargs["metadatas"] == [
            {"target": "HARRISON", "source": "blog", "date": 20230110},
            {"target": "HARRISON"},
        ]

    def test_first_duplicate_entry_keeps_its_metadata(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        retriever.index_texts(
            [
                {"text": "same", "metadata": {"source": "first"}},
                {"text": "same", "metadata": {"source": "second"}},
            ]
        )

        assert collection.upsert.call_args.kwargs["metadatas"] == [
            {"source": "first"}
        ]

    def test_texts_without_metadata_sent_as_none(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        retriever.index_texts([{"text": "tagged", "metadata": {"source": "a"}}, "plain"])

        assert collection.upsert.call_args.kwargs["metadatas"] == [
            {"source": "a"},
            None,
        ]

    def test_index_nothing(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        assert retriever.index_texts([]) == 0
        collection.upsert.assert_not_called()


class TestChromaRetrieverFilters:
    def test_with_filters_reaches_query(self, collection, embedder):
        retriever = ChromaRetriever(collection=collection, embedder=embedder)

        retriever.with_filters({"source": {"$in": ["blog"]}}).invoke("q")

        assert collection.query.call_args.kwargs["where"] == {
            "source": {"$in": ["blog"]}
        }

    def test_with_filters_combines_configured_where(self, collection, embedder):
        retriever = ChromaRetriever(
            collection=collection, embedder=embedder, where={"target": "HARRISON"}
        )

        filtered = retriever.with_filters({"date": {"$gte": 20230101}})

        assert filtered.where == {
            "$and": [{"target": "HARRISON"}, {"date": {"$gte": 20230101}}]
        }
        assert retriever.where == {"target": "HARRISON"}

    def test_with_no_filters_keeps_where(self, collection, embedder):
        retriever = ChromaRetriever(
            collection=collection, embedder=embedder, where={"target": "HARRISON"}
        )

        filtered = retriever.with_filters(None)

        assert filtered is not retriever
        assert filtered.where == {"target": "HARRISON"}
        assert filtered.collection is collection

class TestChromaRetrieverFromConfig:
    @pytest.fixture
    def config(self) -> dict:
        return {
            "search": {"top_k": 3},
            "retrievers": {
                "HARRISON": {
                    "collection_name": "harrison",
                    "texts": ["Harrison worked at Kensho"],
                },
                "ANKUSH": {"collection_name": "ankush", "top_k": 1},
                "BROKEN": {"description": "no collection"},
            },
        }

    def test_builds_and_indexes(self, config, embedder, collection):
        client = MagicMock()
        client.get_or_create_collection.return_value = collection

        retriever = ChromaRetriever.from_config(config, "HARRISON", embedder, client)

        client.get_or_create_collection.assert_called_once_with(
            name="harrison", metadata={"hnsw:space": "cosine"}
        )
        assert retriever.top_k == 3
        assert collection.upsert.call_args.kwargs["metadatas"] == [
            {"target": "HARRISON"}
        ]

    def test_target_top_k_overrides(self, config, embedder):
        client = MagicMock()

        retriever = ChromaRetriever.from_config(config, "ANKUSH", embedder, client)

        assert retriever.top_k == 1
        client.get_or_create_collection.return_value.upsert.assert_not_called()

    def test_unknown_target(self, config, embedder):
        with pytest.raises(ValueError, match="No retriever configured"):
            ChromaRetriever.from_config(config, "BOB", embedder, MagicMock())

    def test_missing_collection_name(self, config, embedder):
        with pytest.raises(ValueError, match="collection_name"):
            ChromaRetriever.from_config(config, "BROKEN", embedder, MagicMock())


class TestCreateClient:
    def test_persistent_when_path_given(self):
        with patch("queryanalysis.retrievers.chroma.chromadb") as chromadb_mock:
            client = create_client({"chroma": {"path": "./chroma_data"}})

        chromadb_mock.PersistentClient.assert_called_once_with(path="./chroma_data")
        assert client is chromadb_mock.PersistentClient.return_value

    def test_ephemeral_by_default(self):
        with patch("queryanalysis.retrievers.chroma.chromadb") as chromadb_mock:
            client = create_client({})

        chromadb_mock.EphemeralClient.assert_called_once_with()
        assert client is chromadb_mock.EphemeralClient.return_value


class TestChromaRetrieverWithEphemeralClient:
    """Indexing and filtering against a real in-memory Chroma collection."""

    @pytest.fixture
    def client(self):
        return chromadb.EphemeralClient()

    @pytest.fixture
    def collection_name(self) -> str:
        # The in-memory client is shared within a process
        return f"harrison-{uuid.uuid4().hex[:8]}"

    def test_duplicate_config_texts_build(self, client, collection_name):
        config = {
            "retrievers": {
                "H": {
                    "collection_name": collection_name,
                    "top_k": 1,
                    "texts": ["Harrison worked at Kensho"] * 2,
                }
            }
        }

        retriever = ChromaRetriever.from_config(
            config, "H", DeterministicFakeEmbedding(size=8), client=client
        )

        assert retriever.collection.count() == 1
        documents = retriever.invoke("Harrison worked at Kensho")
        assert [d.page_content for d in documents] == ["Harrison worked at Kensho"]
        assert documents[0].metadata["target"] == "H"

    def test_structured_filters_match_indexed_metadata(self, client, collection_name):
        config = {
            "retrievers": {
                "H": {
                    "collection_name": collection_name,
                    "top_k": 2,
                    "texts": [
                        {
                            "text": "Harrison worked at Kensho",
                            "metadata": {"source": "resume", "date": date(2019, 5, 1)},
                        },
                        {
                            "text": "Harrison joined LangChain",
                            "metadata": {"source": "blog", "date": date(2023, 1, 10)},
                        },
                    ],
                }
            }
        }
        retriever = ChromaRetriever.from_config(
            config, "H", DeterministicFakeEmbedding(size=8), client=client
        )
        where = StructuredSearchQuery(
            content_search="Harrison", min_date=date(2022, 1, 1)
        ).to_filters()

        documents = retriever.with_filters(where).invoke("Harrison")

        assert [d.page_content for d in documents] == ["Harrison joined LangChain"]
        assert documents[0].metadata["date"] == 20230110
