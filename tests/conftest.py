"""Shared fixtures for query analysis tests.

Fixtures:
    harrison_documents: Documents returned by the HARRISON stub retriever.
    ankush_documents: Documents returned by the ANKUSH stub retriever.
    harrison_retriever / ankush_retriever: StubRetriever instances that record
        every query they receive.
    registry: RetrieverRegistry over both stub retrievers.
    mock_llm: MagicMock simulating a LangChain chat model.

All collaborators are stubs so tests never call an LLM API or a vector store.
"""

from unittest.mock import MagicMock

import pytest
from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.retrievers import BaseRetriever

from queryanalysis.registry import RetrieverRegistry
from queryanalysis.schemas import AnalyzedQuery


class StubRetriever(BaseRetriever):
    """Retriever returning a fixed document list and recording queries."""

    documents: list[Document] = []
    calls: list[str] = []

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> list[Document]:
        self.calls.append(query)
        return self.documents


class StubAnalyzer:
    """Analyzer returning canned AnalyzedQuery objects.

    Either a single AnalyzedQuery (returned for every query) or a dict mapping
    input text to AnalyzedQuery.
    """

    def __init__(self, result):
        self.result = result
        self.calls = []

    def analyze(self, query: str) -> AnalyzedQuery:
        self.calls.append(query)
        if isinstance(self.result, dict):
            return self.result[query]
        return self.result


@pytest.fixture
def harrison_documents() -> list[Document]:
    """Documents stored in the HARRISON index."""
    return [Document(page_content="Harrison worked at Kensho", metadata={"id": "h1"})]


@pytest.fixture
def ankush_documents() -> list[Document]:
    """Documents stored in the ANKUSH index."""
    return [Document(page_content="Ankush worked at Facebook", metadata={"id": "a1"})]


@pytest.fixture
def harrison_retriever(harrison_documents) -> StubRetriever:
    return StubRetriever(documents=harrison_documents, calls=[])


@pytest.fixture
def ankush_retriever(ankush_documents) -> StubRetriever:
    return StubRetriever(documents=ankush_documents, calls=[])


@pytest.fixture
def registry(harrison_retriever, ankush_retriever) -> RetrieverRegistry:
    """Registry with HARRISON and ANKUSH targets."""
    return RetrieverRegistry(
        {"HARRISON": harrison_retriever, "ANKUSH": ankush_retriever},
        descriptions={
            "HARRISON": "Facts about Harrison",
            "ANKUSH": "Facts about Ankush",
        },
    )


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create mock LLM for testing."""
    return MagicMock()
