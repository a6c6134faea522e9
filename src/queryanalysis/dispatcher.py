"""Query-to-retriever dispatch.

The dispatcher connects the analyzer and the retriever registry:

    question --analyze--> AnalyzedQuery(query, target)
             --registry[target]--> retriever
             --invoke(query)--> documents

The two external calls are strictly sequential because retrieval depends on the
analyzer's output. No retry or fallback happens here. An unknown target fails
closed with ``UnrecognizedTargetKeyError`` before any retriever runs.
Collaborator errors propagate unchanged.
"""

import logging
from collections.abc import Sized
from typing import Protocol

from langchain_core.documents import Document
from langchain_core.runnables import Runnable

from queryanalysis.exceptions import UnrecognizedTargetKeyError
from queryanalysis.registry import RetrieverRegistry
from queryanalysis.schemas import AnalyzedQuery


logger = logging.getLogger(__name__)


class Analyzer(Protocol):
    """Anything that can turn a question into an AnalyzedQuery."""

    def analyze(self, query: str) -> AnalyzedQuery: ...


class QueryDispatcher:
    """Route a question to a single retriever chosen by the analyzer.

    Attributes:
        analyzer: Collaborator producing AnalyzedQuery objects.
        registry: Read-only mapping from target key to retriever.
    """

    def __init__(self, analyzer: Analyzer, registry: RetrieverRegistry) -> None:
        self.analyzer = analyzer
        self.registry = registry

    def route(self, query: str) -> tuple[AnalyzedQuery, Runnable]:
        """Analyze ``query`` and look up the retriever for its target.

        Returns:
            The AnalyzedQuery and the registered retriever for its target.

        Raises:
            UnrecognizedTargetKeyError: If the analyzer picks a target that is
                not registered.
        """
        analyzed = self.analyzer.analyze(query)

        try:
            retriever = self.registry[analyzed.target]
        except UnrecognizedTargetKeyError:
            logger.error(
                "Analyzer selected unknown target %r (known: %s)",
                analyzed.target,
                list(self.registry),
            )
            raise
        return analyzed, retriever

    def dispatch(self, query: str) -> list[Document]:
        """Analyze ``query`` and return the documents of the selected retriever.

        Args:
            query: Free-text user question.

        Returns:
            The retriever's result, returned as-is.

        Raises:
            UnrecognizedTargetKeyError: If the analyzer picks a target that is
                not registered. No retriever is invoked in that case.
        """
        analyzed, retriever = self.route(query)

        logger.info("Dispatching %r to %s", analyzed.query, analyzed.target)
        documents = retriever.invoke(analyzed.query)
        if isinstance(documents, Sized):
            logger.info(
                "Retrieved %d documents from %s", len(documents), analyzed.target
            )
        else:
            logger.info("Retrieved results from %s", analyzed.target)
        return documents
