"""Multi-retriever query analysis pipeline.

The pipeline wires every piece of the package together from one
configuration:

    1. LLM: ChatGroq built from the ``llm`` section
    2. Retrievers: one ChromaRetriever per entry under ``retrievers``
    3. Registry: read-only RetrieverRegistry over those retrievers
    4. Analyzer: QueryAnalyzer told about each target's description
    5. Dispatcher: QueryDispatcher(analyzer, registry)
    6. Structurer: QueryStructurer for metadata-filtered search

Search Modes:
    Without a mode, ``search`` is a single dispatch. With a mode
    ('multi_query', 'decomposition', 'step_back', 'hyde') the question is
    first expanded by QueryEnhancer. Each variant is dispatched separately
    (so sub-questions about different people can land on different
    retrievers), and the result lists are merged with Reciprocal Rank Fusion.

Example:
    >>> pipeline = MultiRetrieverPipeline("config.yaml")
    >>> pipeline.search("where did Harrison work")
    {'query': 'where did Harrison work', 'documents': [...]}
    >>> pipeline.search("where did Harrison and Ankush work", mode="decomposition")
"""

import logging
from pathlib import Path
from typing import Any

from queryanalysis.components import QueryAnalyzer, QueryEnhancer, QueryStructurer
from queryanalysis.dispatcher import Analyzer, QueryDispatcher
from queryanalysis.registry import RetrieverRegistry
from queryanalysis.retrievers import ChromaRetriever, create_client
from queryanalysis.utils import (
    ConfigLoader,
    EmbedderHelper,
    LLMHelper,
    ResultMerger,
    setup_logger,
)


logger = logging.getLogger(__name__)


class MultiRetrieverPipeline:
    """Analyze, route and retrieve with optional query enhancement.

    Attributes:
        config: Loaded configuration dictionary (empty when built from
            components).
        registry: RetrieverRegistry shared by every dispatch.
        dispatcher: QueryDispatcher used for each query variant.
        enhancer: Optional QueryEnhancer for enhanced search modes.
        structurer: Optional QueryStructurer for ``structured_search``.
        top_k: Default number of documents returned after fusion.
        rrf_k: Reciprocal Rank Fusion constant.
    """

    def __init__(self, config_or_path: dict[str, Any] | str | Path) -> None:
        """Initialize the pipeline from configuration.

        Args:
            config_or_path: Configuration dictionary or path to YAML file.
                Must contain ``llm`` and ``retrievers`` sections.

        Raises:
            ValueError: If required configuration is missing.
        """
        self.config = ConfigLoader.load(config_or_path)
        ConfigLoader.validate(self.config)
        self.logger = setup_logger(self.config)

        llm = LLMHelper.create_llm(self.config)
        embedder = EmbedderHelper.create_embedder(self.config)
        client = create_client(self.config)

        retrievers = {}
        descriptions = {}
        for name, target_config in self.config["retrievers"].items():
            retrievers[name] = ChromaRetriever.from_config(
                self.config, name, embedder, client=client
            )
            descriptions[name] = (target_config or {}).get("description", name)

        self.registry = RetrieverRegistry(retrievers, descriptions)
        analyzer = QueryAnalyzer(llm, targets=self.registry.descriptions)
        self.dispatcher = QueryDispatcher(analyzer, self.registry)
        self.enhancer = QueryEnhancer(llm)
        self.structurer = QueryStructurer(llm)

        search_config = self.config.get("search", {}) or {}
        self.top_k = search_config.get("top_k", 5)
        self.rrf_k = search_config.get("rrf_k", 60)

        self.logger.info(
            "Initialized multi-retriever pipeline with targets %s", list(self.registry)
        )

    @classmethod
    def from_components(
        cls,
        analyzer: Analyzer,
        registry: RetrieverRegistry,
        enhancer: QueryEnhancer | None = None,
        top_k: int = 5,
        structurer: QueryStructurer | None = None,
        rrf_k: int = 60,
    ) -> "MultiRetrieverPipeline":
        """Build a pipeline around existing collaborators, skipping config."""
        pipeline = cls.__new__(cls)
        pipeline.config = {}
        pipeline.logger = logger
        pipeline.registry = registry
        pipeline.dispatcher = QueryDispatcher(analyzer, registry)
        pipeline.enhancer = enhancer
        pipeline.structurer = structurer
        pipeline.top_k = top_k
        pipeline.rrf_k = rrf_k
        return pipeline

    def search(
        self,
        query: str,
        mode: str | None = None,
        top_k: int | None = None,
    ) -> dict[str, Any]:
        """Retrieve documents for ``query``.

        Args:
            query: User question.
            mode: Optional enhancement mode. None performs a single dispatch.
            top_k: Maximum documents returned for enhanced searches. Defaults
                to the configured ``search.top_k``.

        Returns:
            Dictionary containing:
                - query: Original question
                - documents: Retrieved documents
                - enhanced_queries: Query variants (enhanced modes only)

        Raises:
            ValueError: If a mode is requested but no enhancer is configured.
            UnrecognizedTargetKeyError: If any variant routes to an unknown
                target.
        """
        if mode is None:
            return {"query": query, "documents": self.dispatcher.dispatch(query)}

        if self.enhancer is None:
            msg = f"Search mode {mode!r} requires a QueryEnhancer"
            raise ValueError(msg)

        top_k = self.top_k if top_k is None else top_k
        enhanced_queries = self.enhancer.generate_queries(query, mode=mode)

        results_list = [self.dispatcher.dispatch(q) for q in enhanced_queries]
        fused = ResultMerger.reciprocal_rank_fusion(
            results_list, k=self.rrf_k, dedup_key="id"
        )

        self.logger.info(
            "Fused %d result sets into %d documents (mode=%s)",
            len(results_list),
            len(fused),
            mode,
        )
        return {
            "query": query,
            "enhanced_queries": enhanced_queries,
            "documents": fused[:top_k],
        }

    def structured_search(self, query: str) -> dict[str, Any]:
        """Route ``query`` and search its retriever with metadata filters.

        The analyzer picks the target and rewrites the question. The
        structurer then splits the rewrite into search text and filters, and
        the target's retriever is queried with both.

        Returns:
            Dictionary containing:
                - query: Original question
                - target: Selected retriever key
                - structured_query: The StructuredSearchQuery used
                - documents: Retrieved documents

        Raises:
            ValueError: If no structurer is configured or the target's
                retriever cannot apply metadata filters.
            UnrecognizedTargetKeyError: If the analyzer picks an unknown
                target.
        """
        if self.structurer is None:
            msg = "Structured search requires a QueryStructurer"
            raise ValueError(msg)

        analyzed, retriever = self.dispatcher.route(query)
        if not hasattr(retriever, "with_filters"):
            msg = (
                f"Retriever for {analyzed.target!r} does not support metadata filters"
            )
            raise ValueError(msg)

        structured = self.structurer.structure(analyzed.query)
        where = structured.to_filters()
        search_text = structured.content_search.strip() or analyzed.query
        documents = retriever.with_filters(where).invoke(search_text)

        self.logger.info(
            "Structured search on %s returned %d documents (where=%s)",
            analyzed.target,
            len(documents),
            where,
        )
        return {
            "query": query,
            "target": analyzed.target,
            "structured_query": structured,
            "documents": documents,
        }
