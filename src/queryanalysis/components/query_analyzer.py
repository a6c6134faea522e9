"""Structured query analyzer for routing and query rewriting.

The analyzer is the first hop of multi-retriever dispatch. A single structured
LLM call turns a free-text question into an ``AnalyzedQuery``, which holds a
search-friendly rewrite of the question and the key of the retriever that
should answer it.

Routing Pattern:
    Routing and rewriting happen in the same call. The model sees every
    available target with its description and must pick exactly one. Because
    the response is bound to the ``AnalyzedQuery`` schema through
    ``with_structured_output``, the caller receives a validated pydantic object
    rather than free text that still needs parsing.

    The analyzer does not check that the chosen target exists. The dispatcher
    owns that decision and fails closed on unknown keys, which keeps a single
    place responsible for the routing policy.

Target Normalization:
    Models are inconsistent about case and whitespace ("harrison ",
    "Harrison"). Targets are stripped and uppercased when
    ``normalize_targets`` is enabled (the default), so registry keys should be
    declared in upper case.

Usage:
    >>> from langchain_groq import ChatGroq
    >>> from queryanalysis.components import QueryAnalyzer
    >>> llm = ChatGroq(model="llama-3.3-70b-versatile", temperature=0)
    >>> analyzer = QueryAnalyzer(
    ...     llm,
    ...     targets={
    ...         "HARRISON": "Facts about Harrison",
    ...         "ANKUSH": "Facts about Ankush",
    ...     },
    ... )
    >>> analyzer.analyze("where did Harrison work")
    AnalyzedQuery(query='workplace of Harrison', target='HARRISON')
"""

import logging
from collections.abc import Mapping

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate

from queryanalysis.exceptions import QueryAnalysisError
from queryanalysis.schemas import AnalyzedQuery


logger = logging.getLogger(__name__)


class QueryAnalyzer:
    """Classify a question to a retrieval target and rewrite it for search.

    Attributes:
        SYSTEM_TEMPLATE: System prompt listing the available targets.
        llm: Chat model used for analysis.
        targets: Mapping from target key to description.
        normalize_targets: Whether returned targets are stripped and uppercased.
    """

    SYSTEM_TEMPLATE = """You are an expert at routing a user question to the right data source and converting it into a search query.

You have access to the following data sources:
{targets}

Choose the single data source most relevant to the question and return its key exactly as written above. Then rewrite the question as a concise search query for that data source. Do not add facts that are not in the question."""

    HUMAN_TEMPLATE = "{question}"

    def __init__(
        self,
        llm: BaseChatModel,
        targets: Mapping[str, str],
        normalize_targets: bool = True,
    ) -> None:
        """Bind the structured-output schema and build the prompt.

        Args:
            llm: LangChain chat model supporting ``with_structured_output``.
            targets: Mapping from target key to a description the model can use
                to choose between sources.
            normalize_targets: Strip and uppercase returned target keys.

        Raises:
            ValueError: If no targets are given.
        """
        if not targets:
            msg = "QueryAnalyzer requires at least one target"
            raise ValueError(msg)

        self.llm = llm
        self.targets = dict(targets)
        self.normalize_targets = normalize_targets
        self.prompt = ChatPromptTemplate.from_messages(
            [("system", self.SYSTEM_TEMPLATE), ("human", self.HUMAN_TEMPLATE)]
        )
        self.structured_llm = llm.with_structured_output(AnalyzedQuery)

    def _format_targets(self) -> str:
        return "\n".join(
            f"- {key}: {description}" for key, description in self.targets.items()
        )

    def analyze(self, query: str) -> AnalyzedQuery:
        """Analyze a question into a rewritten query and a target key.

        Args:
            query: The user's question.

        Returns:
            AnalyzedQuery with the rewritten query and (normalized) target.

        Raises:
            ValueError: If the query is empty.
            QueryAnalysisError: If the model response is missing or does not
                match the AnalyzedQuery schema.
        """
        if not query or not query.strip():
            msg = "Query must be a non-empty string"
            raise ValueError(msg)

        messages = self.prompt.format_messages(
            targets=self._format_targets(), question=query
        )
        logger.debug("Analyzer prompt: %s", messages)

        result = self.structured_llm.invoke(messages)

        if not isinstance(result, AnalyzedQuery):
            logger.error("Analyzer returned an unusable response: %r", result)
            msg = f"Expected AnalyzedQuery from the model, got {type(result).__name__}"
            raise QueryAnalysisError(msg)

        rewritten = result.query.strip() or query.strip()
        target = result.target.strip()
        if self.normalize_targets:
            target = target.upper()

        analyzed = AnalyzedQuery(query=rewritten, target=target)
        logger.info("Analyzed query -> target=%s query=%r", target, rewritten)
        return analyzed
