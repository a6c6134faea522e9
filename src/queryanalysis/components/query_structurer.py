"""Query structuring: free text to a filtered search request.

Vector similarity alone cannot express constraints such as "published after
2023" or "only from the docs site". The structurer asks the model to split a
question into the similarity-search text and explicit metadata filters, using
the ``StructuredSearchQuery`` schema. The filters are then translated into a
Chroma ``where`` clause by ``StructuredSearchQuery.to_filters``.
"""

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate

from queryanalysis.exceptions import QueryAnalysisError
from queryanalysis.schemas import StructuredSearchQuery


logger = logging.getLogger(__name__)


class QueryStructurer:
    """Convert natural-language questions into structured search queries."""

    SYSTEM_TEMPLATE = """You are an expert at converting user questions into database queries. You have access to a database of documents with the metadata fields title, date and source.

Given a question, return a database query optimized to retrieve the most relevant results. Only set a filter when the question explicitly asks for it. If there are acronyms or words you are not familiar with, do not try to rephrase them."""

    def __init__(self, llm: BaseChatModel, system_template: str | None = None) -> None:
        self.llm = llm
        self.prompt = ChatPromptTemplate.from_messages(
            [
                ("system", system_template or self.SYSTEM_TEMPLATE),
                ("human", "{question}"),
            ]
        )
        self.structured_llm = llm.with_structured_output(StructuredSearchQuery)

    def structure(self, query: str) -> StructuredSearchQuery:
        """Return the structured form of ``query``.

        Raises:
            ValueError: If the query is empty.
            QueryAnalysisError: If the model response does not match the schema.
        """
        if not query or not query.strip():
            msg = "Query must be a non-empty string"
            raise ValueError(msg)

        result = self.structured_llm.invoke(self.prompt.format_messages(question=query))
        if not isinstance(result, StructuredSearchQuery):
            logger.error("Structurer returned an unusable response: %r", result)
            msg = (
                "Expected StructuredSearchQuery from the model, "
                f"got {type(result).__name__}"
            )
            raise QueryAnalysisError(msg)

        logger.info(
            "Structured query: content=%r filters=%s",
            result.content_search,
            result.to_filters(),
        )
        return result
