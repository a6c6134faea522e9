"""Structured-output schemas for query analysis.

Each schema describes exactly what the LLM is expected to return for one
analysis technique. The schemas are bound with ``llm.with_structured_output``,
so field descriptions double as instructions to the model and pydantic
validates the response before it reaches the caller.

Schemas:
    AnalyzedQuery: Rewritten query plus the retriever it should be sent to.
    ParaphrasedQueries: Alternative phrasings for multi-query expansion.
    SubQuestions: Independent sub-questions for query decomposition.
    StepBackQuestion: A more generic question for step-back prompting.
    StructuredSearchQuery: Search text plus metadata filters.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


def date_to_int(value: date) -> int:
    """Encode a date as a YYYYMMDD int, the form stored in Chroma metadata."""
    return value.year * 10000 + value.month * 100 + value.day


class AnalyzedQuery(BaseModel):
    """Search query rewritten for retrieval and the target to run it against."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(
        ...,
        description="Query to look up in the selected retriever. Rephrase the "
        "user question into a concise search query.",
    )
    target: str = Field(
        ...,
        description="Key of the retriever that should answer the query.",
    )


class ParaphrasedQueries(BaseModel):
    """Alternative phrasings of a user question."""

    queries: list[str] = Field(
        default_factory=list,
        description="Unique paraphrasings of the original question, each "
        "usable as a standalone search query.",
    )


class SubQuestions(BaseModel):
    """Decomposition of a complex question into simpler ones."""

    sub_questions: list[str] = Field(
        default_factory=list,
        description="Self-contained sub-questions that can be answered "
        "independently and together answer the original question.",
    )


class StepBackQuestion(BaseModel):
    """A more generic question whose answer gives background for the original."""

    step_back_question: str = Field(
        ...,
        description="Broader, more abstract version of the original question.",
    )


class StructuredSearchQuery(BaseModel):
    """Search over a document index with optional metadata filters."""

    content_search: str = Field(
        ...,
        description="Similarity search query applied to document contents.",
    )
    title_search: str | None = Field(
        None,
        description="Exact document title to restrict results to. Only set "
        "when the user names a specific title.",
    )
    min_date: date | None = Field(
        None, description="Earliest publish date filter, inclusive."
    )
    max_date: date | None = Field(
        None, description="Latest publish date filter, inclusive."
    )
    sources: list[str] = Field(
        default_factory=list,
        description="Document sources to restrict results to.",
    )

    def to_filters(self) -> dict | None:
        """Build a Chroma ``where`` clause from the populated filters.

        Returns:
            None when no filter is set, the bare condition when exactly one is
            set, and an ``$and`` of conditions otherwise.
        """
        conditions: list[dict] = []
        if self.title_search:
            conditions.append({"title": self.title_search})
        if self.min_date is not None:
            conditions.append({"date": {"$gte": date_to_int(self.min_date)}})
        if self.max_date is not None:
            conditions.append({"date": {"$lte": date_to_int(self.max_date)}})
        if self.sources:
            conditions.append({"source": {"$in": list(self.sources)}})

        if not conditions:
            return None
        if len(conditions) == 1:
            return conditions[0]
        return {"$and": conditions}
