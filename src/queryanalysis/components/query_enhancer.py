"""Query enhancement component for query analysis pipelines.

This module turns one user question into several search queries. Each
variant is dispatched on its own and the result lists are fused afterwards,
which raises recall when the user's wording does not match the wording of the
indexed documents.

Query Enhancement Strategies:
    1. Multi-Query Expansion: Generates alternative phrasings of the question
       as a structured ``ParaphrasedQueries`` response. Useful when a question
       could be asked with different terminology.

    2. Decomposition: Splits a compound question ("How do X and Y differ?")
       into independent sub-questions via the ``SubQuestions`` schema. Each
       sub-question usually targets a single retriever.

    3. Step-Back Prompting: Asks the model for a more generic question
       (``StepBackQuestion``) whose answer supplies background for the
       specific one. Both the step-back and the original are searched.

    4. HyDE (Hypothetical Document Embeddings): Generates a short
       hypothetical answer and searches with it, bridging the gap between
       short questions and long declarative documents. This is the only free
       text strategy; the hypothetical document is used verbatim.

Usage:
    >>> from langchain_groq import ChatGroq
    >>> from queryanalysis.components import QueryEnhancer
    >>> llm = ChatGroq(model="llama-3.3-70b-versatile")
    >>> enhancer = QueryEnhancer(llm)
    >>> enhancer.generate_queries("What is a LangChain retriever?", "multi_query")
    >>> enhancer.generate_queries("Compare Chroma and Pinecone", "decomposition")
    >>> enhancer.generate_queries("What is backpropagation?", "step_back")
    >>> enhancer.generate_queries("Explain neural networks", "hyde")
"""

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate, PromptTemplate

from queryanalysis.exceptions import QueryAnalysisError
from queryanalysis.schemas import ParaphrasedQueries, StepBackQuestion, SubQuestions


logger = logging.getLogger(__name__)


class QueryEnhancer:
    """Generate multiple query perspectives for enhanced retrieval.

    Attributes:
        MODES: Enhancement modes accepted by ``generate_queries``.
        llm: LangChain chat model used for query generation.
        max_queries: Upper bound on paraphrases returned by multi-query mode.
        max_sub_questions: Upper bound on sub-questions from decomposition.
    """

    MODES = ("multi_query", "decomposition", "step_back", "hyde")

    MULTI_QUERY_SYSTEM = """You are an expert at converting user questions into search queries. Perform query expansion: generate up to {max_queries} different phrasings of the user question, using synonyms and rewording. If there are acronyms or words you are not familiar with, do not try to rephrase them. Return only unique queries."""

    DECOMPOSITION_SYSTEM = """You are an expert at converting user questions into search queries. Decompose the user question into at most {max_sub_questions} distinct sub-questions that each need to be answered to answer the original question. If the question is already simple, return it unchanged as the only sub-question. Do not rephrase acronyms or words you are not familiar with."""

    STEP_BACK_SYSTEM = """You are an expert at taking a specific question and extracting a more generic question that gets at the underlying principles needed to answer the specific question. Keep the step-back question concise and answerable on its own."""

    HYDE_TEMPLATE = """You are an AI language model assistant. Write a brief, focused passage (2-3 sentences) that directly answers the question, as if it were taken from a document that contains the answer.

Question: {query}

Passage:"""

    def __init__(
        self,
        llm: BaseChatModel,
        max_queries: int = 5,
        max_sub_questions: int = 4,
    ) -> None:
        """Initialize QueryEnhancer with a LangChain chat model.

        Args:
            llm: Chat model supporting ``with_structured_output``. A moderate
                temperature (0.3-0.7) gives more diverse paraphrases.
            max_queries: Maximum number of paraphrases to keep.
            max_sub_questions: Maximum number of sub-questions to keep.
        """
        self.llm = llm
        self.max_queries = max_queries
        self.max_sub_questions = max_sub_questions

    def _invoke_structured(self, schema: type, system: str, query: str, **kwargs):
        prompt = ChatPromptTemplate.from_messages(
            [("system", system), ("human", "{question}")]
        )
        messages = prompt.format_messages(question=query, **kwargs)
        result = self.llm.with_structured_output(schema).invoke(messages)
        if not isinstance(result, schema):
            logger.error("Expected %s, got %r", schema.__name__, result)
            msg = f"Expected {schema.__name__} from the model, got {type(result).__name__}"
            raise QueryAnalysisError(msg)
        return result

    @staticmethod
    def _clean(items: list[str]) -> list[str]:
        cleaned = []
        seen = set()
        for item in items:
            text = item.strip()
            if text and text.lower() not in seen:
                seen.add(text.lower())
                cleaned.append(text)
        return cleaned

    def generate_multi_queries(self, query: str) -> list[str]:
        """Generate alternative query formulations for the same information need.

        Args:
            query: The original user query text.

        Returns:
            Up to ``max_queries`` unique, non-empty paraphrases. The original
            query is not added; if the model returns nothing the list is
            ``[query]`` so callers always have something to search with.
        """
        result = self._invoke_structured(
            ParaphrasedQueries,
            self.MULTI_QUERY_SYSTEM,
            query,
            max_queries=self.max_queries,
        )
        queries = self._clean(result.queries)[: self.max_queries]
        return queries or [query]

    def generate_sub_questions(self, query: str) -> list[str]:
        """Decompose a question into independently answerable sub-questions."""
        result = self._invoke_structured(
            SubQuestions,
            self.DECOMPOSITION_SYSTEM,
            query,
            max_sub_questions=self.max_sub_questions,
        )
        sub_questions = self._clean(result.sub_questions)[: self.max_sub_questions]
        return sub_questions or [query]

    def generate_step_back_queries(self, query: str) -> list[str]:
        """Generate a step-back question for broader context retrieval.

        Returns:
            ``[step_back_question, query]``, or ``[query]`` when the model
            returns a blank step-back question.

        Reference:
            Take a Step Back: Evoking Reasoning via Abstraction in Large Language
            Models (Zheng et al., 2023) - https://arxiv.org/abs/2310.06117
        """
        result = self._invoke_structured(StepBackQuestion, self.STEP_BACK_SYSTEM, query)
        step_back = result.step_back_question.strip()
        if not step_back or step_back.lower() == query.strip().lower():
            return [query]
        return [step_back, query]

    def generate_hyde_queries(self, query: str) -> list[str]:
        """Generate a hypothetical document for HyDE-based retrieval.

        Returns:
            ``[query, hypothetical_document]``. The original query comes first
            so the exact user intent is always searched.

        Reference:
            HyDE: Precise Zero-Shot Dense Retrieval without Relevance Labels
            (Gao et al., 2022) - https://arxiv.org/abs/2212.10496
        """
        prompt = PromptTemplate(template=self.HYDE_TEMPLATE, input_variables=["query"])
        response = self.llm.invoke(prompt.format(query=query))
        hyde_response = str(response.content).strip()
        if not hyde_response:
            return [query]
        return [query, hyde_response]

    def generate_queries(self, query: str, mode: str = "multi_query") -> list[str]:
        """Generate enhanced queries based on the specified mode.

        Args:
            query: The original user query text.
            mode: One of 'multi_query', 'decomposition', 'step_back', 'hyde'.

        Returns:
            List of query strings to search with.

        Raises:
            ValueError: If mode is not one of the recognized values.
        """
        if mode == "multi_query":
            queries = self.generate_multi_queries(query)
        elif mode == "decomposition":
            queries = self.generate_sub_questions(query)
        elif mode == "step_back":
            queries = self.generate_step_back_queries(query)
        elif mode == "hyde":
            queries = self.generate_hyde_queries(query)
        else:
            msg = f"Unknown mode: {mode}. Must be one of {list(self.MODES)}"
            raise ValueError(msg)

        logger.info("Generated %d queries (mode=%s)", len(queries), mode)
        return queries
