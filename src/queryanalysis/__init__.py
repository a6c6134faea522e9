"""Query analysis and multi-retriever dispatch on LangChain.

The package turns free-text questions into structured queries with an LLM and
uses them to drive retrieval:

    - QueryAnalyzer: routes a question to a retriever and rewrites it
    - QueryDispatcher: sends the rewritten question to the chosen retriever
    - RetrieverRegistry: read-only mapping of routing targets to retrievers
    - QueryEnhancer: multi-query, decomposition, step-back and HyDE expansion
    - QueryStructurer: search text plus metadata filters
    - MultiRetrieverPipeline: everything above built from one YAML config
"""

from queryanalysis.components import QueryAnalyzer, QueryEnhancer, QueryStructurer
from queryanalysis.dispatcher import QueryDispatcher
from queryanalysis.exceptions import QueryAnalysisError, UnrecognizedTargetKeyError
from queryanalysis.registry import RetrieverRegistry
from queryanalysis.schemas import (
    AnalyzedQuery,
    ParaphrasedQueries,
    StepBackQuestion,
    StructuredSearchQuery,
    SubQuestions,
)


__all__ = [
    "AnalyzedQuery",
    "ParaphrasedQueries",
    "QueryAnalysisError",
    "QueryAnalyzer",
    "QueryDispatcher",
    "QueryEnhancer",
    "QueryStructurer",
    "RetrieverRegistry",
    "StepBackQuestion",
    "StructuredSearchQuery",
    "SubQuestions",
    "UnrecognizedTargetKeyError",
]
