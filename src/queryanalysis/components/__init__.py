"""LangChain components for query analysis.

Components:
    - QueryAnalyzer: Structured routing plus query rewriting
    - QueryEnhancer: Multi-query expansion, decomposition, step-back and HyDE
    - QueryStructurer: Search text plus metadata filters

All components take any LangChain chat model that supports structured output.
"""

from queryanalysis.components.query_analyzer import QueryAnalyzer
from queryanalysis.components.query_enhancer import QueryEnhancer
from queryanalysis.components.query_structurer import QueryStructurer


__all__ = [
    "QueryAnalyzer",
    "QueryEnhancer",
    "QueryStructurer",
]
