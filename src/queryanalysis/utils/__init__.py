"""Utility modules for query analysis pipelines.

Utility Classes:
    ConfigLoader: YAML configuration loading with ${VAR} resolution and
        section validation.

    EmbedderHelper: HuggingFace embedding model initialization and inference
        for retriever queries and indexed texts.

    LLMHelper: ChatGroq construction from the ``llm`` config section.

    LoggerFactory: One-time logging configuration with per-module loggers.

    ResultMerger: Reciprocal Rank Fusion over result lists produced by
        several query variants.
"""

from queryanalysis.utils.config_loader import ConfigLoader
from queryanalysis.utils.embeddings import EmbedderHelper
from queryanalysis.utils.fusion import ResultMerger
from queryanalysis.utils.llm import LLMHelper
from queryanalysis.utils.logging import LoggerFactory, setup_logger


__all__ = [
    "ConfigLoader",
    "EmbedderHelper",
    "LLMHelper",
    "LoggerFactory",
    "ResultMerger",
    "setup_logger",
]
