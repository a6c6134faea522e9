"""Retriever backends for multi-retriever dispatch."""

from queryanalysis.retrievers.chroma import ChromaRetriever, create_client


__all__ = ["ChromaRetriever", "create_client"]
