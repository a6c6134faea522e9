"""Command-line entry point for multi-retriever search."""

import argparse
import sys

from queryanalysis.components.query_enhancer import QueryEnhancer
from queryanalysis.exceptions import UnrecognizedTargetKeyError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queryanalysis",
        description="Analyze a question, route it to a retriever and print the results.",
    )
    parser.add_argument("query", help="Question to search for.")
    parser.add_argument(
        "--config", required=True, help="Path to the pipeline YAML configuration."
    )
    parser.add_argument(
        "--mode",
        choices=list(QueryEnhancer.MODES),
        default=None,
        help="Optional query enhancement mode applied before dispatch.",
    )
    parser.add_argument(
        "--top-k", type=int, default=None, help="Number of documents to print."
    )
    parser.add_argument(
        "--structured",
        action="store_true",
        help="Extract metadata filters from the question and apply them.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Deferred: pulls in chromadb and the model backends
    from queryanalysis.pipeline import MultiRetrieverPipeline

    try:
        pipeline = MultiRetrieverPipeline(args.config)
        if args.structured:
            result = pipeline.structured_search(args.query)
        else:
            result = pipeline.search(args.query, mode=args.mode, top_k=args.top_k)
    except UnrecognizedTargetKeyError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for query in result.get("enhanced_queries", []):
        print(f"query: {query}")
    if "structured_query" in result:
        print(f"target: {result['target']}")
        print(f"filters: {result['structured_query'].to_filters()}")
    documents = result["documents"]
    if args.top_k is not None:
        documents = documents[: args.top_k]
    for i, doc in enumerate(documents, 1):
        print(f"[{i}] {doc.page_content} ({doc.metadata})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
