"""Exceptions raised by query analysis and dispatch."""

from collections.abc import Iterable


class UnrecognizedTargetKeyError(LookupError):
    """The analyzer chose a target that has no registered retriever.

    Attributes:
        key: The target key returned by the analyzer.
        known_keys: Sorted keys available in the registry.
    """

    def __init__(self, key: str, known_keys: Iterable[str]) -> None:
        self.key = key
        self.known_keys = tuple(sorted(known_keys))
        super().__init__(
            f"Unrecognized target key {key!r}; expected one of {list(self.known_keys)}"
        )


class QueryAnalysisError(ValueError):
    """The LLM returned a structured response that cannot be used."""
