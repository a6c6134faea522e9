"""Read-only registry of retrievers keyed by routing target.

The registry is the configuration object handed to the dispatcher. It is built
once (from code or from the ``retrievers`` config section), validated eagerly,
and never mutated afterwards, so concurrent dispatches can share it without
locking.

Retrievers are LangChain runnables: anything exposing ``invoke(query)`` that
returns a list of Documents. Plain callables are accepted too and wrapped in
``RunnableLambda``.

Usage:
    >>> registry = RetrieverRegistry({"HARRISON": r1, "ANKUSH": r2})
    >>> "HARRISON" in registry
    True
    >>> registry.get("HARRISON").invoke("workplace of Harrison")
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from langchain_core.runnables import Runnable, RunnableLambda

from queryanalysis.exceptions import UnrecognizedTargetKeyError


logger = logging.getLogger(__name__)


class RetrieverRegistry(Mapping):
    """Immutable mapping from target key to retriever.

    Attributes:
        descriptions: Read-only mapping from target key to a human readable
            description, used by the analyzer prompt.
    """

    def __init__(
        self,
        retrievers: Mapping[str, Runnable | Callable[[str], Any]],
        descriptions: Mapping[str, str] | None = None,
    ) -> None:
        """Validate and freeze the retriever mapping.

        Args:
            retrievers: Mapping from target key to retriever or callable.
            descriptions: Optional description per target key. Keys without a
                description fall back to the key itself.

        Raises:
            ValueError: If the mapping is empty, a key is blank or not a
                string, a value cannot be invoked, or a description names an
                unknown key.
        """
        if not retrievers:
            msg = "RetrieverRegistry requires at least one retriever"
            raise ValueError(msg)

        validated: dict[str, Runnable] = {}
        for key, retriever in retrievers.items():
            if not isinstance(key, str) or not key.strip():
                msg = f"Retriever keys must be non-empty strings, got {key!r}"
                raise ValueError(msg)
            validated[key] = self._coerce(key, retriever)

        descriptions = dict(descriptions or {})
        unknown = sorted(set(descriptions) - set(validated))
        if unknown:
            msg = f"Descriptions given for unknown targets: {unknown}"
            raise ValueError(msg)

        self._retrievers = MappingProxyType(validated)
        self.descriptions = MappingProxyType(
            {key: descriptions.get(key) or key for key in validated}
        )
        logger.debug("Registered retrievers: %s", list(validated))

    @staticmethod
    def _coerce(key: str, retriever: Any) -> Runnable:
        if isinstance(retriever, Runnable):
            return retriever
        if callable(retriever):
            return RunnableLambda(retriever)
        msg = (
            f"Retriever for {key!r} must be a Runnable or callable, "
            f"got {type(retriever).__name__}"
        )
        raise ValueError(msg)

    def __getitem__(self, key: str) -> Runnable:
        try:
            return self._retrievers[key]
        except KeyError:
            raise UnrecognizedTargetKeyError(key, self._retrievers) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._retrievers)

    def __len__(self) -> int:
        return len(self._retrievers)

    def __contains__(self, key: object) -> bool:
        return key in self._retrievers

    def get(self, key: str) -> Runnable:  # type: ignore[override]
        """Return the retriever for ``key``.

        Unlike ``Mapping.get`` there is no default: an unknown key raises
        UnrecognizedTargetKeyError.
        """
        return self[key]

    def __repr__(self) -> str:
        return f"RetrieverRegistry(targets={list(self._retrievers)})"
