"""Result fusion for multi-query retrieval.

Query expansion, decomposition and step-back prompting all turn one question
into several. Each variant is dispatched separately, so the pipeline ends up
with one ranked list per variant and needs to merge them into a single list.

Reciprocal Rank Fusion (RRF):
    score(d) = sum_i 1 / (k + rank_i(d))
    where k is a constant (typically 60) and rank_i is the 1-based rank of d in
    result list i. RRF only looks at ranks, so lists coming from different
    retrievers with differently calibrated scores can be merged safely.

Documents are considered identical when their page_content matches, or when a
metadata key given via ``dedup_key`` matches.

Usage:
    >>> from queryanalysis.utils.fusion import ResultMerger
    >>> fused = ResultMerger.reciprocal_rank_fusion(
    ...     [results_q1, results_q2], dedup_key="id"
    ... )
"""

from langchain_core.documents import Document


class ResultMerger:
    """Helper for merging retrieval result sets from several query variants."""

    @staticmethod
    def _document_key(doc: Document, dedup_key: str | None) -> str:
        if dedup_key:
            key = doc.metadata.get(dedup_key)
            if key is not None:
                return str(key)
        return doc.page_content

    @staticmethod
    def reciprocal_rank_fusion(
        results_list: list[list[Document]],
        k: int = 60,
        dedup_key: str | None = None,
    ) -> list[Document]:
        """Merge results using Reciprocal Rank Fusion (RRF).

        Args:
            results_list: List of result sets from multiple searches.
            k: RRF parameter (default 60).
            dedup_key: Optional metadata key for deduplication. If provided, uses
                doc.metadata[dedup_key] for uniqueness. Otherwise falls back to
                page_content.

        Returns:
            Merged list of documents sorted by RRF score. Ties keep the order in
            which documents were first seen.
        """
        rrf_scores: dict[str, float] = {}
        doc_map: dict[str, Document] = {}

        for result_set in results_list:
            for rank, doc in enumerate(result_set, 1):
                key = ResultMerger._document_key(doc, dedup_key)
                # First occurrence wins so metadata comes from the best-ranked copy
                doc_map.setdefault(key, doc)
                rrf_scores[key] = rrf_scores.get(key, 0.0) + 1.0 / (k + rank)

        # sorted() is stable, so equal scores keep first-seen order
        sorted_keys = sorted(rrf_scores, key=lambda x: rrf_scores[x], reverse=True)
        return [doc_map[key] for key in sorted_keys]
