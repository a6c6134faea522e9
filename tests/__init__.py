"""Test suite for the queryanalysis library.

The test suite is organized into the following modules:
- tests/components: Tests for the analyzer, enhancer and structurer
- tests/retrievers: Tests for the Chroma retriever
- tests/utils: Tests for config, logging, fusion and model helpers
- tests/test_*.py: Registry, dispatcher, schemas, pipeline and CLI tests

No test calls an LLM API or a vector database; collaborators are stubs or
MagicMock objects.
"""
