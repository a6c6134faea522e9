"""Tests for utility modules: config loading, logging, fusion and helpers."""
