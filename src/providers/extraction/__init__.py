"""Snippet extraction provider implementations."""

from src.providers.extraction.llm_extraction_provider import LLMExtractionProvider

__all__ = ["LLMExtractionProvider"]
