"""Section classifier implementations."""

from src.providers.classification.llm_section_classifier import LLMSectionClassifier

__all__ = ["LLMSectionClassifier"]
