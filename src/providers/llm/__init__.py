"""LLM provider adapters.

Two implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider - OpenAI or any OpenAI-compatible host (Groq, TogetherAI)
    - OllamaLLMProvider - local models via an Ollama server
"""

from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "OllamaLLMProvider"]
