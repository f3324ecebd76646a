"""Public interface definitions for every external collaborator.

Business logic (segmentation, batching, orchestration, ranking) talks to
the outside world only through the abstract base classes in this package.
Concrete adapters live in ``src/providers/`` and are injected at
construction time, so the pipeline can be exercised against fakes with no
network access.

CONCRETE PROVIDER MAP:
    Interface              ->  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ILLMProvider           ->  OpenAILLMProvider, OllamaLLMProvider
    IEmbeddingProvider     ->  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IExtractionProvider    ->  LLMExtractionProvider
    ISectionClassifier     ->  LLMSectionClassifier
    IDocumentSource        ->  EPUBDocumentSource
    ISnippetStore          ->  SQLiteSnippetStore
"""

from src.interfaces.document_source import IDocumentSource
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.extraction_provider import IExtractionProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.section_classifier import ISectionClassifier
from src.interfaces.snippet_store import ISnippetStore

__all__ = [
    "IDocumentSource",
    "IEmbeddingProvider",
    "IExtractionProvider",
    "ILLMProvider",
    "ISectionClassifier",
    "ISnippetStore",
]
