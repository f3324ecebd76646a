"""Extraction and retrieval services.

Ingestion side, in data-flow order:
    SentenceSegmenter -> SectionFilter -> ChunkBatcher
      -> ExtractionOrchestrator -> IndexReconciler -> EmbeddingGenerator

Read side:
    RetrievalRanker (feeds, search), DocumentService (windows, listing)
"""
