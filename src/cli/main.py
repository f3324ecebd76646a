# =============================================================================
# src/cli/main.py - bookbites command-line interface
# =============================================================================
#
# Operator CLI over the ingestion pipeline and the snippet store.
#
# Supported subcommands:
#
#   ingest    - Ingest an EPUB: segment, extract snippets, embed, persist
#   status    - Show a document's lifecycle status (processing/completed/failed)
#   documents - List ingested documents with snippet counts
#   delete    - Delete a document with its snippets (themes are kept)
#   window    - Print a sentence range with its neighbouring sentences
#   feed      - Cursor-paginated snippet feed (optionally by document/theme)
#   random    - Random sample of snippets (optionally by document/theme)
#   search    - Hybrid semantic + lexical snippet search
#
# Provider Selection (same chain for every command that needs one):
#   - LLM (extraction):       OpenAI / OpenAI-compatible -> Ollama
#   - LLM (section filter):   classifier endpoint -> OpenAI -> Ollama
#   - Embedding:              OpenAI text-embedding-3-small -> Nomic/Ollama
#   - Store:                  SQLite (always)
#
# Usage examples:
#   python -m src.cli ingest books/meditations.epub
#   python -m src.cli feed --limit 5 --theme stoic
#   python -m src.cli feed --cursor 42
#   python -m src.cli search "what we control"
#   python -m src.cli window 1 120 123
# =============================================================================

"""Command-line interface for bookbites.

Usage::

    python -m src.cli ingest /path/to/book.epub
    python -m src.cli feed --limit 10 --cursor 0
    python -m src.cli search "courage in adversity" --limit 5
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid

from src.config.settings import Settings
from src.utils.errors import BookBitesError
from src.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Provider factories
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings):  # noqa: ANN202
    """Select the first configured LLM provider.

    Priority: OpenAI (or any OpenAI-compatible host) -> Ollama (local/free).
    Imports are deferred so read-only commands never load the SDKs.
    """
    if app_settings.openai_api_key:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        return OpenAILLMProvider(settings=app_settings)

    from src.providers.llm.ollama_provider import OllamaLLMProvider

    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings):  # noqa: ANN202
    """Select the first available embedding provider, or ``None``.

    Priority: OpenAI text-embedding-3-small (1536-dim) ->
              Nomic via Ollama (768-dim).

    Vectors are stored with their model id and only compared with query
    vectors of the same model, so switching providers never mixes spaces.
    """
    if app_settings.openai_api_key:
        from src.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(settings=app_settings)
        if provider.is_available():
            return provider

    from src.providers.embedding.nomic_embedding_provider import (
        NomicEmbeddingProvider,
    )

    nomic = NomicEmbeddingProvider(settings=app_settings)
    if nomic.is_available():
        return nomic

    return None


def _build_section_classifier(app_settings: Settings):  # noqa: ANN202
    """Return an LLM section classifier, or ``None`` when filtering is off."""
    if not app_settings.section_filter_enabled:
        return None

    from src.providers.classification.llm_section_classifier import LLMSectionClassifier

    return LLMSectionClassifier(_build_llm_provider(app_settings.classifier_settings()))


async def _build_store(app_settings: Settings):  # noqa: ANN202
    from src.providers.store.sqlite_snippet_store import SQLiteSnippetStore

    store = SQLiteSnippetStore(db_path=app_settings.database_path)
    await store.initialize()
    return store


def _build_ranker(app_settings: Settings, store, embedding_provider=None):  # noqa: ANN001, ANN202
    from src.services.retrieval_ranker import RetrievalRanker

    return RetrievalRanker(
        store,
        embedding_provider=embedding_provider,
        semantic_weight=app_settings.semantic_weight,
        candidate_pool=app_settings.search_candidate_pool,
        default_limit=app_settings.feed_default_limit,
        max_limit=app_settings.feed_max_limit,
    )


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_item(item) -> None:  # noqa: ANN001
    themes = ", ".join(item.themes) if item.themes else "-"
    print(f"#{item.snippet_id}  {item.document_title} - {item.document_author}")
    print(f"  {item.snippet_text}")
    if item.context:
        print(f"  context: {item.context}")
    print(f"  sentences {item.start_index}-{item.end_index} | themes: {themes}")
    print(f"  locate: \"{item.text_to_search}\"")
    print()


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest an EPUB end to end, printing live job progress."""
    embedding_provider = _build_embedding_provider(app_settings)
    if embedding_provider is None:
        print(
            "Error: No embedding provider available.\n"
            "Set one of:\n"
            "  OPENAI_API_KEY  - for OpenAI text-embedding-3-small\n"
            "  OLLAMA_BASE_URL - for Nomic nomic-embed-text (default: http://localhost:11434)",
            file=sys.stderr,
        )
        return 1

    from src.pipeline.ingestion_pipeline import IngestionPipeline
    from src.pipeline.progress_tracker import ProgressTracker
    from src.providers.document_source.epub_source import EPUBDocumentSource
    from src.providers.extraction.llm_extraction_provider import LLMExtractionProvider

    source = EPUBDocumentSource()
    if not source.supports(args.file):
        print(f"Error: unsupported file type: {args.file}", file=sys.stderr)
        return 1

    llm_provider = _build_llm_provider(app_settings)
    classifier = None if args.no_filter else _build_section_classifier(app_settings)
    store = await _build_store(app_settings)
    tracker = ProgressTracker()

    pipeline = IngestionPipeline(
        document_source=source,
        extraction_provider=LLMExtractionProvider(llm_provider),
        embedding_provider=embedding_provider,
        store=store,
        progress_tracker=tracker,
        section_classifier=classifier,
        chunk_window_size=app_settings.chunk_window_size,
        extraction_max_concurrency=app_settings.extraction_max_concurrency,
        embedding_max_concurrency=app_settings.embedding_max_concurrency,
        classifier_max_concurrency=app_settings.classifier_max_concurrency,
        min_sentence_words=app_settings.min_sentence_words,
    )

    print(f"Providers: LLM {llm_provider.get_provider_name()} | "
          f"Embedding {embedding_provider.get_provider_name()} | Store sqlite")
    print(f"Ingesting: {args.file}\n")

    last_shown = -1

    def show_progress(status) -> None:  # noqa: ANN001
        nonlocal last_shown
        pct = int(status.progress)
        if pct != last_shown:
            last_shown = pct
            print(f"\r  [{status.phase.value:<12}] {pct:3d}%", end="", flush=True)

    job_id = args.job_id or str(uuid.uuid4())
    tracker.register_listener(job_id, show_progress)

    result = await pipeline.ingest(args.file, owner_id=args.owner, job_id=job_id)

    print("\n\nIngestion complete:")
    print(f"  Document ID:     {result.document_id}")
    print(f"  Title:           {result.title}")
    print(f"  Sections:        {result.sections_total} ({result.sections_rejected} rejected)")
    print(f"  Sentences:       {result.sentence_count}")
    print(f"  Chunks:          {result.chunk_count} ({result.failed_chunks} failed)")
    print(f"  Snippets:        {result.snippet_count} ({result.embedded_count} embedded)")
    print(f"  Themes:          {result.theme_count}")
    print(f"  Time:            {result.ingestion_time:.2f}s")
    return 0


async def _handle_status(args: argparse.Namespace, app_settings: Settings) -> int:
    store = await _build_store(app_settings)
    document = await store.get_document(args.document_id)
    if document is None:
        print(f"Document {args.document_id} not found", file=sys.stderr)
        return 1
    print(f"{document.id}: {document.title} - {document.author}")
    print(f"  Status:    {document.status.value}")
    print(f"  Sentences: {document.sentence_count}")
    return 0


async def _handle_documents(args: argparse.Namespace, app_settings: Settings) -> int:
    from src.services.document_service import DocumentService

    service = DocumentService(await _build_store(app_settings))
    documents = await service.list_documents(owner_id=args.owner)
    if not documents:
        print("No documents ingested yet.")
        return 0

    print(f"{'ID':>5}  {'STATUS':<11} {'SNIPPETS':>8}  TITLE")
    for doc in documents:
        print(f"{doc.id:>5}  {doc.status.value:<11} {doc.snippet_count:>8}  {doc.title} - {doc.author}")
    return 0


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    from src.services.document_service import DocumentService

    if not args.yes:
        answer = input(f"Delete document {args.document_id} and all its snippets? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 1

    service = DocumentService(await _build_store(app_settings))
    await service.delete_document(args.document_id)
    print(f"Deleted document {args.document_id}.")
    return 0


async def _handle_window(args: argparse.Namespace, app_settings: Settings) -> int:
    from src.services.document_service import DocumentService

    service = DocumentService(await _build_store(app_settings))
    window = await service.get_sentence_window(args.document_id, args.start, args.end)

    print(f"{window.document_title} - {window.document_author} "
          f"[{window.start_index}-{window.end_index}]\n")
    if window.previous_text:
        print(f"  … {window.previous_text}\n")
    print(f"  {window.full_text}\n")
    if window.next_text:
        print(f"  {window.next_text} …")
    return 0


async def _handle_feed(args: argparse.Namespace, app_settings: Settings) -> int:
    ranker = _build_ranker(app_settings, await _build_store(app_settings))
    page = await ranker.feed(
        limit=args.limit,
        cursor=args.cursor,
        document_id=args.document,
        theme=args.theme,
        owner_id=args.owner,
    )
    for item in page.items:
        _print_item(item)
    print(f"next cursor: {page.next_cursor} | has more: {page.has_more}")
    return 0


async def _handle_random(args: argparse.Namespace, app_settings: Settings) -> int:
    ranker = _build_ranker(app_settings, await _build_store(app_settings))
    items = await ranker.random_feed(
        limit=args.limit,
        document_id=args.document,
        theme=args.theme,
        owner_id=args.owner,
    )
    for item in items:
        _print_item(item)
    if not items:
        print("No snippets in scope.")
    return 0


async def _handle_search(args: argparse.Namespace, app_settings: Settings) -> int:
    embedding_provider = _build_embedding_provider(app_settings)
    if embedding_provider is None:
        print("Note: no embedding provider available, ranking by text relevance only.\n")

    ranker = _build_ranker(app_settings, await _build_store(app_settings), embedding_provider)
    hits = await ranker.search(args.query, limit=args.limit, document_id=args.document, owner_id=args.owner)
    if not hits:
        print("No matches.")
        return 0

    for hit in hits:
        print(f"score {hit.fused_score:.3f} (semantic {hit.semantic_score:.3f}, "
              f"lexical {hit.lexical_score:.3f})")
        _print_item(hit.item)
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookbites",
        description="Extract, store and browse snippets from books.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest an EPUB book")
    ingest_parser.add_argument("file", help="Path to the EPUB file")
    ingest_parser.add_argument("--owner", default=None, help="Owner id to attach to the document")
    ingest_parser.add_argument("--job-id", dest="job_id", default=None, help="Explicit job id")
    ingest_parser.add_argument(
        "--no-filter",
        action="store_true",
        dest="no_filter",
        help="Skip LLM front/back-matter filtering",
    )

    # -- status --
    status_parser = subparsers.add_parser("status", help="Show a document's status")
    status_parser.add_argument("document_id", type=int)

    # -- documents --
    docs_parser = subparsers.add_parser("documents", help="List ingested documents")
    docs_parser.add_argument("--owner", default=None)

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document and its snippets")
    delete_parser.add_argument("document_id", type=int)
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- window --
    window_parser = subparsers.add_parser("window", help="Show a sentence range in context")
    window_parser.add_argument("document_id", type=int)
    window_parser.add_argument("start", type=int)
    window_parser.add_argument("end", type=int)

    # -- feed / random share scope options --
    for name, help_text in (("feed", "Cursor-paginated feed"), ("random", "Random snippets")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--limit", type=int, default=None)
        sub.add_argument("--document", type=int, default=None, help="Restrict to one document id")
        sub.add_argument("--theme", default=None, help="Theme substring (case-insensitive)")
        sub.add_argument("--owner", default=None)
        if name == "feed":
            sub.add_argument("--cursor", type=int, default=0, help="Last snippet id seen")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Hybrid snippet search")
    search_parser.add_argument("query")
    search_parser.add_argument("--limit", type=int, default=None)
    search_parser.add_argument("--document", type=int, default=None)
    search_parser.add_argument("--owner", default=None)

    return parser


_HANDLERS = {
    "ingest": _handle_ingest,
    "status": _handle_status,
    "documents": _handle_documents,
    "delete": _handle_delete,
    "window": _handle_window,
    "feed": _handle_feed,
    "random": _handle_random,
    "search": _handle_search,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging and dispatch to a handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=app_settings.app_env == "production",
    )

    try:
        return asyncio.run(_HANDLERS[args.command](args, app_settings))
    except BookBitesError as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
