"""Utility modules for bookbites.

- **errors** -- Domain exception hierarchy rooted at BookBitesError; each
  pipeline stage raises its own subclass so callers can tell unit-level
  failures (degrade) from document-level ones (fail the job).
- **concurrency** -- Semaphore-bounded fan-out helpers used by the
  classification, extraction and embedding phases.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **llm_json** -- Tolerant JSON-object parsing of model responses.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    BookBitesError,
    ConfigurationError,
    DocumentNotFoundError,
    DocumentSourceError,
    EmbeddingError,
    EmptyDocumentError,
    LLMError,
    MalformedExtractionOutputError,
    PersistenceError,
    PipelineError,
    ProviderUnavailableError,
    RateLimitError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import TaskOutcome, run_bounded, throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Model response parsing ------------------------------------------------
from src.utils.llm_json import parse_json_object

__all__ = [
    "BookBitesError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "DocumentSourceError",
    "EmbeddingError",
    "EmptyDocumentError",
    "LLMError",
    "MalformedExtractionOutputError",
    "PersistenceError",
    "PipelineError",
    "ProviderUnavailableError",
    "RateLimitError",
    "TaskOutcome",
    "configure_logging",
    "get_logger",
    "parse_json_object",
    "run_bounded",
    "throttled_gather",
]
