"""Custom exception hierarchy for bookbites.

All application exceptions inherit from :class:`BookBitesError`, which
carries an optional ``provider_name`` so log handlers can tell which
external service ("openai", "ollama", "sqlite") caused the failure.

The hierarchy follows the pipeline stages:

    BookBitesError  (base)
    +-- DocumentSourceError            (reading the EPUB container)
    +-- EmptyDocumentError             (nothing left to segment; job fails)
    +-- DocumentNotFoundError          (unknown document id)
    +-- MalformedExtractionOutputError (extraction response failed validation)
    +-- LLMError                       (any completion call failure)
    +-- EmbeddingError                 (embedding call failure)
    +-- ProviderUnavailableError       (service down / unreachable / timeout)
    +-- RateLimitError                 (provider rate-limit exceeded)
    +-- PersistenceError               (snippet store failure)
    +-- PipelineError                  (orchestration failure)
    +-- ConfigurationError             (startup / missing config)

Unit-level errors (malformed output, provider down, one failed embedding)
are caught by the worker pool and degrade into partial results.  Only the
document-level ones reach the ingestion pipeline's failure path.
"""


class BookBitesError(Exception):
    """Base exception for all bookbites errors.

    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Document-level errors (fatal for one job)
# ---------------------------------------------------------------------------

class DocumentSourceError(BookBitesError):
    """Raised when the document container cannot be opened or read."""

    def __init__(
        self,
        message: str = "Document source could not be read",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyDocumentError(BookBitesError):
    """Raised when a document yields zero usable sections or sentences.

    The job is marked failed and no chunk is dispatched.
    """

    def __init__(
        self,
        message: str = "Document contains no usable sentences",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(BookBitesError):
    """Raised when a document id does not exist in the store."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Unit-level errors (isolated per chunk / per snippet)
# ---------------------------------------------------------------------------

class MalformedExtractionOutputError(BookBitesError):
    """Raised when an extraction response fails schema validation."""

    def __init__(
        self,
        message: str = "Extraction output failed validation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(BookBitesError):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(BookBitesError):
    """Raised when an embedding API call fails."""

    def __init__(
        self,
        message: str = "Embedding API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(BookBitesError):
    """Raised when an external service is unreachable or times out.

    The worker pools treat this like any other per-task failure.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(BookBitesError):
    """Raised when an API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / orchestration / configuration
# ---------------------------------------------------------------------------

class PersistenceError(BookBitesError):
    """Raised when the snippet store rejects an operation."""

    def __init__(
        self,
        message: str = "Snippet store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(BookBitesError):
    """Raised when pipeline orchestration fails (unknown job, bad state)."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(BookBitesError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
