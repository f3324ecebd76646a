"""Chunk, extraction and snippet models.

``ExtractionResult`` is what the extraction model says; ``Snippet`` is what
we keep.  The two differ in one important way: ``Snippet.sentence_text`` is
always rebuilt from the source document's sentence map by the
IndexReconciler, never copied from the model's ``tagged_span``.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def normalize_themes(values: list[str]) -> list[str]:
    """Lowercase, trim and de-duplicate theme names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        name = " ".join(str(value).split()).lower()
        if name:
            seen.setdefault(name, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Chunk - a window of consecutive sentence units sent in one extraction call.
# ---------------------------------------------------------------------------
class Chunk(BaseModel):
    """An ordered, contiguous slice of the document's sentence indices."""

    model_config = ConfigDict(frozen=True)

    position: int = Field(ge=0)
    indices: tuple[int, ...]
    # ``<index>text</index>`` fragments joined by single spaces.
    text: str

    @property
    def first_index(self) -> int:
        return self.indices[0]

    @property
    def last_index(self) -> int:
        return self.indices[-1]


# ---------------------------------------------------------------------------
# ExtractionResult - one item of a validated extraction response.
# ---------------------------------------------------------------------------
class ExtractionResult(BaseModel):
    """One snippet candidate as returned by the extraction provider.

    Accepts both the snake_case field names and the camelCase keys used in
    the JSON schema sent to the model.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    snippet_text: str = Field(
        min_length=1,
        validation_alias=AliasChoices("snippet_text", "snippetText"),
    )
    context: str = ""
    themes: list[str] = Field(default_factory=list)
    tagged_span: str = Field(
        default="",
        validation_alias=AliasChoices("tagged_span", "taggedSpan", "originalTextWithIndices"),
    )
    # Position of the chunk that produced this result (set by the orchestrator).
    chunk_position: int | None = None

    @field_validator("themes")
    @classmethod
    def _normalize_themes(cls, value: list[str]) -> list[str]:
        return normalize_themes(value)


class ExtractionPayload(BaseModel):
    """Top-level shape of an extraction response: ``{"snippets": [...]}``."""

    model_config = ConfigDict(frozen=True)

    snippets: list[ExtractionResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Embeddings and snippets
# ---------------------------------------------------------------------------
class EmbeddingVector(BaseModel):
    """A snippet's vector plus the model that produced it."""

    model_config = ConfigDict(frozen=True)

    vector: list[float] = Field(min_length=1)
    model: str
    snippet_id: int | None = None

    @property
    def dimension(self) -> int:
        return len(self.vector)


class Snippet(BaseModel):
    """A short extracted passage anchored to a verified sentence range.

    ``snippet_text`` is model-authored prose; ``sentence_text`` is the
    space-joined source sentences in ``[start_index, end_index]``.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    start_index: int = Field(ge=1)
    end_index: int = Field(ge=1)
    snippet_text: str
    context: str = ""
    themes: list[str] = Field(default_factory=list)
    sentence_text: str
    document_id: int | None = None
    # Kept for debugging only; never used as canonical text.
    tagged_span: str = ""
    embedding: EmbeddingVector | None = None

    @model_validator(mode="after")
    def _check_range(self) -> Snippet:
        if self.start_index > self.end_index:
            msg = f"start_index {self.start_index} > end_index {self.end_index}"
            raise ValueError(msg)
        return self

    def with_embedding(self, embedding: EmbeddingVector) -> Snippet:
        return self.model_copy(update={"embedding": embedding})


class Theme(BaseModel):
    """A theme row; names are unique across the whole store."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
