"""Application settings loaded via pydantic-settings.

Configuration is layered (later layers override earlier):

    1. Field defaults below
    2. ``config/config.yaml``  static defaults checked into the repo
    3. ``.env`` file          local developer overrides
    4. Environment variables  set at deploy time

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY`` and so on.

The pipeline knobs (window size, concurrency bounds, minimum sentence
length, semantic weight) are validated at construction so a bad deploy
fails at startup instead of mid-ingestion.
"""

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class Settings(BaseSettings):
    """bookbites application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config/config.yaml",
        extra="ignore",
    )

    # === LLM / embedding providers ===
    # Empty string = "not configured"; the CLI factories fall through to the
    # next provider.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    ollama_base_url: str = "http://localhost:11434"
    ollama_text_model: str = "llama3.1"

    # === Section classifier (any OpenAI-compatible endpoint, e.g. Groq) ===
    section_filter_enabled: bool = True
    classifier_api_key: str = ""
    classifier_base_url: str = ""
    classifier_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    # === Extraction pipeline ===
    chunk_window_size: int = Field(default=20, ge=1)
    extraction_max_concurrency: int = Field(default=15, ge=1)
    embedding_max_concurrency: int = Field(default=15, ge=1)
    classifier_max_concurrency: int = Field(default=5, ge=1)
    min_sentence_words: int = Field(default=5, ge=0)

    # === Retrieval ===
    semantic_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    search_candidate_pool: int = Field(default=50, ge=1)
    feed_default_limit: int = Field(default=10, ge=1)
    feed_max_limit: int = Field(default=100, ge=1)

    # === Storage ===
    database_path: str = "data/bookbites.db"

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"

    def classifier_settings(self) -> "Settings":
        """Return a copy whose OpenAI fields point at the classifier endpoint.

        Lets the section classifier reuse :class:`OpenAILLMProvider` against a
        different OpenAI-compatible host.  Falls back to the main OpenAI
        credentials when no classifier key is configured.
        """
        if not self.classifier_api_key:
            return self
        return self.model_copy(
            update={
                "openai_api_key": self.classifier_api_key,
                "openai_base_url": self.classifier_base_url,
                "openai_text_model": self.classifier_model,
            }
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # A missing YAML file is treated as empty by the YAML source.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )
