"""Configuration helpers for the Rewiki article pipeline."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    article_model: str = Field(
        "gpt-4.1-mini", description="Model that writes the article JSON."
    )
    revision_model: str = Field(
        "gpt-4.1-mini", description="Model that judges proposed revisions."
    )
    image_model: str = Field("gpt-image-1", description="Image synthesis model.")
    image_size: str = Field(
        "1536x1024", description="Generated image size; closest to 16:9 the model offers."
    )
    web_search_tool: str = Field(
        "web_search",
        description="Responses API tool type used for search grounding.",
    )
    revision_context_chars: int = Field(
        500,
        description="Characters of current article text sent with each revision request.",
    )
    history_limit: int = Field(10, description="Maximum number of articles kept in history.")
    data_dir: str | None = Field(
        None,
        alias="REWIKI_DATA_DIR",
        description="Optional override for local storage root; defaults to data/local.",
    )


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # pydantic settings cache internally
