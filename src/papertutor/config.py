"""
PaperTutor Configuration
Research paper ingestion and chunked LLM explanation.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    # Ollama Configuration
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:7b"

    # Model Parameters
    model_temperature: float = 0.3  # Lower for more faithful explanations
    model_context_length: int = 32768
    request_timeout: float = 300.0  # Seconds per model call
    max_output_tokens: int = 3000  # Per chunk call
    title_max_tokens: int = 50

    # Chunking
    chunk_max_tokens: int = 15000
    chars_per_token: int = 4  # Sizing approximation, not used for billing

    # Analysis Settings
    max_key_concepts: int = 12

    # Pricing (USD per million tokens)
    input_cost_per_million: float = 2.00
    output_cost_per_million: float = 8.00

    # arXiv
    download_timeout: float = 30.0


# Global settings instance
settings = Settings()
