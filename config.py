"""
Agent configuration
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from AGENT_* environment variables or a .env file."""

    model_config = SettingsConfigDict(env_prefix="AGENT_", env_file=".env", extra="ignore")

    # Documents for information questions
    docs_path: str = "./docs"
    rag_top_k: int = 5

    # Answering (OpenAI); empty key -> extractive answers from the documents
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    llm_model: str = "gpt-4o-mini"
    history_limit: int = 12

    # Speech
    language: str = "sl"
    stt_model_size: str = "small"
    stt_device: str = "cpu"
    stt_compute_type: str = "int8"
    tts_voice: str = "sl-SI-PetraNeural"

    # Sessions idle longer than this are dropped; 0 disables eviction
    session_ttl_seconds: float = 1800.0

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
