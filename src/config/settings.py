"""Ingestion settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO sources
# (in priority order):
#
#   1. **Environment variables** -- e.g., CHUNK_SIZE_TOKENS=800
#      (highest priority -- always wins)
#   2. **.env file** -- key=value lines in the project root .env file
#
# The mapping is automatic: field name `chunk_size_tokens` maps to env var
# `CHUNK_SIZE_TOKENS`.  Static defaults from config/config.yaml are layered
# underneath by src/config/loader.py.
#
# Settings are never read from a module-level global inside the engine.
# Callers take snapshots with chunking_config() / safety_limits() /
# upload_limits() and pass them in explicitly.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.document import ChunkingConfig
from src.services.ingestion.safety_guard import SafetyLimits
from src.utils.upload_validation import UploadLimits


class Settings(BaseSettings):
    """Ingestion engine settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Chunking ===
    chunk_size_tokens: int = Field(default=1000, ge=100, le=8000)
    chunk_overlap_tokens: int = Field(default=200, ge=0, le=1000)
    preserve_structure: bool = True

    # === Safety ceilings ===
    max_chunks_per_file: int = Field(default=50, ge=1, le=200)
    max_text_length: int = Field(default=200_000, ge=1)

    # === Upload limits (CLI / upload handlers only) ===
    max_file_size: int = Field(default=10 * 1024 * 1024, ge=1)
    min_file_size: int = Field(default=1024, ge=0)
    max_filename_length: int = Field(default=255, ge=1)

    # === Embedding hand-off ===
    # Batch size and pause between embedding calls keep the provider under
    # its rate limit.
    embed_batch_size: int = Field(default=5, ge=1)
    embed_batch_delay_seconds: float = Field(default=0.5, ge=0.0)

    # === Dedup store ===
    dedup_db_path: str = "data/dedup.db"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def _check_cross_field_limits(self) -> "Settings":
        if self.chunk_overlap_tokens >= self.chunk_size_tokens:
            msg = (
                f"CHUNK_OVERLAP_TOKENS ({self.chunk_overlap_tokens}) must be smaller than "
                f"CHUNK_SIZE_TOKENS ({self.chunk_size_tokens})"
            )
            raise ValueError(msg)
        if self.min_file_size > self.max_file_size:
            msg = f"MIN_FILE_SIZE ({self.min_file_size}) exceeds MAX_FILE_SIZE ({self.max_file_size})"
            raise ValueError(msg)
        return self

    def chunking_config(self) -> ChunkingConfig:
        """Snapshot of the chunking budget for one ingestion batch."""
        return ChunkingConfig(
            chunk_size_tokens=self.chunk_size_tokens,
            overlap_tokens=self.chunk_overlap_tokens,
            preserve_structure=self.preserve_structure,
        )

    def safety_limits(self) -> SafetyLimits:
        return SafetyLimits(
            max_text_length=self.max_text_length,
            max_chunks_per_file=self.max_chunks_per_file,
        )

    def upload_limits(self) -> UploadLimits:
        return UploadLimits(
            max_file_size=self.max_file_size,
            min_file_size=self.min_file_size,
            max_filename_length=self.max_filename_length,
        )
