"""Utility modules for the ingestion engine.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at IngestError;
  each pipeline stage raises its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **concurrency** -- asyncio semaphore throttling for batch ingestion.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **upload_validation** -- size and filename limits applied before a file
  is handed to the pipeline.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    CorruptFileError,
    DependencyUnavailableError,
    EmptyExtractionError,
    ExtractionFailedError,
    IndexingError,
    IngestError,
    UnsupportedFormatError,
    UploadRejectedError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Upload admission ------------------------------------------------------
from src.utils.upload_validation import UploadLimits, validate_upload

__all__ = [
    "ConfigurationError",
    "CorruptFileError",
    "DependencyUnavailableError",
    "EmptyExtractionError",
    "ExtractionFailedError",
    "IndexingError",
    "IngestError",
    "UnsupportedFormatError",
    "UploadLimits",
    "UploadRejectedError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
    "validate_upload",
]
