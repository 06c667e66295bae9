"""Upload admission checks applied before a file reaches the pipeline.

These are policy limits for whoever accepts uploads (the CLI here, an HTTP
handler elsewhere).  :meth:`IngestionPipeline.ingest` does not call them, so
small in-memory documents stay ingestible in tests and scripts.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.utils.errors import UploadRejectedError


class UploadLimits(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_file_size: int = Field(default=10 * 1024 * 1024, ge=1)
    min_file_size: int = Field(default=1024, ge=0)
    max_filename_length: int = Field(default=255, ge=1)


def validate_upload(filename: str, size: int, limits: UploadLimits | None = None) -> None:
    """Raise :class:`UploadRejectedError` if the upload breaks *limits*.

    Checks run in order: too small, too large, filename too long.
    """
    limits = limits or UploadLimits()

    if size < limits.min_file_size:
        raise UploadRejectedError(
            message=f"File is too small ({size} bytes, minimum {limits.min_file_size})",
            filename=filename,
        )
    if size > limits.max_file_size:
        raise UploadRejectedError(
            message=f"File is too large ({size} bytes, maximum {limits.max_file_size})",
            filename=filename,
        )
    if len(filename) > limits.max_filename_length:
        raise UploadRejectedError(
            message=f"File name is longer than {limits.max_filename_length} characters",
            filename=filename[: limits.max_filename_length],
        )
