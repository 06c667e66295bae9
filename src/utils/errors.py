"""Custom exception hierarchy for the document ingestion engine.

All ingestion exceptions inherit from :class:`IngestError`, which carries an
optional ``filename`` (the document that triggered the failure) and an
optional ``stage`` (the ingestion state the document was in) so upload
handlers can build user-facing messages without parsing strings.

The hierarchy mirrors the ingestion state machine:

    IngestError  (base -- catch-all for any ingestion error)
    +-- UnsupportedFormatError      (no extractor resolves the file)
    +-- CorruptFileError            (signature / validation failure)
    +-- ExtractionFailedError       (parser-level exception, format-specific)
    +-- EmptyExtractionError        (no usable text after trimming)
    +-- DependencyUnavailableError  (dedup store unreachable -- recovered locally)
    +-- UploadRejectedError         (size / filename limits)
    +-- IndexingError               (embedding or vector-store hand-off failure)
    +-- ConfigurationError          (invalid settings / chunking config)

Format, validation and extraction errors are deterministic for a given set
of bytes, so nothing in the core retries them.  DependencyUnavailableError is
the only condition the pipeline recovers from.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base exception for all ingestion errors.

    The ``__str__`` method prefixes the filename in brackets for structured
    log output, e.g. ``[report.pdf] Invalid or corrupted file``.
    """

    def __init__(
        self,
        message: str = "Document ingestion failed",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        self._message = message
        self._filename = filename
        self._stage = stage
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def stage(self) -> str | None:
        return self._stage

    def with_context(self, filename: str | None = None, stage: str | None = None) -> IngestError:
        """Return a copy of this error with *filename* / *stage* filled in.

        Values already present on the error are kept; only missing context
        is added.  The copy keeps the original exception class.
        """
        return type(self)(
            message=self._message,
            filename=self._filename or filename,
            stage=self._stage or stage,
        )

    def __str__(self) -> str:
        if self._filename:
            return f"[{self._filename}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Format resolution and validation
# ---------------------------------------------------------------------------

class UnsupportedFormatError(IngestError):
    """Raised when no registered extractor matches the file name or MIME type."""

    def __init__(
        self,
        message: str = "Unsupported file format",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


class CorruptFileError(IngestError):
    """Raised when a file fails its extractor's signature check."""

    def __init__(
        self,
        message: str = "Invalid or corrupted file",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionFailedError(IngestError):
    """Raised when a format parser throws while reading the document."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


class EmptyExtractionError(IngestError):
    """Raised when extraction succeeds but yields no text after trimming."""

    def __init__(
        self,
        message: str = "No text content found in file",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------

class DependencyUnavailableError(IngestError):
    """Raised by a dedup store when its backend cannot be reached.

    The ingestion pipeline catches this and continues in degraded mode
    (as if no duplicate existed) instead of failing the document.
    """

    def __init__(
        self,
        message: str = "Dependency is unavailable",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


class IndexingError(IngestError):
    """Raised when embedding generation or vector storage fails for a document."""

    def __init__(
        self,
        message: str = "Chunk indexing failed",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


# ---------------------------------------------------------------------------
# Input policy / configuration
# ---------------------------------------------------------------------------

class UploadRejectedError(IngestError):
    """Raised when an upload violates size or filename limits."""

    def __init__(
        self,
        message: str = "Upload rejected",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)


class ConfigurationError(IngestError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        filename: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message=message, filename=filename, stage=stage)
