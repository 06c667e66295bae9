"""Abstract base class for format-specific text extractors.

One extractor exists per supported format.  Each declares the MIME types and
file extensions it serves so that
:class:`~src.services.ingestion.format_registry.FormatRegistry` can resolve
uploads to it with a pure table lookup.

The contract has two halves:

* :meth:`IDocumentExtractor.validate` -- a cheap signature check that looks
  at a handful of leading bytes and never raises.
* :meth:`IDocumentExtractor.extract_text` -- the real parse.

:meth:`IDocumentExtractor.extract` wraps both the parse and its failure
modes into the uniform :class:`~src.models.document.ExtractedText` result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from src.models.document import DocumentFormat, ExtractedText
from src.utils.errors import EmptyExtractionError, ExtractionFailedError, IngestError


# Concrete implementations:
#   PDFExtractor   -- PyMuPDF text layer, page by page
#   TXTExtractor   -- strict UTF-8 decode
#   DOCXExtractor  -- python-docx paragraphs
#   DOCExtractor   -- olefile + Word 97 piece table
#   FB2Extractor   -- ElementTree walk of <FictionBook>
#   EPUBExtractor  -- ebooklib spine + BeautifulSoup
# Located in: src/services/ingestion/extractors/
class IDocumentExtractor(ABC):
    """Contract for turning raw document bytes into plain text."""

    format: ClassVar[DocumentFormat]
    mime_types: ClassVar[tuple[str, ...]] = ()
    extensions: ClassVar[tuple[str, ...]] = ()

    @property
    def name(self) -> str:
        """Extractor identifier reported as ``metadata.processor``."""
        return type(self).__name__

    @abstractmethod
    def validate(self, data: bytes) -> bool:
        """Return ``True`` if *data* carries this format's signature.

        Must only inspect a bounded prefix of *data* and must never raise;
        any internal failure is reported as ``False``.
        """

    @abstractmethod
    def extract_text(self, data: bytes, path: str | None = None) -> str:
        """Parse *data* and return its plain text.

        Parameters
        ----------
        data:
            The raw file bytes.
        path:
            Optional on-disk location of the same bytes, for parsers that
            prefer reading from a file.

        Raises
        ------
        src.utils.errors.IngestError
            Any parser exception may propagate; :meth:`extract` wraps it.
        """

    def handles_mime_type(self, mime_type: str | None) -> bool:
        if not mime_type:
            return False
        return mime_type.split(";", 1)[0].strip().lower() in self.mime_types

    def handles_filename(self, filename: str) -> bool:
        return filename.lower().endswith(self.extensions)

    def extract(self, data: bytes, filename: str, path: str | None = None) -> ExtractedText:
        """Extract *data* into a trimmed :class:`ExtractedText`.

        Raises
        ------
        ExtractionFailedError
            The parser raised; the original exception is chained.
        EmptyExtractionError
            The parse succeeded but produced only whitespace.
        """
        try:
            result = self._extract(data, path)
        except IngestError as exc:
            raise exc.with_context(filename=filename) from exc
        except Exception as exc:
            raise ExtractionFailedError(
                message=f"{self.name} could not parse the file: {exc}",
                filename=filename,
            ) from exc

        text = result.text.strip()
        if not text:
            raise EmptyExtractionError(
                message=f"{self.name} produced no text",
                filename=filename,
            )
        if text != result.text:
            result = result.model_copy(update={"text": text})
        return result

    def _extract(self, data: bytes, path: str | None) -> ExtractedText:
        """Build the :class:`ExtractedText`; override to add title or pages."""
        return ExtractedText(
            text=self.extract_text(data, path),
            format=self.format,
            extractor_name=self.name,
        )
