"""Resolution of uploads to format extractors.

The registry is a static, ordered table of extractor instances built once
at startup.  Resolution is a pure lookup:

1. the declared MIME type is matched exactly against each extractor's
   ``mime_types``;
2. failing that, the file extension is matched against ``extensions``.

The first match wins; there is no scoring.  Note that ``text/xml`` and
``application/xml`` resolve to the FB2 extractor, since FB2 is the only
XML-based format the engine reads.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.services.ingestion.extractors import DEFAULT_EXTRACTORS

logger = structlog.get_logger(logger_name=__name__)


class FormatRegistry:
    """Ordered table of :class:`IDocumentExtractor` instances.

    Parameters
    ----------
    extractors:
        Extractor instances in resolution order.  Defaults to one instance
        of each built-in extractor (PDF, TXT, FB2, EPUB, DOCX, DOC).
    """

    def __init__(self, extractors: Iterable[IDocumentExtractor] | None = None) -> None:
        if extractors is None:
            extractors = [cls() for cls in DEFAULT_EXTRACTORS]
        self._extractors: tuple[IDocumentExtractor, ...] = tuple(extractors)

    @property
    def extractors(self) -> tuple[IDocumentExtractor, ...]:
        return self._extractors

    def resolve(self, filename: str, mime_type: str | None = None) -> IDocumentExtractor | None:
        """Return the extractor for *filename* / *mime_type*, or ``None``.

        ``None`` means "not supported"; the caller decides whether that is
        fatal.
        """
        if mime_type:
            for extractor in self._extractors:
                if extractor.handles_mime_type(mime_type):
                    return extractor

        for extractor in self._extractors:
            if extractor.handles_filename(filename):
                return extractor

        logger.debug("format_not_resolved", filename=filename, mime_type=mime_type)
        return None

    def is_supported(self, filename: str, mime_type: str | None = None) -> bool:
        return self.resolve(filename, mime_type) is not None

    def supported_extensions(self) -> list[str]:
        """All registered extensions, in registry order, without duplicates."""
        seen: dict[str, None] = {}
        for extractor in self._extractors:
            for ext in extractor.extensions:
                seen.setdefault(ext, None)
        return list(seen)

    def supported_mime_types(self) -> list[str]:
        seen: dict[str, None] = {}
        for extractor in self._extractors:
            for mime in extractor.mime_types:
                seen.setdefault(mime, None)
        return list(seen)
